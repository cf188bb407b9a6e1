# app/api/uploads/routes.py

from flask import request, jsonify, Blueprint, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import fields, validate

from app.schemas.base import CamelCaseSchema
from app.services.storage_service import UPLOAD_PATHS

# 이 블루프린트에 속한 모든 API는 '/api/uploads' 라는 접두사 URL을 갖게 됩니다.
uploads_bp = Blueprint('uploads_bp', __name__)


class UploadUrlRequestSchema(CamelCaseSchema):
    """업로드 URL 발급 요청 스키마"""
    upload_type = fields.Str(required=True, validate=validate.OneOf(list(UPLOAD_PATHS)))
    filename = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    content_type = fields.Str(required=True)


class FilePathSchema(CamelCaseSchema):
    """파일 경로 유효성 검사를 위한 스키마"""
    file_path = fields.Str(required=True, error_messages={"required": "파일 경로는 필수입니다."})


@uploads_bp.route('/url', methods=['POST'])
@jwt_required()
def get_upload_url():
    """
    스토리/프로필 이미지 업로드를 위한 Pre-signed URL을 발급합니다.
    클라이언트는 이 API를 먼저 호출하여 업로드할 권한이 있는 임시 URL을 받아야 합니다.
    """
    storage_service = current_app.services['storage']
    data = UploadUrlRequestSchema().load(request.get_json() or {})
    url_info = storage_service.generate_upload_url(
        get_jwt_identity(), data['upload_type'], data['filename'], data['content_type']
    )
    return jsonify({
        "success": True,
        "data": {"uploadUrl": url_info['upload_url'], "filePath": url_info['file_path']}
    }), 200


@uploads_bp.route('/finalize', methods=['POST'])
@jwt_required()
def finalize_upload():
    """업로드된 이미지를 공개로 전환하고, 스토리/프로필에 저장할 URL을 반환합니다."""
    storage_service = current_app.services['storage']
    data = FilePathSchema().load(request.get_json() or {})
    public_url = storage_service.make_public_and_get_url(get_jwt_identity(), data['file_path'])
    return jsonify({"success": True, "data": {"publicUrl": public_url}}), 200

# app/services/storage_service.py
import uuid
import logging
from datetime import timedelta
from flask import Flask
from firebase_admin import storage
from google.api_core.exceptions import GoogleAPICallError

from app.core.errors import ForbiddenError, NotFoundError, UpstreamError, ValidationError

# 업로드 목적별 저장 폴더
UPLOAD_PATHS = {
    "story_image": "stories",
    "profile_image": "profiles",
}
ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic")
UPLOAD_URL_EXPIRATION = timedelta(minutes=15)


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 범용 서비스 클래스입니다.
    스토리/프로필 이미지 업로드를 위한 Pre-signed URL 생성 등의 기능을 제공합니다.
    """

    def __init__(self, bucket=None):
        """
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        테스트에서는 버킷을 직접 넘길 수 있습니다.
        """
        self.bucket = bucket

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def _require_bucket(self):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        """
        파일 타입에 따라 적절한 경로에 업로드할 수 있는 Pre-signed URL을 생성합니다.
        클라이언트는 이 URL로 서버를 거치지 않고 Firebase Storage에 직접 파일을 업로드(PUT)합니다.

        :param user_id: JWT에서 추출한 현재 로그인된 사용자의 고유 ID
        :param upload_type: 업로드 목적 ("story_image", "profile_image")
        :param filename: 클라이언트가 업로드할 원본 파일명 (확장자 파악에 사용)
        :param content_type: 업로드할 파일의 MIME 타입 (예: "image/jpeg")
        :return: 업로드 URL과 서버에서 사용할 파일 경로가 담긴 딕셔너리
        """
        self._require_bucket()

        folder = UPLOAD_PATHS.get(upload_type)
        if not folder:
            raise ValidationError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"지원하지 않는 파일 형식입니다: {content_type}")

        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        unique_filename = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        destination_blob_name = f"{folder}/{user_id}/{unique_filename}"

        blob = self.bucket.blob(destination_blob_name)
        try:
            upload_url = blob.generate_signed_url(
                version="v4",
                expiration=UPLOAD_URL_EXPIRATION,
                method="PUT",
                content_type=content_type
            )
        except GoogleAPICallError as e:
            logging.error(f"Pre-signed URL 생성 실패 ({destination_blob_name}): {e}", exc_info=True)
            raise UpstreamError("업로드 URL 생성 중 오류가 발생했습니다.")

        return {
            "upload_url": upload_url,
            "file_path": destination_blob_name
        }

    def make_public_and_get_url(self, user_id: str, file_path: str) -> str:
        """
        업로드가 끝난 파일을 공개(public)로 설정하고 해당 URL을 반환합니다.
        본인 폴더에 올린 파일만 처리할 수 있습니다.
        """
        self._require_bucket()

        parts = file_path.split('/')
        if len(parts) < 3 or parts[0] not in UPLOAD_PATHS.values() or parts[1] != user_id:
            raise ForbiddenError("본인이 업로드한 파일만 공개할 수 있습니다.")

        blob = self.bucket.blob(file_path)
        if not blob.exists():
            raise NotFoundError(f"파일을 찾을 수 없습니다: {file_path}")

        try:
            blob.make_public()
        except GoogleAPICallError as e:
            logging.error(f"파일 공개 전환 실패: {e}", exc_info=True)
            raise UpstreamError("파일 처리 중 오류가 발생했습니다.")
        return blob.public_url

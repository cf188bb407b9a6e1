# app/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)

from app.api.auth.schemas import RegisterSchema, TokenExchangeSchema, LogoutRequestSchema
from app.api.users.schemas import UserPrivateResponseSchema
from app.core.errors import UnauthorizedError

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    이메일/비밀번호로 인증 계정과 프로필을 생성합니다.
    클라이언트는 반환된 customToken 으로 인증 제공자에 로그인한 뒤 /token 으로 앱 토큰을 받습니다.
    """
    auth_service = current_app.services['auth']
    data = RegisterSchema().load(request.get_json() or {})
    result = auth_service.register(data['email'], data['password'], data.get('display_name'))
    return jsonify({
        "success": True,
        "data": {
            "customToken": result['custom_token'],
            "user": UserPrivateResponseSchema().dump(result['profile']),
        }
    }), 201


@auth_bp.route('/token', methods=['POST'])
def exchange_token():
    """인증 제공자의 ID 토큰을 검증하고 앱 전용 Access/Refresh 토큰을 발급합니다."""
    auth_service = current_app.services['auth']
    data = TokenExchangeSchema().load(request.get_json() or {})
    profile = auth_service.authenticate(data['id_token'])

    identity = profile.uid
    return jsonify({
        "success": True,
        "data": {
            "accessToken": create_access_token(identity=identity),
            "refreshToken": create_refresh_token(identity=identity),
            "user": UserPrivateResponseSchema().dump(profile),
        }
    }), 200


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)  # Refresh Token만 허용하는 데코레이터
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user_id)
    return jsonify({"success": True, "data": {"accessToken": new_access_token}}), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    data = LogoutRequestSchema().load(request.get_json() or {})

    secret_key = current_app.config['JWT_SECRET_KEY']
    algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

    # 만료된 토큰도 무효화할 수 있도록 만료 검사는 건너뜁니다.
    try:
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
    except jwt.PyJWTError as e:
        logging.warning(f"로그아웃 토큰 해독 실패: {e}")
        raise UnauthorizedError("유효하지 않은 토큰입니다.")

    auth_service.logout_user(decoded_access['jti'], decoded_access['exp'],
                             decoded_refresh['jti'], decoded_refresh['exp'])
    return jsonify({"success": True, "message": "로그아웃 되었습니다."}), 200

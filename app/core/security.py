# app/core/security.py
import logging
from typing import Any, Callable
from flask import jsonify
from flask_jwt_extended import JWTManager

from app.core.errors import ForbiddenError


def _owner_of(resource: Any) -> Any:
    if isinstance(resource, dict):
        return resource.get('user_id')
    return getattr(resource, 'user_id', None)


def assert_owner(resource: Any, requester_id: str) -> None:
    """
    리소스의 소유자(user_id)와 요청자가 같은지 확인합니다.
    모든 변경 작업 직전에 호출되며, 다르면 ForbiddenError를 던집니다.
    """
    if not requester_id or _owner_of(resource) != requester_id:
        raise ForbiddenError("이 리소스를 수정하거나 삭제할 권한이 없습니다.")


def _unauthorized(message: str):
    return jsonify({"success": False, "error_code": "UNAUTHORIZED", "message": message}), 401


def register_jwt_callbacks(jwt: JWTManager, is_token_revoked: Callable[[dict], bool]) -> None:
    """
    flask_jwt_extended 의 기본 응답({"msg": ...})을 API 공통 에러 형식으로 바꾸고,
    무효화(로그아웃)된 토큰 검사 콜백을 등록합니다.
    """

    @jwt.unauthorized_loader
    def missing_token_callback(reason: str):
        return _unauthorized("인증 토큰이 없거나 형식이 올바르지 않습니다.")

    @jwt.invalid_token_loader
    def invalid_token_callback(reason: str):
        logging.warning(f"유효하지 않은 토큰 요청: {reason}")
        return _unauthorized("유효하지 않은 토큰입니다.")

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header: dict, jwt_payload: dict):
        return _unauthorized("토큰이 만료되었습니다.")

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header: dict, jwt_payload: dict):
        return _unauthorized("로그아웃 처리된 토큰입니다.")

    @jwt.needs_fresh_token_loader
    def needs_fresh_token_callback(jwt_header: dict, jwt_payload: dict):
        return _unauthorized("재인증이 필요합니다.")

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header: dict, jwt_payload: dict) -> bool:
        return is_token_revoked(jwt_payload)

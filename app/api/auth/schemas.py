# app/api/auth/schemas.py
from marshmallow import fields, validate

from app.schemas.base import CamelCaseSchema


class RegisterSchema(CamelCaseSchema):
    """회원가입 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=6, max=128))
    display_name = fields.Str(validate=validate.Length(min=1, max=50))


class TokenExchangeSchema(CamelCaseSchema):
    """
    인증 제공자(Firebase Auth)가 발급한 ID 토큰을 앱 JWT 로 교환하는 요청.
    """
    id_token = fields.Str(
        required=True,
        metadata={"description": "클라이언트 SDK 로그인 후 받은 Firebase ID 토큰"}
    )


class LogoutRequestSchema(CamelCaseSchema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)

# app/schemas/base.py
"""
도메인 공통 marshmallow 스키마.

- 문서(Firestore)의 필드는 snake_case, API JSON 은 camelCase 입니다.
  CamelCaseSchema 를 상속하면 필드명이 자동으로 camelCase data_key 로 바인딩됩니다.
- 수정(Update) 스키마는 unknown = RAISE 로 허용 목록 밖의 필드를 거부합니다.
"""
from marshmallow import Schema, fields, validate, EXCLUDE, RAISE, ValidationError

from app.utils.datetime_utils import DateTimeUtils


def camelcase(s: str) -> str:
    parts = iter(s.split("_"))
    return next(parts) + "".join(part.title() for part in parts)


class CamelCaseSchema(Schema):
    """snake_case 필드를 camelCase JSON 키로 주고받는 기반 스키마."""

    class Meta:
        unknown = EXCLUDE

    def on_bind_field(self, field_name, field_obj):
        field_obj.data_key = camelcase(field_obj.data_key or field_name)


class UpdateSchema(CamelCaseSchema):
    """부분 수정 요청용 기반 스키마. 허용되지 않은 필드가 있으면 400."""

    class Meta:
        unknown = RAISE


def validate_iso_date(value: str) -> None:
    try:
        DateTimeUtils.parse_iso_datetime(value)
    except ValueError:
        raise ValidationError("ISO-8601 형식의 날짜여야 합니다. (예: 2025-01-15 또는 2025-01-15T10:30:00Z)")


class CoordinatesSchema(CamelCaseSchema):
    latitude = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(required=True, validate=validate.Range(min=-180, max=180))


class PaginationSchema(CamelCaseSchema):
    next_cursor = fields.Str(allow_none=True)
    has_more = fields.Bool(required=True)

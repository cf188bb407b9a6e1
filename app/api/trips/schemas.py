# app/api/trips/schemas.py
from marshmallow import fields, validate, validates_schema, ValidationError

from app.models.trip import TripType, BudgetLevel, PlaceType
from app.schemas.base import CamelCaseSchema, UpdateSchema, CoordinatesSchema, validate_iso_date
from app.utils.datetime_utils import DateTimeUtils

TRIP_FILTERS = ('all', 'upcoming', 'past')


def _values(enum_cls):
    return [member.value for member in enum_cls]


# --- 장소(Place) ---
class PlaceSchema(CamelCaseSchema):
    """POST /api/trips/{trip_id}/places 요청 및 응답에 사용되는 장소 스키마."""
    id = fields.Str(validate=validate.Length(min=1, max=128))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    type = fields.Str(load_default=PlaceType.OTHER.value, validate=validate.OneOf(_values(PlaceType)))
    address = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    notes = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    country = fields.Str(allow_none=True)


class PlaceResponseSchema(PlaceSchema):
    type = fields.Enum(PlaceType, by_value=True)


class PlaceReorderSchema(CamelCaseSchema):
    """PUT /api/trips/{trip_id}/places"""
    places = fields.List(fields.Nested(PlaceSchema), required=True)


# --- 여행(Trip) ---
class TripCreateSchema(CamelCaseSchema):
    """POST /api/trips 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    location = fields.Str(allow_none=True, validate=validate.Length(max=200))
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    start_date = fields.Str(required=True, validate=validate_iso_date)
    end_date = fields.Str(required=True, validate=validate_iso_date)
    trip_type = fields.Str(allow_none=True, validate=validate.OneOf(_values(TripType)))
    budget = fields.Str(allow_none=True, validate=validate.OneOf(_values(BudgetLevel)))
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    tags = fields.List(fields.Str(), load_default=list)
    places = fields.List(fields.Nested(PlaceSchema), load_default=list)

    @validates_schema
    def validate_date_range(self, data, **kwargs):
        start, end = data.get('start_date'), data.get('end_date')
        if start and end and DateTimeUtils.parse_iso_datetime(end) < DateTimeUtils.parse_iso_datetime(start):
            raise ValidationError("종료일은 시작일보다 빠를 수 없습니다.", field_name='endDate')


class TripUpdateSchema(UpdateSchema):
    """
    PUT /api/trips/{trip_id}
    수정 가능한 필드만 정의합니다. 소유자/타임스탬프/장소 목록은 이 경로로 바꿀 수 없습니다.
    (장소는 /places 하위 경로에서만 변경)
    """
    title = fields.Str(validate=validate.Length(min=1, max=200))
    location = fields.Str(allow_none=True, validate=validate.Length(max=200))
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    start_date = fields.Str(validate=validate_iso_date)
    end_date = fields.Str(validate=validate_iso_date)
    trip_type = fields.Str(allow_none=True, validate=validate.OneOf(_values(TripType)))
    budget = fields.Str(allow_none=True, validate=validate.OneOf(_values(BudgetLevel)))
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    tags = fields.List(fields.Str())


class TripResponseSchema(CamelCaseSchema):
    """여행 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    id = fields.Str(dump_only=True)
    user_id = fields.Str(dump_only=True)
    title = fields.Str()
    location = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    start_date = fields.Str()
    end_date = fields.Str()
    trip_type = fields.Enum(TripType, by_value=True, allow_none=True)
    budget = fields.Enum(BudgetLevel, by_value=True, allow_none=True)
    description = fields.Str(allow_none=True)
    tags = fields.List(fields.Str())
    places = fields.List(fields.Nested(PlaceResponseSchema))
    created_at = fields.Str(dump_only=True)
    updated_at = fields.Str(dump_only=True)

# app/api/recommendations/schemas.py
from marshmallow import fields, validate

from app.api.recommendations.itinerary import BUDGET_ALIASES
from app.models.trip import BudgetLevel
from app.schemas.base import CamelCaseSchema, CoordinatesSchema

BUDGET_CHOICES = [level.value for level in BudgetLevel] + list(BUDGET_ALIASES)


# --- 요청 스키마 ---
class NearbyQuerySchema(CamelCaseSchema):
    """GET /api/recommendations/nearby 쿼리 파라미터"""
    latitude = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    longitude = fields.Float(required=True, validate=validate.Range(min=-180, max=180))
    radius = fields.Float(load_default=5, validate=validate.Range(min=0, min_inclusive=False, max=500))
    limit = fields.Int(load_default=10, validate=validate.Range(min=1, max=100))


class ItineraryPreferencesSchema(CamelCaseSchema):
    interests = fields.List(fields.Str(), load_default=list)
    budget = fields.Str(load_default=BudgetLevel.MODERATE.value, validate=validate.OneOf(BUDGET_CHOICES))


class ItineraryRequestSchema(CamelCaseSchema):
    """POST /api/recommendations/itinerary"""
    preferences = fields.Nested(ItineraryPreferencesSchema, required=True)
    destination = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    duration = fields.Int(required=True, validate=validate.Range(min=1, max=30, error="여행 기간은 1~30일 사이여야 합니다."))


# --- 응답 스키마 ---
class CatalogPlaceResponseSchema(CamelCaseSchema):
    """카탈로그 장소 + 추천 종류별 부가 정보(score, distanceKm 등)."""
    id = fields.Str()
    name = fields.Str()
    country = fields.Str(allow_none=True)
    city = fields.Str(allow_none=True)
    type = fields.Str()
    location = fields.Str(allow_none=True)
    description = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    tags = fields.List(fields.Str())
    seasonal_tags = fields.List(fields.Str())
    rating = fields.Float(allow_none=True)
    visit_count = fields.Int()

    score = fields.Float()
    similarity_score = fields.Float()
    distance_km = fields.Float()
    season_recommended = fields.Str()


class TrendingDestinationSchema(CamelCaseSchema):
    destination = fields.Str()
    trend_count = fields.Int()
    place = fields.Nested(CatalogPlaceResponseSchema, allow_none=True)


class ActivitySchema(CamelCaseSchema):
    name = fields.Str()
    description = fields.Str(allow_none=True)
    location = fields.Str(allow_none=True)
    duration = fields.Float()
    cost = fields.Str()
    type = fields.Str()
    time_of_day = fields.Str()


class DayPlanSchema(CamelCaseSchema):
    day = fields.Int()
    activities = fields.List(fields.Nested(ActivitySchema))


class AccommodationSchema(CamelCaseSchema):
    id = fields.Str()
    name = fields.Str()
    type = fields.Str()
    price_range = fields.Str()
    amenities = fields.List(fields.Str())
    location = fields.Str(allow_none=True)
    description = fields.Str(allow_none=True)


class TransportationSchema(CamelCaseSchema):
    type = fields.Str()
    name = fields.Str()
    description = fields.Str()
    cost = fields.Str()
    best_for = fields.Str()


class BudgetEstimateSchema(CamelCaseSchema):
    daily_costs = fields.Dict(keys=fields.Str(), values=fields.Float())
    total_costs = fields.Dict(keys=fields.Str(), values=fields.Int())
    total_budget = fields.Int()
    currency_code = fields.Str()
    breakdown = fields.Dict(keys=fields.Str(), values=fields.Int())


class ItineraryResponseSchema(CamelCaseSchema):
    destination = fields.Nested(CatalogPlaceResponseSchema)
    duration = fields.Int()
    budget = fields.Str()
    daily_activities = fields.List(fields.Nested(DayPlanSchema))
    accommodation_suggestions = fields.List(fields.Nested(AccommodationSchema))
    transportation_options = fields.List(fields.Nested(TransportationSchema))
    estimated_budget = fields.Nested(BudgetEstimateSchema)
    summary = fields.Str(allow_none=True)

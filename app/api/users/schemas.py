# app/api/users/schemas.py
from marshmallow import fields, validate

from app.schemas.base import CamelCaseSchema, UpdateSchema


class UserPreferencesSchema(UpdateSchema):
    notifications_enabled = fields.Bool()
    privacy_settings = fields.Str(validate=validate.OneOf(['public', 'followers', 'private']))


class UserStatsSchema(CamelCaseSchema):
    trips_count = fields.Int()
    stories_count = fields.Int()
    followers_count = fields.Int()
    following_count = fields.Int()


class UserProfileUpdateSchema(UpdateSchema):
    """
    PUT /api/users/profile
    uid, email, stats, joinedDate 처럼 직접 바꿀 수 없는 필드가 오면 400을 반환합니다.
    """
    display_name = fields.Str(validate=validate.Length(max=50))
    photo_url = fields.Str(data_key='photoURL', allow_none=True)
    bio = fields.Str(validate=validate.Length(max=500))
    location = fields.Str(validate=validate.Length(max=200))
    social_links = fields.Dict(keys=fields.Str(), values=fields.Str())
    interests = fields.List(fields.Str())
    preferences = fields.Nested(UserPreferencesSchema)


class UserSummarySchema(CamelCaseSchema):
    """팔로워/팔로잉 목록에 쓰이는 요약 정보."""
    uid = fields.Str()
    display_name = fields.Str()
    photo_url = fields.Str(data_key='photoURL')
    bio = fields.Str()


class UserPublicResponseSchema(UserSummarySchema):
    """
    GET /api/users/profile/{user_id}
    다른 사용자의 프로필을 응답할 때 사용하는 스키마.
    email, preferences 같은 민감한 정보는 제외합니다.
    """
    location = fields.Str()
    joined_date = fields.Str(allow_none=True)
    social_links = fields.Dict(keys=fields.Str(), values=fields.Str())
    interests = fields.List(fields.Str())
    stats = fields.Nested(UserStatsSchema)


class UserPrivateResponseSchema(UserPublicResponseSchema):
    """본인 프로필 응답. 공개 정보에 email 과 preferences 를 더합니다."""
    email = fields.Str(allow_none=True)
    preferences = fields.Nested(UserPreferencesSchema)

# app/api/stories/schemas.py
from marshmallow import fields, validate

from app.schemas.base import CamelCaseSchema, UpdateSchema, CoordinatesSchema, PaginationSchema


class StoryCreateSchema(CamelCaseSchema):
    """POST /api/stories 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    content = fields.Str(required=True, validate=validate.Length(min=1, max=10000))
    location = fields.Str(allow_none=True, validate=validate.Length(max=200))
    image_url = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    is_public = fields.Bool(load_default=True)
    trip_id = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(), load_default=list)


class StoryUpdateSchema(UpdateSchema):
    """
    PUT /api/stories/{story_id}
    좋아요/댓글/작성자/타임스탬프는 수정할 수 없습니다.
    """
    title = fields.Str(validate=validate.Length(min=1, max=200))
    content = fields.Str(validate=validate.Length(min=1, max=10000))
    location = fields.Str(allow_none=True, validate=validate.Length(max=200))
    image_url = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    is_public = fields.Bool()
    trip_id = fields.Str(allow_none=True)
    tags = fields.List(fields.Str())


class CommentCreateSchema(CamelCaseSchema):
    """POST /api/stories/{story_id}/comments"""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))


class CommentResponseSchema(CamelCaseSchema):
    id = fields.Str()
    user_id = fields.Str()
    user_name = fields.Str(allow_none=True)
    text = fields.Str()
    created_at = fields.Str()


class StoryResponseSchema(CamelCaseSchema):
    """스토리 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    id = fields.Str(dump_only=True)
    user_id = fields.Str(dump_only=True)
    title = fields.Str()
    content = fields.Str()
    location = fields.Str(allow_none=True)
    image_url = fields.Str(allow_none=True)
    coordinates = fields.Nested(CoordinatesSchema, allow_none=True)
    is_public = fields.Bool()
    trip_id = fields.Str(allow_none=True)
    tags = fields.List(fields.Str())
    likes = fields.Function(lambda story: sorted(story.likes))
    like_count = fields.Int(dump_only=True)
    comments = fields.List(fields.Nested(CommentResponseSchema))
    comment_count = fields.Int(dump_only=True)
    created_at = fields.Str(dump_only=True)
    updated_at = fields.Str(dump_only=True)


class LikeResponseSchema(CamelCaseSchema):
    liked = fields.Bool(required=True)
    like_count = fields.Int(required=True)


class StoryPageResponseSchema(CamelCaseSchema):
    """GET /api/stories 공개 피드 응답."""
    success = fields.Bool(dump_default=True)
    data = fields.List(fields.Nested(StoryResponseSchema))
    pagination = fields.Nested(PaginationSchema)

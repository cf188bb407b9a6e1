# app/api/stories/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.stories.schemas import (
    StoryCreateSchema, StoryUpdateSchema, StoryResponseSchema, StoryPageResponseSchema,
    CommentCreateSchema, CommentResponseSchema, LikeResponseSchema
)
from app.core.errors import ForbiddenError, ValidationError

stories_bp = Blueprint('stories_bp', __name__)


def _page_size() -> int:
    default = current_app.config['DEFAULT_PAGE_SIZE']
    limit = request.args.get('limit', default, type=int)
    if limit < 1:
        raise ValidationError("limit 은 1 이상이어야 합니다.")
    return min(limit, current_app.config['MAX_PAGE_SIZE'])


def _visible_to(stories, requester_id):
    return [s for s in stories if s.is_public or s.user_id == requester_id]


@stories_bp.route('', methods=['GET'])
def get_public_stories():
    """
    공개 스토리 피드를 최신순으로 조회합니다. (인증 불필요)
    - limit: 페이지 크기 (기본 DEFAULT_PAGE_SIZE, 최대 MAX_PAGE_SIZE)
    - cursor: 직전 응답의 pagination.nextCursor
    """
    story_service = current_app.services['stories']
    cursor = request.args.get('cursor', None, type=str)
    stories, next_cursor, has_more = story_service.list_public_stories(_page_size(), cursor)
    return jsonify(StoryPageResponseSchema().dump({
        "success": True,
        "data": stories,
        "pagination": {"next_cursor": next_cursor, "has_more": has_more},
    })), 200


@stories_bp.route('/<string:story_id>', methods=['GET'])
@jwt_required(optional=True)
def get_story(story_id: str):
    """스토리 상세 조회. 비공개 스토리는 작성자 본인만 볼 수 있습니다."""
    story_service = current_app.services['stories']
    story = story_service.get_story(story_id)
    if not story.is_public and story.user_id != get_jwt_identity():
        raise ForbiddenError("비공개 스토리입니다.")
    return jsonify({"success": True, "data": StoryResponseSchema().dump(story)}), 200


@stories_bp.route('/user', methods=['GET'])
@stories_bp.route('/user/<string:user_id>', methods=['GET'])
@jwt_required()
def get_user_stories(user_id: str = None):
    """특정 사용자(생략 시 본인)의 스토리 목록. 다른 사용자의 비공개 스토리는 제외됩니다."""
    story_service = current_app.services['stories']
    requester_id = get_jwt_identity()
    stories = story_service.list_user_stories(user_id or requester_id)
    return jsonify({"success": True, "data": StoryResponseSchema(many=True).dump(_visible_to(stories, requester_id))}), 200


@stories_bp.route('/trip/<string:trip_id>', methods=['GET'])
@jwt_required()
def get_trip_stories(trip_id: str):
    story_service = current_app.services['stories']
    requester_id = get_jwt_identity()
    stories = story_service.list_trip_stories(trip_id)
    return jsonify({"success": True, "data": StoryResponseSchema(many=True).dump(_visible_to(stories, requester_id))}), 200


@stories_bp.route('', methods=['POST'])
@jwt_required()
def create_story():
    story_service = current_app.services['stories']
    data = StoryCreateSchema().load(request.get_json() or {})
    story = story_service.create_story(get_jwt_identity(), data)
    return jsonify({"success": True, "data": StoryResponseSchema().dump(story)}), 201


@stories_bp.route('/<string:story_id>', methods=['PUT'])
@jwt_required()
def update_story(story_id: str):
    story_service = current_app.services['stories']
    story_service.get_story(story_id)
    patch = StoryUpdateSchema().load(request.get_json() or {})
    story = story_service.update_story(story_id, get_jwt_identity(), patch)
    return jsonify({"success": True, "data": StoryResponseSchema().dump(story)}), 200


@stories_bp.route('/<string:story_id>', methods=['DELETE'])
@jwt_required()
def delete_story(story_id: str):
    story_service = current_app.services['stories']
    story_service.delete_story(story_id, get_jwt_identity())
    return jsonify({"success": True, "message": "스토리가 삭제되었습니다."}), 200


@stories_bp.route('/<string:story_id>/like', methods=['POST'])
@jwt_required()
def toggle_like(story_id: str):
    """좋아요를 누르거나 취소합니다. 작성자가 아니어도 가능합니다."""
    story_service = current_app.services['stories']
    result = story_service.toggle_like(story_id, get_jwt_identity())
    return jsonify({"success": True, "data": LikeResponseSchema().dump(result)}), 200


@stories_bp.route('/<string:story_id>/comments', methods=['POST'])
@jwt_required()
def add_comment(story_id: str):
    """
    스토리에 댓글을 작성합니다.
    댓글에는 작성 시점의 사용자 표시 이름이 함께 저장됩니다.
    """
    story_service = current_app.services['stories']
    user_service = current_app.services['users']
    user_id = get_jwt_identity()

    data = CommentCreateSchema().load(request.get_json() or {})
    profile = user_service.find_profile(user_id)
    user_name = profile.display_name if profile else None

    comment = story_service.add_comment(story_id, user_id, data['text'], user_name=user_name)
    return jsonify({"success": True, "data": CommentResponseSchema().dump(comment)}), 201

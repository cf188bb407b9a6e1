# app/api/users/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.users.schemas import (
    UserProfileUpdateSchema, UserPublicResponseSchema, UserPrivateResponseSchema, UserSummarySchema
)

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/profile', methods=['GET'])
@users_bp.route('/profile/<string:user_id>', methods=['GET'])
@jwt_required()
def get_user_profile(user_id: str = None):
    """
    사용자 프로필을 조회합니다. user_id 를 생략하면 본인 프로필입니다.
    - 본인 프로필이 아직 없으면 인증 계정 정보로 생성합니다.
    - 다른 사용자의 프로필에서는 email, preferences 를 제외합니다.
    """
    user_service = current_app.services['users']
    requester_id = get_jwt_identity()
    target_id = user_id or requester_id

    profile = user_service.get_profile(target_id, requester_id)
    schema = UserPrivateResponseSchema() if target_id == requester_id else UserPublicResponseSchema()
    return jsonify({"success": True, "data": schema.dump(profile)}), 200


@users_bp.route('/profile', methods=['PUT'])
@jwt_required()
def update_my_profile():
    user_service = current_app.services['users']
    patch = UserProfileUpdateSchema().load(request.get_json() or {})
    profile = user_service.update_profile(get_jwt_identity(), patch)
    return jsonify({"success": True, "data": UserPrivateResponseSchema().dump(profile)}), 200


@users_bp.route('/follow/<string:user_id>', methods=['POST'])
@jwt_required()
def follow_user(user_id: str):
    user_service = current_app.services['users']
    user_service.follow(get_jwt_identity(), user_id)
    return jsonify({"success": True, "message": "팔로우했습니다."}), 200


@users_bp.route('/follow/<string:user_id>', methods=['DELETE'])
@jwt_required()
def unfollow_user(user_id: str):
    user_service = current_app.services['users']
    user_service.unfollow(get_jwt_identity(), user_id)
    return jsonify({"success": True, "message": "팔로우를 취소했습니다."}), 200


@users_bp.route('/<string:user_id>/followers', methods=['GET'])
@jwt_required()
def get_followers(user_id: str):
    user_service = current_app.services['users']
    followers = user_service.list_followers(user_id)
    return jsonify({"success": True, "data": UserSummarySchema(many=True).dump(followers)}), 200


@users_bp.route('/<string:user_id>/following', methods=['GET'])
@jwt_required()
def get_following(user_id: str):
    user_service = current_app.services['users']
    following = user_service.list_following(user_id)
    return jsonify({"success": True, "data": UserSummarySchema(many=True).dump(following)}), 200

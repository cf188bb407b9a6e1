# app/api/trips/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.trips.schemas import (
    TripCreateSchema, TripUpdateSchema, TripResponseSchema,
    PlaceSchema, PlaceReorderSchema, PlaceResponseSchema
)
from app.core.security import assert_owner

trips_bp = Blueprint('trips_bp', __name__)


@trips_bp.route('', methods=['GET'])
@jwt_required()
def get_my_trips():
    """
    로그인한 사용자의 여행 목록을 조회합니다.
    - filter: all(기본), upcoming, past
    """
    trip_service = current_app.services['trips']
    user_id = get_jwt_identity()
    trip_filter = request.args.get('filter', 'all', type=str)

    trips = trip_service.list_trips(user_id, trip_filter)
    return jsonify({"success": True, "data": TripResponseSchema(many=True).dump(trips)}), 200


@trips_bp.route('/<string:trip_id>', methods=['GET'])
@jwt_required()
def get_trip(trip_id: str):
    """여행 상세 정보를 조회합니다. 본인 여행이 아니면 403."""
    trip_service = current_app.services['trips']
    trip = trip_service.get_trip(trip_id)
    assert_owner(trip, get_jwt_identity())
    return jsonify({"success": True, "data": TripResponseSchema().dump(trip)}), 200


@trips_bp.route('', methods=['POST'])
@jwt_required()
def create_trip():
    trip_service = current_app.services['trips']
    data = TripCreateSchema().load(request.get_json() or {})
    trip = trip_service.create_trip(get_jwt_identity(), data)
    return jsonify({"success": True, "data": TripResponseSchema().dump(trip)}), 201


@trips_bp.route('/<string:trip_id>', methods=['PUT'])
@jwt_required()
def update_trip(trip_id: str):
    """
    여행 정보를 부분 수정합니다. (소유자만 가능)
    허용되지 않은 필드(userId, createdAt, places 등)가 포함되면 400을 반환합니다.
    """
    trip_service = current_app.services['trips']
    # 없는 여행이면 본문 검사보다 404 가 먼저입니다.
    trip_service.get_trip(trip_id)
    patch = TripUpdateSchema().load(request.get_json() or {})
    trip = trip_service.update_trip(trip_id, get_jwt_identity(), patch)
    return jsonify({"success": True, "data": TripResponseSchema().dump(trip)}), 200


@trips_bp.route('/<string:trip_id>', methods=['DELETE'])
@jwt_required()
def delete_trip(trip_id: str):
    trip_service = current_app.services['trips']
    trip_service.delete_trip(trip_id, get_jwt_identity())
    return jsonify({"success": True, "message": "여행이 삭제되었습니다."}), 200


# --- 여행 내 장소 관리 ---

@trips_bp.route('/<string:trip_id>/places', methods=['POST'])
@jwt_required()
def add_place(trip_id: str):
    """장소를 여행의 방문 순서 맨 끝에 추가하고, 갱신된 장소 목록 전체를 반환합니다."""
    trip_service = current_app.services['trips']
    place = PlaceSchema().load(request.get_json() or {})
    places = trip_service.add_place(trip_id, get_jwt_identity(), place)
    return jsonify({"success": True, "data": PlaceResponseSchema(many=True).dump(places)}), 200


@trips_bp.route('/<string:trip_id>/places/<string:place_id>', methods=['DELETE'])
@jwt_required()
def remove_place(trip_id: str, place_id: str):
    trip_service = current_app.services['trips']
    places = trip_service.remove_place(trip_id, get_jwt_identity(), place_id)
    return jsonify({"success": True, "data": PlaceResponseSchema(many=True).dump(places)}), 200


@trips_bp.route('/<string:trip_id>/places', methods=['PUT'])
@jwt_required()
def reorder_places(trip_id: str):
    """장소 목록을 요청 본문의 순서대로 교체합니다."""
    trip_service = current_app.services['trips']
    data = PlaceReorderSchema().load(request.get_json() or {})
    places = trip_service.reorder_places(trip_id, get_jwt_identity(), data['places'])
    return jsonify({"success": True, "data": PlaceResponseSchema(many=True).dump(places)}), 200

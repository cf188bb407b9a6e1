# app/api/recommendations/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.recommendations.schemas import (
    NearbyQuerySchema, ItineraryRequestSchema,
    CatalogPlaceResponseSchema, TrendingDestinationSchema, ItineraryResponseSchema
)
from app.core.errors import ValidationError

recommendations_bp = Blueprint('recommendations_bp', __name__)


def _limit(default: int) -> int:
    limit = request.args.get('limit', default, type=int)
    if limit < 1:
        raise ValidationError("limit 은 1 이상이어야 합니다.")
    return min(limit, current_app.config['MAX_PAGE_SIZE'])


def _places_response(places):
    return jsonify({"success": True, "data": CatalogPlaceResponseSchema(many=True).dump(places)}), 200


@recommendations_bp.route('/popular', methods=['GET'])
def get_popular():
    """방문 수가 많은 인기 장소 목록 (인증 불필요)"""
    recommendation_service = current_app.services['recommendations']
    return _places_response(recommendation_service.get_popular(_limit(10)))


@recommendations_bp.route('/personalized', methods=['GET'])
@jwt_required()
def get_personalized():
    """
    로그인한 사용자의 여행 기록(태그, 방문 국가)을 바탕으로 장소를 추천합니다.
    이미 방문한 장소는 제외됩니다.
    """
    recommendation_service = current_app.services['recommendations']
    return _places_response(recommendation_service.get_personalized(get_jwt_identity(), _limit(5)))


@recommendations_bp.route('/nearby', methods=['GET'])
def get_nearby():
    recommendation_service = current_app.services['recommendations']
    query = NearbyQuerySchema().load(request.args)
    places = recommendation_service.get_nearby(
        query['latitude'], query['longitude'], query['radius'], query['limit']
    )
    return _places_response(places)


@recommendations_bp.route('/similar/<string:place_id>', methods=['GET'])
def get_similar(place_id: str):
    recommendation_service = current_app.services['recommendations']
    return _places_response(recommendation_service.get_similar(place_id, _limit(5)))


@recommendations_bp.route('/seasonal/<string:country>', methods=['GET'])
def get_seasonal(country: str):
    """현재 계절에 어울리는 해당 국가의 장소 목록"""
    recommendation_service = current_app.services['recommendations']
    return _places_response(recommendation_service.get_seasonal(country, _limit(5)))


@recommendations_bp.route('/trending', methods=['GET'])
def get_trending():
    recommendation_service = current_app.services['recommendations']
    trending = recommendation_service.get_trending(_limit(5))
    return jsonify({"success": True, "data": TrendingDestinationSchema(many=True).dump(trending)}), 200


@recommendations_bp.route('/itinerary', methods=['POST'])
@jwt_required()
def generate_itinerary():
    """
    목적지와 선호(관심사, 예산), 기간(1~30일)으로 여행 일정을 생성합니다.
    생성형 AI 가 설정되어 있으면 일정 소개 문구(summary)가 함께 제공됩니다.
    """
    itinerary_planner = current_app.services['itinerary']
    data = ItineraryRequestSchema().load(request.get_json() or {})
    itinerary = itinerary_planner.generate(data['preferences'], data['destination'], data['duration'])
    return jsonify({"success": True, "data": ItineraryResponseSchema().dump(itinerary)}), 200

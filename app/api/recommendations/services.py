# app/api/recommendations/services.py
import logging
from collections import Counter
from typing import Optional, Dict, Any, List

from app.api.recommendations import scoring
from app.core.errors import InvalidQueryError, StoreError, UpstreamError
from app.models.place import CatalogPlace
from app.models.trip import Trip
from app.services.firestore_service import (
    DocumentStore, QueryOptions,
    COLLECTION_PLACES, COLLECTION_ACCOMMODATIONS, COLLECTION_TRIPS, COLLECTION_USERS,
    ASCENDING, DESCENDING
)
from app.utils.datetime_utils import Clock, now
from app.utils.geo_utils import bounding_box

# 점수 계산 대상으로 가져올 후보 수
CANDIDATE_POOL_SIZE = 100
# 트렌드 집계에 사용할 최근 여행 수
TRENDING_WINDOW = 50


class PlaceCatalog:
    """
    장소 카탈로그 조회 전용 래퍼.
    추천 입장에서 카탈로그는 외부 데이터 소스이므로 저장소 장애를 UpstreamError 로 바꿔 던집니다.
    단, 쿼리 자체가 잘못된 경우(InvalidQueryError)는 그대로 전달합니다.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def _query(self, collection: str, options: QueryOptions) -> List[Dict[str, Any]]:
        try:
            return self.store.query(collection, options)
        except InvalidQueryError:
            raise
        except StoreError as e:
            logging.error(f"카탈로그 조회 실패 (Collection: {collection}): {e}")
            raise UpstreamError("장소 카탈로그를 불러오지 못했습니다.")

    def _places(self, options: QueryOptions) -> List[CatalogPlace]:
        return [CatalogPlace.from_dict(doc) for doc in self._query(COLLECTION_PLACES, options)]

    def get(self, place_id: str) -> CatalogPlace:
        try:
            return CatalogPlace.from_dict(self.store.get(COLLECTION_PLACES, place_id))
        except InvalidQueryError:
            raise
        except StoreError as e:
            logging.error(f"카탈로그 장소 조회 실패 (place_id: {place_id}): {e}")
            raise UpstreamError("장소 카탈로그를 불러오지 못했습니다.")

    def popular(self, limit: int) -> List[CatalogPlace]:
        return self._places(QueryOptions(order_by=[('visit_count', DESCENDING)], limit=limit))

    def in_latitude_band(self, min_latitude: float, max_latitude: float) -> List[CatalogPlace]:
        return self._places(QueryOptions(
            where=[('coordinates.latitude', '>=', min_latitude), ('coordinates.latitude', '<=', max_latitude)],
            order_by=[('coordinates.latitude', ASCENDING)],
        ))

    def seasonal(self, country: str, season: str, limit: int) -> List[CatalogPlace]:
        return self._places(QueryOptions(
            where=[('country', '==', country), ('seasonal_tags', 'array-contains', season)],
            limit=limit,
        ))

    def attractions(self, country: str, limit: int = CANDIDATE_POOL_SIZE) -> List[CatalogPlace]:
        return self._places(QueryOptions(
            where=[('country', '==', country), ('type', '==', 'attraction')],
            limit=limit,
        ))

    def find_destination(self, name: str) -> Optional[CatalogPlace]:
        """이름으로 먼저 찾고, 없으면 같은 국가의 장소 하나를 대표로 사용합니다."""
        for field_path in ('name', 'country'):
            found = self._places(QueryOptions(where=[(field_path, '==', name)], limit=1))
            if found:
                return found[0]
        return None

    def accommodations(self, country: str, city: str, types: List[str], limit: int = 5) -> List[Dict[str, Any]]:
        return self._query(COLLECTION_ACCOMMODATIONS, QueryOptions(
            where=[('country', '==', country), ('city', '==', city), ('type', 'in', types)],
            limit=limit,
        ))


def season_for_month(month: int) -> str:
    """북반구 기준 계절. (3~5월 봄, 6~8월 여름, 9~11월 가을, 그 외 겨울)"""
    if 3 <= month <= 5:
        return 'spring'
    if 6 <= month <= 8:
        return 'summer'
    if 9 <= month <= 11:
        return 'autumn'
    return 'winter'


class RecommendationService:
    """
    장소 추천 비즈니스 로직.
    카탈로그 조회가 실패하면(UpstreamError) 요청 전체를 실패시키지 않고 빈 목록을 반환합니다.
    """

    def __init__(self, catalog: PlaceCatalog, store: DocumentStore, clock: Optional[Clock] = None):
        self.catalog = catalog
        self.store = store
        self.clock = clock

    def get_popular(self, limit: int = 10) -> List[Dict[str, Any]]:
        try:
            places = self.catalog.popular(limit)
        except UpstreamError as e:
            logging.warning(f"인기 장소 추천 실패, 빈 목록 반환: {e}")
            return []
        return [place.to_dict() for place in places]

    def build_context(self, user_id: str) -> Dict[str, Any]:
        """사용자의 여행 기록과 프로필에서 관심 태그, 방문 국가, 방문 장소 ID 를 모읍니다."""
        trips = [Trip.from_dict(doc) for doc in
                 self.store.query(COLLECTION_TRIPS, QueryOptions(where=[('user_id', '==', user_id)]))]

        interests, countries, visited_ids = set(), set(), set()
        for trip in trips:
            interests.update(trip.tags)
            for place in trip.places:
                visited_ids.add(place.id)
                if place.country:
                    countries.add(place.country)

        profile = self.store.find(COLLECTION_USERS, user_id)
        if profile:
            interests.update(profile.get('interests') or [])

        return {
            'context': scoring.ScoringContext(frozenset(interests), frozenset(countries)),
            'visited_ids': visited_ids,
        }

    def get_personalized(self, user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        built = self.build_context(user_id)
        context, visited_ids = built['context'], built['visited_ids']
        try:
            candidates = [p for p in self.catalog.popular(CANDIDATE_POOL_SIZE) if p.id not in visited_ids]
        except UpstreamError as e:
            logging.warning(f"개인화 추천 실패, 빈 목록 반환 (user_id: {user_id}): {e}")
            return []

        scored = [(place, scoring.score(place, context)) for place in candidates]
        ranked = scoring.rank(scored, key=lambda pair: pair[1])
        return [{**place.to_dict(), 'score': value} for place, value in ranked[:limit]]

    def get_nearby(self, latitude: float, longitude: float, radius_km: float = 5, limit: int = 10) -> List[Dict[str, Any]]:
        center = {'latitude': latitude, 'longitude': longitude}
        box = bounding_box(center, radius_km)
        try:
            candidates = self.catalog.in_latitude_band(box['southwest']['latitude'], box['northeast']['latitude'])
        except UpstreamError as e:
            logging.warning(f"주변 장소 추천 실패, 빈 목록 반환: {e}")
            return []

        within = scoring.nearby(center, candidates, radius_km)
        return [{**place.to_dict(), 'distance_km': round(distance, 3)} for place, distance in within[:limit]]

    def get_similar(self, place_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        기준 장소와 비슷한 장소를 추천합니다.
        기준 장소가 없으면 NotFoundError, 카탈로그 장애는 빈 목록으로 처리합니다.
        """
        try:
            reference = self.catalog.get(place_id)
            candidates = [p for p in self.catalog.popular(CANDIDATE_POOL_SIZE) if p.id != place_id]
        except UpstreamError as e:
            logging.warning(f"유사 장소 추천 실패, 빈 목록 반환 (place_id: {place_id}): {e}")
            return []

        scored = [(place, scoring.similarity_score(place, reference)) for place in candidates]
        ranked = scoring.rank(scored, key=lambda pair: pair[1])
        return [{**place.to_dict(), 'similarity_score': value} for place, value in ranked[:limit]]

    def current_season(self) -> str:
        return season_for_month((self.clock or now)().month)

    def get_seasonal(self, country: str, limit: int = 5) -> List[Dict[str, Any]]:
        season = self.current_season()
        try:
            places = self.catalog.seasonal(country, season, limit)
        except UpstreamError as e:
            logging.warning(f"계절 추천 실패, 빈 목록 반환 (country: {country}): {e}")
            return []
        return [{**place.to_dict(), 'season_recommended': season} for place in places]

    def get_trending(self, limit: int = 5) -> List[Dict[str, Any]]:
        """최근 생성된 여행들에서 자주 등장한 여행지를 집계합니다."""
        recent = self.store.query(COLLECTION_TRIPS, QueryOptions(
            order_by=[('created_at', DESCENDING)], limit=TRENDING_WINDOW
        ))
        counts = Counter(doc['location'] for doc in recent if doc.get('location'))

        trending = []
        for destination, count in counts.most_common(limit):
            try:
                place = self.catalog.find_destination(destination)
            except UpstreamError as e:
                logging.warning(f"트렌드 여행지 정보 조회 실패 (destination: {destination}): {e}")
                place = None
            trending.append({
                'destination': destination,
                'trend_count': count,
                'place': place.to_dict() if place else None,
            })
        return trending

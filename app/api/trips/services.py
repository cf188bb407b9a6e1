# app/api/trips/services.py
import logging
import uuid
from typing import Optional, Dict, Any, List

from app.core.errors import ConflictError, ValidationError
from app.core.security import assert_owner
from app.models.trip import Trip, Place
from app.services.firestore_service import (
    DocumentStore, QueryOptions, COLLECTION_TRIPS, ASCENDING, DESCENDING
)
from app.utils.datetime_utils import Clock, DateTimeUtils, iso_from_clock, normalize_iso

# updateTrip 으로 변경 가능한 필드. 그 외(소유자, 타임스탬프, 장소 목록)는 거부합니다.
UPDATABLE_FIELDS = frozenset({
    'title', 'location', 'coordinates', 'start_date', 'end_date',
    'trip_type', 'budget', 'description', 'tags',
})
DATE_FIELDS = ('start_date', 'end_date')


class TripService:
    """
    여행(Trip) 애그리거트의 비즈니스 로직을 담당하는 서비스 클래스.
    장소(Place)는 Trip 문서 내부의 순서 있는 리스트로 관리되며,
    모든 변경 작업은 저장소에서 문서를 읽고 → 소유자 확인 → 한 번 기록하는 흐름을 따릅니다.
    """

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None, strict_reorder: bool = True):
        self.store = store
        self.clock = clock
        self.strict_reorder = strict_reorder

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------
    def list_trips(self, user_id: str, trip_filter: str = 'all') -> List[Trip]:
        """
        사용자의 여행 목록을 조회합니다.
        - upcoming: 시작일이 현재 이후인 여행, 시작일 오름차순
        - past: 종료일이 현재 이전인 여행, 종료일 내림차순
        - all: 전체, 시작일 오름차순
        """
        where = [('user_id', '==', user_id)]
        now = iso_from_clock(self.clock)

        if trip_filter == 'upcoming':
            options = QueryOptions(where=where + [('start_date', '>=', now)], order_by=[('start_date', ASCENDING)])
        elif trip_filter == 'past':
            options = QueryOptions(where=where + [('end_date', '<', now)], order_by=[('end_date', DESCENDING)])
        elif trip_filter == 'all':
            options = QueryOptions(where=where, order_by=[('start_date', ASCENDING)])
        else:
            raise ValidationError(f"지원하지 않는 필터입니다: '{trip_filter}' (all, upcoming, past 중 하나)")

        return [Trip.from_dict(doc) for doc in self.store.query(COLLECTION_TRIPS, options)]

    def get_trip(self, trip_id: str) -> Trip:
        return Trip.from_dict(self.store.get(COLLECTION_TRIPS, trip_id))

    # ------------------------------------------------------------------
    # 생성/수정/삭제
    # ------------------------------------------------------------------
    def create_trip(self, user_id: str, data: Dict[str, Any]) -> Trip:
        """새 여행을 생성합니다. places 는 지정하지 않으면 빈 리스트로 시작합니다."""
        doc = self._normalize_dates(dict(data))
        doc['places'] = self._unique_places(doc.get('places') or [])
        doc.pop('id', None)
        doc.pop('created_at', None)
        doc.pop('updated_at', None)
        doc['user_id'] = user_id

        trip_id = self.store.put(COLLECTION_TRIPS, doc)
        logging.info(f"여행 생성 완료 (trip_id: {trip_id}, user_id: {user_id})")
        return self.get_trip(trip_id)

    def update_trip(self, trip_id: str, requester_id: str, patch: Dict[str, Any]) -> Trip:
        """허용된 필드만 기존 문서 위에 얕게 병합합니다. (last-write-wins)"""
        trip = self.get_trip(trip_id)
        assert_owner(trip, requester_id)

        forbidden = sorted(set(patch) - UPDATABLE_FIELDS)
        if forbidden:
            raise ValidationError("수정할 수 없는 필드가 포함되어 있습니다.", details={f: ["수정할 수 없는 필드입니다."] for f in forbidden})

        update_data = self._normalize_dates(dict(patch))
        # 한쪽 날짜만 바꿔도 병합 결과는 종료일 >= 시작일 이어야 합니다.
        start = update_data.get('start_date', trip.start_date)
        end = update_data.get('end_date', trip.end_date)
        if start and end and DateTimeUtils.parse_iso_datetime(end) < DateTimeUtils.parse_iso_datetime(start):
            raise ValidationError("종료일은 시작일보다 빠를 수 없습니다.", details={'endDate': ["종료일은 시작일보다 빠를 수 없습니다."]})

        return Trip.from_dict(self.store.update(COLLECTION_TRIPS, trip_id, update_data))

    def delete_trip(self, trip_id: str, requester_id: str) -> None:
        """여행을 삭제합니다. 이 여행을 참조하는 스토리는 함께 삭제하지 않습니다."""
        trip = self.get_trip(trip_id)
        assert_owner(trip, requester_id)
        self.store.delete(COLLECTION_TRIPS, trip_id)
        logging.info(f"여행 삭제 완료 (trip_id: {trip_id}, user_id: {requester_id})")

    # ------------------------------------------------------------------
    # 장소(Place) 관리
    # ------------------------------------------------------------------
    def add_place(self, trip_id: str, requester_id: str, place: Dict[str, Any]) -> List[Place]:
        """장소를 방문 순서의 맨 끝에 추가합니다. 같은 ID 가 이미 있으면 ConflictError."""
        trip = self.get_trip(trip_id)
        assert_owner(trip, requester_id)

        new_place = self._to_place(place)
        if any(p.id == new_place.id for p in trip.places):
            raise ConflictError(f"이미 여행에 추가된 장소입니다: {new_place.id}")

        places = trip.places + [new_place]
        return self._save_places(trip_id, places)

    def remove_place(self, trip_id: str, requester_id: str, place_id: str) -> List[Place]:
        """장소를 제거합니다. 이미 없는 장소라도 오류 없이 현재 목록을 반환합니다."""
        trip = self.get_trip(trip_id)
        assert_owner(trip, requester_id)

        places = [p for p in trip.places if p.id != place_id]
        if len(places) == len(trip.places):
            return trip.places
        return self._save_places(trip_id, places)

    def reorder_places(self, trip_id: str, requester_id: str, new_places: List[Dict[str, Any]]) -> List[Place]:
        """
        장소 목록 전체를 주어진 순서로 교체합니다.
        strict_reorder 가 켜져 있으면 기존 장소 ID 의 순열이어야 합니다. (누락/중복/추가 불가)
        """
        trip = self.get_trip(trip_id)
        assert_owner(trip, requester_id)

        places = [self._to_place(p) for p in new_places]
        new_ids = [p.id for p in places]
        if len(set(new_ids)) != len(new_ids):
            raise ValidationError("장소 목록에 중복된 ID 가 있습니다.")
        if self.strict_reorder and sorted(new_ids) != sorted(p.id for p in trip.places):
            raise ValidationError("재정렬 목록은 기존 장소들과 같은 구성이어야 합니다.")

        return self._save_places(trip_id, places)

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    def _save_places(self, trip_id: str, places: List[Place]) -> List[Place]:
        updated = self.store.update(COLLECTION_TRIPS, trip_id, {'places': [p.to_dict() for p in places]})
        return Trip.from_dict(updated).places

    @staticmethod
    def _to_place(data: Dict[str, Any]) -> Place:
        data = dict(data)
        data['id'] = data.get('id') or uuid.uuid4().hex
        return Place.from_dict(data)

    def _unique_places(self, places: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        result = [self._to_place(p) for p in places]
        ids = [p.id for p in result]
        if len(set(ids)) != len(ids):
            raise ValidationError("장소 목록에 중복된 ID 가 있습니다.")
        return [p.to_dict() for p in result]

    @staticmethod
    def _normalize_dates(data: Dict[str, Any]) -> Dict[str, Any]:
        for field_name in DATE_FIELDS:
            if field_name in data:
                try:
                    data[field_name] = normalize_iso(data[field_name], field_name)
                except ValueError as e:
                    raise ValidationError(str(e))
        return data

# app/models/trip.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any
import logging


class TripType(Enum):
    SOLO = "Solo"
    FRIENDS = "Friends"
    FAMILY = "Family"
    COUPLE = "Couple"


class BudgetLevel(Enum):
    BUDGET = "Budget"
    MODERATE = "Moderate"
    LUXURY = "Luxury"


class PlaceType(Enum):
    RESTAURANT = "restaurant"
    ATTRACTION = "attraction"
    HOTEL = "hotel"
    OTHER = "other"


def _enum_or_none(enum_cls, value, owner_id):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        logging.warning(f"Invalid {enum_cls.__name__} value '{value}' for {owner_id}. Ignoring.")
        return None


@dataclass
class Coordinates:
    latitude: float
    longitude: float

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Coordinates"]:
        if not data:
            return None
        return cls(latitude=float(data['latitude']), longitude=float(data['longitude']))


@dataclass
class Place:
    """Trip 문서 내부에 순서대로 저장되는 방문 장소."""
    id: str
    name: str
    type: PlaceType = PlaceType.OTHER
    address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            type=_enum_or_none(PlaceType, data.get('type'), data['id']) or PlaceType.OTHER,
            address=data.get('address'),
            coordinates=Coordinates.from_dict(data.get('coordinates')),
            notes=data.get('notes'),
            country=data.get('country'),
        )

    def to_dict(self) -> Dict[str, Any]:
        place_dict = asdict(self)
        place_dict['type'] = self.type.value
        return place_dict


@dataclass
class Trip:
    """
    Firestore 'trips' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    places 의 순서는 방문 순서이며, 소유자(user_id)만 수정/삭제할 수 있습니다.
    """
    id: str
    user_id: str
    title: str
    start_date: str
    end_date: str
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    trip_type: Optional[TripType] = None
    budget: Optional[BudgetLevel] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    places: List[Place] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trip":
        """Firestore 문서(dict)로부터 Trip 인스턴스를 생성합니다. Enum 문자열은 자동 변환됩니다."""
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            title=data.get('title', ''),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            location=data.get('location'),
            coordinates=Coordinates.from_dict(data.get('coordinates')),
            trip_type=_enum_or_none(TripType, data.get('trip_type'), data['id']),
            budget=_enum_or_none(BudgetLevel, data.get('budget'), data['id']),
            description=data.get('description'),
            tags=list(data.get('tags') or []),
            places=[Place.from_dict(p) for p in data.get('places') or []],
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        trip_dict = asdict(self)
        trip_dict['trip_type'] = self.trip_type.value if self.trip_type else None
        trip_dict['budget'] = self.budget.value if self.budget else None
        trip_dict['places'] = [p.to_dict() for p in self.places]
        return trip_dict

# app/models/place.py
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any

from app.models.trip import Coordinates


@dataclass
class CatalogPlace:
    """
    추천에 사용되는 장소 카탈로그('places' 컬렉션) 문서.
    Trip 안에 들어가는 Place 와 달리 평점, 방문 수, 계절 태그 등 추천용 속성을 가집니다.
    """
    id: str
    name: str
    country: Optional[str] = None
    city: Optional[str] = None
    type: str = 'attraction'
    location: Optional[str] = None
    description: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    tags: List[str] = field(default_factory=list)
    seasonal_tags: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    visit_count: int = 0
    popularity: float = 0
    crowd_level: float = 0
    # 일정 생성에 쓰이는 속성
    average_duration: Optional[float] = None
    cost: Optional[str] = None
    activity_type: Optional[str] = None
    best_time_of_day: Optional[str] = None
    indoors: bool = False
    cost_level: str = 'medium'
    has_public_transport: bool = False
    car_friendly: bool = False
    walkable: bool = False
    bike_friendly: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogPlace":
        rating = data.get('rating')
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            country=data.get('country'),
            city=data.get('city'),
            type=data.get('type') or 'attraction',
            location=data.get('location'),
            description=data.get('description'),
            coordinates=Coordinates.from_dict(data.get('coordinates')),
            tags=list(data.get('tags') or []),
            seasonal_tags=list(data.get('seasonal_tags') or []),
            rating=float(rating) if rating is not None else None,
            visit_count=int(data.get('visit_count') or 0),
            popularity=float(data.get('popularity') or 0),
            crowd_level=float(data.get('crowd_level') or 0),
            average_duration=data.get('average_duration'),
            cost=data.get('cost'),
            activity_type=data.get('activity_type'),
            best_time_of_day=data.get('best_time_of_day'),
            indoors=bool(data.get('indoors', False)),
            cost_level=data.get('cost_level') or 'medium',
            has_public_transport=bool(data.get('has_public_transport', False)),
            car_friendly=bool(data.get('car_friendly', False)),
            walkable=bool(data.get('walkable', False)),
            bike_friendly=bool(data.get('bike_friendly', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

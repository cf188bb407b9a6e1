# app/models/user.py
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List


@dataclass
class UserStats:
    """집계용 통계. 조회 시점에 다시 계산되며 원본 데이터는 아닙니다."""
    trips_count: int = 0
    stories_count: int = 0
    followers_count: int = 0
    following_count: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserStats":
        data = data or {}
        return cls(
            trips_count=int(data.get('trips_count', 0)),
            stories_count=int(data.get('stories_count', 0)),
            followers_count=int(data.get('followers_count', 0)),
            following_count=int(data.get('following_count', 0)),
        )


@dataclass
class UserPreferences:
    notifications_enabled: bool = True
    privacy_settings: str = 'public'

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        data = data or {}
        return cls(
            notifications_enabled=bool(data.get('notifications_enabled', True)),
            privacy_settings=data.get('privacy_settings', 'public'),
        )


@dataclass
class UserProfile:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID 는 인증 제공자의 uid 와 같습니다.
    """
    uid: str
    email: Optional[str] = None
    display_name: str = ''
    photo_url: str = ''
    bio: str = ''
    location: str = ''
    joined_date: Optional[str] = None
    social_links: Dict[str, str] = field(default_factory=dict)
    interests: List[str] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    stats: UserStats = field(default_factory=UserStats)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            uid=data.get('uid') or data['id'],
            email=data.get('email'),
            display_name=data.get('display_name') or '',
            photo_url=data.get('photo_url') or '',
            bio=data.get('bio') or '',
            location=data.get('location') or '',
            joined_date=data.get('joined_date'),
            social_links=dict(data.get('social_links') or {}),
            interests=list(data.get('interests') or []),
            preferences=UserPreferences.from_dict(data.get('preferences')),
            stats=UserStats.from_dict(data.get('stats')),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        user_dict = asdict(self)
        user_dict['id'] = self.uid
        return user_dict

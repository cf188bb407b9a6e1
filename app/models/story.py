# app/models/story.py
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any, Set

from app.models.trip import Coordinates


@dataclass
class Comment:
    """Story 문서 내부에 작성 순서대로 저장되는 댓글."""
    id: str
    user_id: str
    text: str
    created_at: str
    user_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            text=data.get('text', ''),
            created_at=data.get('created_at'),
            user_name=data.get('user_name'),
        )


@dataclass
class Story:
    """
    Firestore 'stories' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    likes 는 사용자 ID 의 집합이며, 저장 시에만 정렬된 리스트로 변환됩니다.
    """
    id: str
    user_id: str
    title: str
    content: str
    location: Optional[str] = None
    image_url: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    is_public: bool = True
    trip_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    likes: Set[str] = field(default_factory=set)
    comments: List[Comment] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Story":
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            title=data.get('title', ''),
            content=data.get('content', ''),
            location=data.get('location'),
            image_url=data.get('image_url'),
            coordinates=Coordinates.from_dict(data.get('coordinates')),
            is_public=bool(data.get('is_public', True)),
            trip_id=data.get('trip_id'),
            tags=list(data.get('tags') or []),
            likes=set(data.get('likes') or []),
            comments=[Comment.from_dict(c) for c in data.get('comments') or []],
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        story_dict = asdict(self)
        story_dict['likes'] = sorted(self.likes)
        story_dict['like_count'] = self.like_count
        return story_dict

# app/api/stories/services.py
import logging
import uuid
from typing import Optional, Dict, Any, Tuple, List

from app.core.errors import ValidationError
from app.core.security import assert_owner
from app.models.story import Story, Comment
from app.services.firestore_service import (
    DocumentStore, QueryOptions, COLLECTION_STORIES, COLLECTION_TRIPS, DESCENDING
)
from app.utils.datetime_utils import Clock, iso_from_clock

UPDATABLE_FIELDS = frozenset({
    'title', 'content', 'location', 'image_url', 'coordinates', 'is_public', 'trip_id', 'tags',
})


class StoryService:
    """
    스토리(여행 게시글) 관련 비즈니스 로직을 담당하는 서비스 클래스.
    좋아요는 사용자 ID 집합, 댓글은 작성 순서 리스트로 스토리 문서 안에 저장됩니다.
    """

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------
    def list_public_stories(self, limit: int, cursor: Optional[str] = None) -> Tuple[List[Story], Optional[str], bool]:
        """
        공개 스토리 피드를 최신순으로 페이지네이션하여 조회합니다.
        반환값: (stories, next_cursor, has_more)
        - next_cursor: 이번 페이지 마지막 스토리 ID (없으면 None)
        - has_more: 이번 페이지가 limit 만큼 꽉 찼는지 여부
        """
        options = QueryOptions(
            where=[('is_public', '==', True)],
            order_by=[('created_at', DESCENDING)],
            limit=limit,
            cursor=cursor,
        )
        stories = [Story.from_dict(doc) for doc in self.store.query(COLLECTION_STORIES, options)]
        next_cursor = stories[-1].id if stories else None
        return stories, next_cursor, len(stories) == limit

    def list_user_stories(self, user_id: str) -> List[Story]:
        """사용자의 스토리 전체(공개/비공개)를 최신순으로 조회합니다."""
        options = QueryOptions(where=[('user_id', '==', user_id)], order_by=[('created_at', DESCENDING)])
        return [Story.from_dict(doc) for doc in self.store.query(COLLECTION_STORIES, options)]

    def list_trip_stories(self, trip_id: str) -> List[Story]:
        """특정 여행에 연결된 스토리를 최신순으로 조회합니다."""
        options = QueryOptions(where=[('trip_id', '==', trip_id)], order_by=[('created_at', DESCENDING)])
        return [Story.from_dict(doc) for doc in self.store.query(COLLECTION_STORIES, options)]

    def get_story(self, story_id: str) -> Story:
        return Story.from_dict(self.store.get(COLLECTION_STORIES, story_id))

    # ------------------------------------------------------------------
    # 생성/수정/삭제
    # ------------------------------------------------------------------
    def create_story(self, user_id: str, data: Dict[str, Any]) -> Story:
        """새 스토리를 생성합니다. 좋아요와 댓글은 비어 있는 상태로 시작합니다."""
        doc = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        if doc.get('trip_id'):
            self._check_trip_link(doc['trip_id'], user_id)
        doc.update({'user_id': user_id, 'likes': [], 'like_count': 0, 'comments': []})
        doc.setdefault('is_public', True)

        story_id = self.store.put(COLLECTION_STORIES, doc)
        logging.info(f"스토리 생성 완료 (story_id: {story_id}, user_id: {user_id})")
        return self.get_story(story_id)

    def update_story(self, story_id: str, requester_id: str, patch: Dict[str, Any]) -> Story:
        story = self.get_story(story_id)
        assert_owner(story, requester_id)

        forbidden = sorted(set(patch) - UPDATABLE_FIELDS)
        if forbidden:
            raise ValidationError("수정할 수 없는 필드가 포함되어 있습니다.", details={f: ["수정할 수 없는 필드입니다."] for f in forbidden})
        if patch.get('trip_id'):
            self._check_trip_link(patch['trip_id'], requester_id)

        return Story.from_dict(self.store.update(COLLECTION_STORIES, story_id, dict(patch)))

    def delete_story(self, story_id: str, requester_id: str) -> None:
        story = self.get_story(story_id)
        assert_owner(story, requester_id)
        self.store.delete(COLLECTION_STORIES, story_id)
        logging.info(f"스토리 삭제 완료 (story_id: {story_id}, user_id: {requester_id})")

    # ------------------------------------------------------------------
    # 좋아요 / 댓글 (작성자가 아니어도 가능)
    # ------------------------------------------------------------------
    def toggle_like(self, story_id: str, user_id: str) -> Dict[str, Any]:
        """
        좋아요를 토글합니다. 이미 눌렀으면 취소, 아니면 추가합니다.
        같은 사용자가 두 번 호출하면 원래 상태로 돌아갑니다.
        읽기와 쓰기를 한 트랜잭션으로 묶어 동시에 누른 다른 사용자의 좋아요를 덮어쓰지 않습니다.
        """
        def _toggle(doc: Dict[str, Any]):
            story = Story.from_dict(doc)
            liked = user_id not in story.likes
            if liked:
                story.likes.add(user_id)
            else:
                story.likes.discard(user_id)
            changes = {'likes': sorted(story.likes), 'like_count': story.like_count}
            return changes, {'liked': liked, 'like_count': story.like_count}

        return self.store.transact(COLLECTION_STORIES, story_id, _toggle)

    def add_comment(self, story_id: str, user_id: str, text: str, user_name: Optional[str] = None) -> Comment:
        """댓글을 스토리의 댓글 목록 끝에 추가합니다. 공백만 있는 댓글은 거부합니다."""
        text = (text or '').strip()
        if not text:
            raise ValidationError("댓글 내용을 입력해주세요.")

        comment = Comment(
            id=uuid.uuid4().hex,
            user_id=user_id,
            user_name=user_name,
            text=text,
            created_at=iso_from_clock(self.clock),
        )

        def _append(doc: Dict[str, Any]):
            story = Story.from_dict(doc)
            story.comments.append(comment)
            return {'comments': story.to_dict()['comments']}, comment

        return self.store.transact(COLLECTION_STORIES, story_id, _append)

    def _check_trip_link(self, trip_id: str, user_id: str) -> None:
        """스토리는 작성자 본인의 여행에만 연결할 수 있습니다."""
        trip = self.store.find(COLLECTION_TRIPS, trip_id)
        if trip is None:
            raise ValidationError(f"연결하려는 여행이 존재하지 않습니다: {trip_id}")
        assert_owner(trip, user_id)

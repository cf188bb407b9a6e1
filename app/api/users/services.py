# app/api/users/services.py
import logging
from typing import Optional, Dict, Any, List

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.user import UserProfile, UserStats
from app.services.firestore_service import (
    DocumentStore, QueryOptions,
    COLLECTION_USERS, COLLECTION_TRIPS, COLLECTION_STORIES, COLLECTION_FOLLOWERS
)
from app.services.identity_service import IdentityProvider
from app.utils.datetime_utils import Clock, iso_from_clock

# PUT /api/users/profile 로 수정 가능한 필드
UPDATABLE_FIELDS = frozenset({
    'display_name', 'photo_url', 'bio', 'location', 'social_links', 'interests', 'preferences',
})


def follow_doc_id(following_id: str, follower_id: str) -> str:
    return f"{following_id}_{follower_id}"


class UserService:
    """
    사용자 프로필과 팔로우 관계를 담당하는 서비스 클래스.
    프로필 문서는 인증된 사용자가 처음 조회할 때 인증 계정 정보로부터 생성됩니다.
    """

    def __init__(self, store: DocumentStore, identity_provider: IdentityProvider, clock: Optional[Clock] = None):
        self.store = store
        self.identity_provider = identity_provider
        self.clock = clock

    # ------------------------------------------------------------------
    # 프로필
    # ------------------------------------------------------------------
    def find_profile(self, uid: str) -> Optional[UserProfile]:
        doc = self.store.find(COLLECTION_USERS, uid)
        return UserProfile.from_dict(doc) if doc else None

    def ensure_profile(self, uid: str, user_info: Optional[Dict[str, Any]] = None) -> UserProfile:
        """프로필이 없으면 인증 계정 정보로 새로 생성하고, 있으면 그대로 반환합니다."""
        profile = self.find_profile(uid)
        if profile:
            return profile

        info = user_info or self.identity_provider.get_user(uid)
        new_profile = UserProfile(
            uid=uid,
            email=info.get('email'),
            display_name=info.get('display_name') or '',
            photo_url=info.get('photo_url') or '',
            joined_date=info.get('joined_date') or iso_from_clock(self.clock),
        )
        self.store.put(COLLECTION_USERS, new_profile.to_dict())
        logging.info(f"사용자 프로필 생성 완료 (uid: {uid})")
        return self.find_profile(uid)

    def get_profile(self, uid: str, requester_id: str) -> UserProfile:
        """
        프로필을 조회합니다. 본인 프로필이 아직 없으면 생성하고,
        다른 사용자의 프로필이 없으면 NotFoundError 를 던집니다.
        통계(stats)는 조회할 때마다 다시 계산합니다.
        """
        if uid == requester_id:
            profile = self.ensure_profile(uid)
        else:
            profile = self.find_profile(uid)
            if profile is None:
                raise NotFoundError("사용자를 찾을 수 없습니다.")

        profile.stats = self._compute_stats(uid)
        return profile

    def update_profile(self, uid: str, patch: Dict[str, Any]) -> UserProfile:
        forbidden = sorted(set(patch) - UPDATABLE_FIELDS)
        if forbidden:
            raise ValidationError("수정할 수 없는 필드가 포함되어 있습니다.", details={f: ["수정할 수 없는 필드입니다."] for f in forbidden})

        self.ensure_profile(uid)
        updated = UserProfile.from_dict(self.store.update(COLLECTION_USERS, uid, dict(patch)))
        updated.stats = self._compute_stats(uid)
        return updated

    # ------------------------------------------------------------------
    # 팔로우
    # ------------------------------------------------------------------
    def follow(self, follower_id: str, following_id: str) -> None:
        if follower_id == following_id:
            raise ValidationError("자기 자신은 팔로우할 수 없습니다.")
        if self.find_profile(following_id) is None:
            raise NotFoundError("팔로우할 사용자를 찾을 수 없습니다.")

        doc_id = follow_doc_id(following_id, follower_id)
        if self.store.find(COLLECTION_FOLLOWERS, doc_id) is not None:
            raise ConflictError("이미 팔로우 중인 사용자입니다.")

        self.store.put(COLLECTION_FOLLOWERS, {
            'id': doc_id,
            'follower_id': follower_id,
            'following_id': following_id,
        })
        logging.info(f"팔로우 완료 ({follower_id} -> {following_id})")

    def unfollow(self, follower_id: str, following_id: str) -> None:
        """팔로우 관계를 해제합니다. 팔로우 중이 아니어도 오류 없이 끝납니다."""
        doc_id = follow_doc_id(following_id, follower_id)
        if self.store.find(COLLECTION_FOLLOWERS, doc_id) is None:
            return
        self.store.delete(COLLECTION_FOLLOWERS, doc_id)
        logging.info(f"언팔로우 완료 ({follower_id} -> {following_id})")

    def list_followers(self, uid: str) -> List[UserProfile]:
        docs = self.store.query(COLLECTION_FOLLOWERS, QueryOptions(where=[('following_id', '==', uid)]))
        return self._profiles([doc['follower_id'] for doc in docs])

    def list_following(self, uid: str) -> List[UserProfile]:
        docs = self.store.query(COLLECTION_FOLLOWERS, QueryOptions(where=[('follower_id', '==', uid)]))
        return self._profiles([doc['following_id'] for doc in docs])

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    def _profiles(self, uids: List[str]) -> List[UserProfile]:
        # 탈퇴 등으로 프로필이 없는 사용자는 건너뜁니다.
        profiles = (self.find_profile(uid) for uid in uids)
        return [p for p in profiles if p is not None]

    def _count(self, collection: str, field_path: str, value: str) -> int:
        return len(self.store.query(collection, QueryOptions(where=[(field_path, '==', value)])))

    def _compute_stats(self, uid: str) -> UserStats:
        return UserStats(
            trips_count=self._count(COLLECTION_TRIPS, 'user_id', uid),
            stories_count=self._count(COLLECTION_STORIES, 'user_id', uid),
            followers_count=self._count(COLLECTION_FOLLOWERS, 'following_id', uid),
            following_count=self._count(COLLECTION_FOLLOWERS, 'follower_id', uid),
        )

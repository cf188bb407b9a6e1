# app/api/auth/services.py
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from app.api.users.services import UserService
from app.models.user import UserProfile
from app.services.firestore_service import DocumentStore, COLLECTION_REVOKED_TOKENS
from app.services.identity_service import IdentityProvider
from app.utils.datetime_utils import Clock, DateTimeUtils, iso_from_clock


class AuthService:
    """
    인증 관련 비즈니스 로직.
    - 외부 인증 제공자(Firebase Auth)의 ID 토큰을 검증해 앱 사용자로 연결
    - 로그아웃된 JWT 의 jti 를 'revoked_tokens' 컬렉션으로 관리 (Blocklist)
    """

    def __init__(self, store: DocumentStore, identity_provider: IdentityProvider,
                 user_service: UserService, clock: Optional[Clock] = None):
        self.store = store
        self.identity_provider = identity_provider
        self.user_service = user_service
        self.clock = clock

    def register(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        """인증 계정과 프로필 문서를 만들고, 클라이언트 로그인을 위한 커스텀 토큰을 돌려줍니다."""
        user_info = self.identity_provider.create_user(email, password, display_name)
        profile = self.user_service.ensure_profile(user_info['uid'], user_info)
        custom_token = self.identity_provider.create_custom_token(user_info['uid'])
        return {'profile': profile, 'custom_token': custom_token}

    def authenticate(self, id_token: str) -> UserProfile:
        """
        ID 토큰을 검증하고 해당 사용자의 프로필을 반환합니다. (없으면 생성)
        :raises UnauthorizedError: 토큰 검증 실패
        """
        verified = self.identity_provider.verify_token(id_token)
        claims = verified.get('claims') or {}
        user_info = {
            'email': claims.get('email'),
            'display_name': claims.get('name'),
            'photo_url': claims.get('picture'),
        }
        return self.user_service.ensure_profile(verified['uid'], user_info)

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime) -> None:
        """전달받은 토큰의 jti를 만료 시간과 함께 저장합니다."""
        self.store.put(COLLECTION_REVOKED_TOKENS, {
            'id': jti,
            'revoked_at': iso_from_clock(self.clock),
            'expires_at': DateTimeUtils.to_iso_string(expires),
        })

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        return self.store.find(COLLECTION_REVOKED_TOKENS, jwt_payload['jti']) is not None

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int) -> None:
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")

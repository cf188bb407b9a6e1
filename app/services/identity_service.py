# app/services/identity_service.py
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Protocol

from firebase_admin import auth as firebase_auth
from firebase_admin.exceptions import FirebaseError

from app.core.errors import ConflictError, NotFoundError, UnauthorizedError, UpstreamError, ValidationError
from app.utils.datetime_utils import DateTimeUtils


class IdentityProvider(Protocol):
    def verify_token(self, id_token: str) -> Dict[str, Any]:
        ...

    def get_user(self, uid: str) -> Dict[str, Any]:
        ...

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        ...

    def create_custom_token(self, uid: str) -> str:
        ...


class FirebaseIdentityService:
    """
    Firebase Authentication 연동을 담당하는 서비스 클래스입니다.
    클라이언트가 보낸 ID 토큰을 검증하고, 계정 생성/조회를 처리합니다.
    """

    @staticmethod
    def _to_user_info(record) -> Dict[str, Any]:
        created_ms = record.user_metadata.creation_timestamp if record.user_metadata else None
        joined = (DateTimeUtils.to_iso_string(datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc))
                  if created_ms else None)
        return {
            'uid': record.uid,
            'email': record.email,
            'display_name': record.display_name or '',
            'photo_url': record.photo_url or '',
            'joined_date': joined,
        }

    def verify_token(self, id_token: str) -> Dict[str, Any]:
        """
        ID 토큰을 검증하고 {uid, claims} 를 반환합니다.
        :raises UnauthorizedError: 토큰이 유효하지 않거나 만료된 경우
        """
        try:
            claims = firebase_auth.verify_id_token(id_token)
        except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError, ValueError) as e:
            logging.warning(f"ID 토큰 검증 실패: {e}")
            raise UnauthorizedError("유효하지 않은 인증 토큰입니다.")
        except firebase_auth.CertificateFetchError as e:
            logging.error(f"Firebase 공개키 조회 실패: {e}", exc_info=True)
            raise UpstreamError("인증 서버에 연결할 수 없습니다.")
        return {'uid': claims['uid'], 'claims': claims}

    def get_user(self, uid: str) -> Dict[str, Any]:
        try:
            return self._to_user_info(firebase_auth.get_user(uid))
        except firebase_auth.UserNotFoundError:
            raise NotFoundError(f"인증 계정을 찾을 수 없습니다: {uid}")
        except FirebaseError as e:
            logging.error(f"Firebase 사용자 조회 실패 (uid: {uid}): {e}", exc_info=True)
            raise UpstreamError()

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        try:
            record = firebase_auth.create_user(email=email, password=password, display_name=display_name)
        except firebase_auth.EmailAlreadyExistsError:
            raise ConflictError("이미 가입된 이메일입니다.")
        except ValueError as e:
            raise ValidationError(str(e))
        except FirebaseError as e:
            logging.error(f"Firebase 계정 생성 실패 (email: {email}): {e}", exc_info=True)
            raise UpstreamError()
        logging.info(f"Firebase 계정 생성 완료 (uid: {record.uid})")
        return self._to_user_info(record)

    def create_custom_token(self, uid: str) -> str:
        try:
            token = firebase_auth.create_custom_token(uid)
        except FirebaseError as e:
            logging.error(f"커스텀 토큰 생성 실패 (uid: {uid}): {e}", exc_info=True)
            raise UpstreamError()
        return token.decode('utf-8') if isinstance(token, bytes) else token

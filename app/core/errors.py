# app/core/errors.py
"""
애플리케이션 전역에서 사용하는 예외 계층.

서비스 계층은 아래 예외만 던지고, HTTP 상태 코드로의 변환은
app/__init__.py 에 등록된 전역 에러 핸들러가 담당합니다.
"""
from typing import Any, Dict, Optional


class TravelAppError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"
    default_message = "서버 내부에서 예상치 못한 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        body = {"success": False, "error_code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(TravelAppError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "요청한 리소스를 찾을 수 없습니다."


class ForbiddenError(TravelAppError):
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "이 리소스에 대한 권한이 없습니다."


class ValidationError(TravelAppError):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "입력값 유효성 검사에 실패했습니다."


class ConflictError(TravelAppError):
    status_code = 409
    error_code = "CONFLICT"
    default_message = "이미 존재하는 리소스입니다."


class UnauthorizedError(TravelAppError):
    status_code = 401
    error_code = "UNAUTHORIZED"
    default_message = "인증이 필요합니다."


class UpstreamError(TravelAppError):
    """외부 API(생성형 AI, 장소 카탈로그 등) 호출 실패."""
    error_code = "UPSTREAM_ERROR"
    default_message = "외부 서비스 호출 중 오류가 발생했습니다."


class StoreError(TravelAppError):
    """저장소(Firestore) 접근 실패."""
    error_code = "STORE_ERROR"
    default_message = "데이터 저장소 처리 중 오류가 발생했습니다."


class InvalidQueryError(StoreError):
    """저장소가 만족시킬 수 없는 쿼리 (미지원 연산자, 인덱스 누락 등)."""
    error_code = "INVALID_QUERY"
    default_message = "저장소가 처리할 수 없는 쿼리입니다."

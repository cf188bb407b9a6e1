# app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. 모든 시간 관련 작업을 표준화
2. 문서에 저장되는 시각은 항상 UTC ISO-8601 문자열('Z' 접미사)로 통일
3. 문자열 비교만으로 날짜 필터(예정/지난 여행)가 동작하도록 포맷 고정
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any, Callable, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 모든 문서 시각의 고정 포맷 (마이크로초까지 고정 자릿수 → 사전순 == 시간순)
ISO_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def today() -> date:
        """오늘 날짜를 반환"""
        return datetime.now(timezone.utc).date()

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime 객체로 파싱

        지원 포맷:
        - 2025-01-15
        - 2025-01-15T10:30:00Z
        - 2025-01-15T10:30:00+09:00
        - 2025-01-15T10:30:00.123456Z
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # timezone-naive인 경우 UTC로 가정
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 고정 자릿수 UTC ISO 문자열로 변환"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)

    @staticmethod
    def normalize(value: Any, field_name: str = "datetime") -> str:
        """
        API 요청에서 받은 날짜 값을 저장용 ISO 문자열로 정규화

        Args:
            value: 문자열, date, datetime
            field_name: 필드명 (오류 메시지용)

        Raises:
            ValueError: 잘못된 형식이거나 파싱할 수 없는 경우
        """
        if value is None:
            raise ValueError(f"{field_name}은 필수 필드입니다")
        if isinstance(value, datetime):
            return DateTimeUtils.to_iso_string(value)
        if isinstance(value, date):
            return DateTimeUtils.to_iso_string(datetime.combine(value, time.min))
        if isinstance(value, str):
            return DateTimeUtils.to_iso_string(DateTimeUtils.parse_iso_datetime(value))
        raise ValueError(f"{field_name}은 문자열 또는 date/datetime 객체여야 합니다")

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 timestamp 필드를 ISO 문자열로 변환

        변환 규칙:
        - Firestore timestamp / datetime -> ISO 문자열
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.to_iso_string(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        return obj


# 편의를 위한 글로벌 함수들
def now() -> datetime:
    """현재 UTC 시간 반환"""
    return DateTimeUtils.now()

def now_iso() -> str:
    """현재 UTC 시간을 저장용 ISO 문자열로 반환"""
    return DateTimeUtils.to_iso_string(DateTimeUtils.now())

def parse_iso(iso_string: str) -> datetime:
    """ISO 문자열을 datetime으로 파싱"""
    return DateTimeUtils.parse_iso_datetime(iso_string)

def to_iso(dt: datetime) -> str:
    """datetime을 ISO 문자열로 변환"""
    return DateTimeUtils.to_iso_string(dt)

def normalize_iso(value: Any, field_name: str = "datetime") -> str:
    """날짜 값을 저장용 ISO 문자열로 정규화"""
    return DateTimeUtils.normalize(value, field_name)


# 서비스에 주입되는 시계 타입. 테스트에서 고정 시각을 넣기 위해 사용합니다.
Clock = Callable[[], datetime]


def iso_from_clock(clock: Optional[Clock]) -> str:
    return to_iso((clock or now)())

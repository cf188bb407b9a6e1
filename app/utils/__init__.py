"""
유틸리티 모듈 패키지

이 패키지는 프로젝트 전체에서 공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .datetime_utils import (
    DateTimeUtils,
    now, now_iso, parse_iso, to_iso, normalize_iso
)
from .geo_utils import distance_km, is_within_radius, bounding_box

__all__ = [
    'DateTimeUtils',
    'now', 'now_iso', 'parse_iso', 'to_iso', 'normalize_iso',
    'distance_km', 'is_within_radius', 'bounding_box'
]

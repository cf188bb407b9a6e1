# app/api/recommendations/scoring.py
"""
추천 점수 계산 함수 모음.

모든 함수는 입력만으로 결과가 정해지는 순수 함수입니다. (I/O, 부수효과 없음)
후보(candidate)는 tags / country / rating / coordinates 속성을 가진 객체(CatalogPlace 등)입니다.
"""
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, List, Sequence, Tuple, TypeVar

from app.utils.geo_utils import distance_km

T = TypeVar('T')

INTEREST_TAG_WEIGHT = 2
COUNTRY_AFFINITY_WEIGHT = 1
SHARED_TAG_WEIGHT = 2
SIMILAR_RATING_WEIGHT = 1
SIMILAR_RATING_THRESHOLD = 0.5


@dataclass(frozen=True)
class ScoringContext:
    """개인화 점수 계산에 필요한 사용자 맥락."""
    user_interests: FrozenSet[str] = frozenset()
    visited_countries: FrozenSet[str] = frozenset()


def score(candidate: Any, context: ScoringContext) -> float:
    """
    개인화 추천 점수.
    관심 태그 하나당 +2, 방문했던 국가면 +1, 평점의 절반을 인기도 항으로 더합니다.
    """
    total = 0.0
    total += INTEREST_TAG_WEIGHT * len(set(candidate.tags or []) & context.user_interests)
    if candidate.country is not None and candidate.country in context.visited_countries:
        total += COUNTRY_AFFINITY_WEIGHT
    total += (candidate.rating or 0) / 2
    return total


def similarity_score(candidate: Any, reference: Any) -> float:
    """기준 장소와의 유사도. 공유 태그 하나당 +2, 같은 국가 +1, 평점 차이 0.5 미만 +1 (평점이 없거나 0 이면 제외)."""
    total = 0.0
    total += SHARED_TAG_WEIGHT * len(set(candidate.tags or []) & set(reference.tags or []))
    if candidate.country is not None and candidate.country == reference.country:
        total += COUNTRY_AFFINITY_WEIGHT
    if candidate.rating and reference.rating:
        if abs(candidate.rating - reference.rating) < SIMILAR_RATING_THRESHOLD:
            total += SIMILAR_RATING_WEIGHT
    return total


def rank(candidates: Iterable[T], key: Callable[[T], float]) -> List[T]:
    """점수 내림차순 정렬. 동점이면 입력 순서를 유지합니다."""
    return sorted(candidates, key=key, reverse=True)


def nearby(center: Any, candidates: Sequence[T], radius_km: float) -> List[Tuple[T, float]]:
    """
    중심점으로부터 radius_km 이내의 후보를 (후보, 거리) 쌍으로 거리 오름차순 반환합니다.
    좌표가 없는 후보는 제외합니다.
    """
    within = []
    for candidate in candidates:
        if candidate.coordinates is None:
            continue
        distance = distance_km(center, candidate.coordinates)
        if distance <= radius_km:
            within.append((candidate, distance))
    return sorted(within, key=lambda pair: pair[1])

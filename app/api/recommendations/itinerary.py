# app/api/recommendations/itinerary.py
"""
규칙 기반 여행 일정 생성기.

목적지 카탈로그 정보와 사용자 선호(관심사, 예산)로
일자별 활동, 숙소, 교통수단, 예상 경비를 계산합니다.
"""
import logging
import math
from typing import Optional, Dict, Any, List

from app.api.recommendations.services import PlaceCatalog
from app.core.errors import NotFoundError, UpstreamError
from app.models.place import CatalogPlace
from app.models.trip import BudgetLevel
from app.services.openai_service import OpenAIService

TIME_ORDER = {'morning': 1, 'afternoon': 2, 'evening': 3, 'night': 4}

COST_RANK = {'Free': 0, '$': 1, '$$': 2, '$$$': 3, '$$$$': 4}

MEAL_COST = {BudgetLevel.BUDGET: '$', BudgetLevel.MODERATE: '$$', BudgetLevel.LUXURY: '$$$'}

ACCOMMODATION_TYPES = {
    BudgetLevel.BUDGET: ['hostel', 'guesthouse', 'budget_hotel'],
    BudgetLevel.MODERATE: ['hotel', 'apartment', 'bed_and_breakfast'],
    BudgetLevel.LUXURY: ['luxury_hotel', 'resort', 'villa'],
}

GENERIC_ACCOMMODATIONS = {
    BudgetLevel.BUDGET: [
        {'name': 'Budget Hostel', 'type': 'hostel', 'price_range': '$',
         'amenities': ['Free WiFi', 'Shared Kitchen', 'Locker Storage']},
        {'name': 'Affordable Guesthouse', 'type': 'guesthouse', 'price_range': '$-$$',
         'amenities': ['Free Breakfast', 'WiFi', 'Air Conditioning']},
    ],
    BudgetLevel.MODERATE: [
        {'name': 'Mid-range Hotel', 'type': 'hotel', 'price_range': '$$$',
         'amenities': ['WiFi', 'Breakfast', 'Air Conditioning', 'TV']},
        {'name': 'Vacation Apartment', 'type': 'apartment', 'price_range': '$$-$$$',
         'amenities': ['Kitchen', 'Washing Machine', 'WiFi', 'Living Area']},
    ],
    BudgetLevel.LUXURY: [
        {'name': 'Luxury Resort', 'type': 'resort', 'price_range': '$$$$$',
         'amenities': ['Spa', 'Pool', 'Fine Dining', 'Concierge Service']},
        {'name': 'Boutique Hotel', 'type': 'luxury_hotel', 'price_range': '$$$$',
         'amenities': ['Room Service', 'Gym', 'Restaurant', 'Bar']},
    ],
}

# 하루 기준 비용 (USD)
DAILY_BASE_COSTS = {
    BudgetLevel.BUDGET: {'accommodation': 50, 'food': 30, 'transportation': 15, 'activities': 20},
    BudgetLevel.MODERATE: {'accommodation': 150, 'food': 80, 'transportation': 40, 'activities': 60},
    BudgetLevel.LUXURY: {'accommodation': 300, 'food': 150, 'transportation': 80, 'activities': 100},
}

COST_MULTIPLIER = {'low': 0.7, 'medium': 1.0, 'high': 1.5}

# 예전 클라이언트가 보내던 소문자 예산 값도 받아줍니다.
BUDGET_ALIASES = {
    'budget': BudgetLevel.BUDGET,
    'moderate': BudgetLevel.MODERATE,
    'mid-range': BudgetLevel.MODERATE,
    'luxury': BudgetLevel.LUXURY,
}


def parse_budget(value: Optional[str]) -> BudgetLevel:
    if not value:
        return BudgetLevel.MODERATE
    return BUDGET_ALIASES.get(value.lower(), BudgetLevel.MODERATE)


def suggest_time_of_day(attraction: CatalogPlace, day: int) -> str:
    if attraction.best_time_of_day:
        return attraction.best_time_of_day
    activity_type = attraction.activity_type
    if attraction.indoors and activity_type == 'museum':
        return 'morning' if day % 2 == 0 else 'afternoon'
    if activity_type in ('nature', 'beach'):
        return 'morning'
    if activity_type == 'nightlife' or 'bar' in attraction.name.lower():
        return 'night'
    return 'afternoon'


def activities_per_day(duration: int) -> int:
    return min(5, max(3, math.floor(8 / duration * 2)))


def sort_transportation(options: List[Dict[str, Any]], budget: BudgetLevel) -> List[Dict[str, Any]]:
    """예산에 맞춰 교통수단을 정렬합니다. 알뜰: 싼 순, 럭셔리: 비싼 순, 보통: 중간 가격대 우선."""
    def cost_rank(option):
        return COST_RANK.get(option['cost'], 0)

    if budget == BudgetLevel.BUDGET:
        return sorted(options, key=cost_rank)
    if budget == BudgetLevel.LUXURY:
        return sorted(options, key=cost_rank, reverse=True)
    return sorted(options, key=lambda option: abs(cost_rank(option) - 1.5))


def estimate_budget(budget: BudgetLevel, destination: CatalogPlace, duration: int) -> Dict[str, Any]:
    multiplier = COST_MULTIPLIER.get(destination.cost_level, 1.0)
    daily_costs = {k: v * multiplier for k, v in DAILY_BASE_COSTS[budget].items()}
    total_costs = {k: round(v * duration) for k, v in daily_costs.items()}
    total_budget = sum(total_costs.values())
    return {
        'daily_costs': daily_costs,
        'total_costs': total_costs,
        'total_budget': total_budget,
        'currency_code': 'USD',
        'breakdown': {k: round(v / total_budget * 100) for k, v in total_costs.items()},
    }


class ItineraryPlanner:
    """
    목적지와 선호 정보로 일정을 생성합니다.
    OpenAIService 가 활성화되어 있으면 일정 소개 문구(summary)를 덧붙이고,
    실패하거나 비활성이면 summary 는 None 입니다.
    """

    def __init__(self, catalog: PlaceCatalog, text_generator: Optional[OpenAIService] = None):
        self.catalog = catalog
        self.text_generator = text_generator

    def generate(self, preferences: Dict[str, Any], destination_name: str, duration: int) -> Dict[str, Any]:
        destination = self.catalog.find_destination(destination_name)
        if destination is None:
            raise NotFoundError(f"여행지를 찾을 수 없습니다: {destination_name}")

        budget = parse_budget(preferences.get('budget'))
        interests = list(preferences.get('interests') or [])

        daily_activities = self._plan_days(destination, interests, budget, duration)
        return {
            'destination': destination.to_dict(),
            'duration': duration,
            'budget': budget.value,
            'daily_activities': daily_activities,
            'accommodation_suggestions': self.suggest_accommodations(budget, destination),
            'transportation_options': self.suggest_transportation(budget, destination),
            'estimated_budget': estimate_budget(budget, destination, duration),
            'summary': self._summarize(destination, duration, budget, interests, daily_activities),
        }

    def _plan_days(self, destination: CatalogPlace, interests: List[str],
                   budget: BudgetLevel, duration: int) -> List[Dict[str, Any]]:
        try:
            attractions = self.catalog.attractions(destination.country) if destination.country else []
        except UpstreamError as e:
            logging.warning(f"관광지 조회 실패, 식사 일정만 생성 (destination: {destination.name}): {e}")
            attractions = []

        if interests:
            attractions = [a for a in attractions if set(a.tags) & set(interests)]

        per_day = activities_per_day(duration)
        midpoint = math.ceil(duration / 2)
        used_ids = set()
        days = []
        for day in range(1, duration + 1):
            # 여행 전반부는 인기 관광지, 후반부는 덜 붐비는 곳 위주
            if day <= midpoint:
                ordered = sorted(attractions, key=lambda a: a.popularity, reverse=True)
            else:
                ordered = sorted(attractions, key=lambda a: a.crowd_level)
            fresh = [a for a in ordered if a.id not in used_ids]
            chosen = (fresh or ordered)[:per_day]
            used_ids.update(a.id for a in chosen)

            activities = [self._to_activity(a, day) for a in chosen]
            activities.extend(self._meals(budget))
            activities.sort(key=lambda a: TIME_ORDER.get(a['time_of_day'], len(TIME_ORDER) + 1))
            days.append({'day': day, 'activities': activities})
        return days

    @staticmethod
    def _to_activity(attraction: CatalogPlace, day: int) -> Dict[str, Any]:
        return {
            'name': attraction.name,
            'description': attraction.description,
            'location': attraction.location,
            'duration': attraction.average_duration or 2,
            'cost': attraction.cost or 'Free',
            'type': attraction.activity_type or 'sightseeing',
            'time_of_day': suggest_time_of_day(attraction, day),
        }

    @staticmethod
    def _meals(budget: BudgetLevel) -> List[Dict[str, Any]]:
        cost = MEAL_COST[budget]
        return [
            {'name': 'Breakfast', 'type': 'meal', 'time_of_day': 'morning', 'duration': 1, 'cost': cost},
            {'name': 'Lunch', 'type': 'meal', 'time_of_day': 'afternoon', 'duration': 1.5, 'cost': cost},
            {'name': 'Dinner', 'type': 'meal', 'time_of_day': 'evening', 'duration': 2, 'cost': cost},
        ]

    def suggest_accommodations(self, budget: BudgetLevel, destination: CatalogPlace) -> List[Dict[str, Any]]:
        """숙소 카탈로그에서 예산에 맞는 숙소를 찾고, 없으면 일반적인 추천을 돌려줍니다."""
        if destination.country:
            try:
                found = self.catalog.accommodations(destination.country, destination.name, ACCOMMODATION_TYPES[budget])
                if found:
                    return found
            except UpstreamError as e:
                logging.warning(f"숙소 조회 실패, 기본 추천 사용 (destination: {destination.name}): {e}")

        return [
            {
                **accommodation,
                'location': f"{destination.name}, {destination.country}",
                'description': f"{accommodation['type'].replace('_', ' ')} in {destination.name}",
            }
            for accommodation in GENERIC_ACCOMMODATIONS[budget]
        ]

    @staticmethod
    def suggest_transportation(budget: BudgetLevel, destination: CatalogPlace) -> List[Dict[str, Any]]:
        options = []
        if destination.has_public_transport:
            options.append({'type': 'public_transport', 'name': f"{destination.name} Public Transportation",
                            'description': 'Local buses, trams, or metro', 'cost': '$',
                            'best_for': 'Getting around the city affordably'})
        options.append({'type': 'taxi', 'name': 'Taxi or Rideshare', 'description': 'On-demand transportation',
                        'cost': '$$', 'best_for': 'Convenience and direct routes'})
        if destination.car_friendly:
            options.append({'type': 'rental_car', 'name': 'Rental Car', 'description': 'Self-drive option',
                            'cost': '$$$' if budget == BudgetLevel.LUXURY else '$$',
                            'best_for': 'Freedom to explore at your own pace'})
        if destination.walkable:
            options.append({'type': 'walking', 'name': 'Walking', 'description': 'Explore on foot',
                            'cost': 'Free', 'best_for': 'Short distances and sightseeing'})
        if destination.bike_friendly:
            options.append({'type': 'bicycle', 'name': 'Bicycle Rental', 'description': 'Explore by bike',
                            'cost': '$', 'best_for': 'Moderate distances and outdoor enjoyment'})
        return sort_transportation(options, budget)

    def _summarize(self, destination: CatalogPlace, duration: int, budget: BudgetLevel,
                   interests: List[str], daily_activities: List[Dict[str, Any]]) -> Optional[str]:
        if self.text_generator is None:
            return None
        try:
            return self.text_generator.generate_itinerary_summary(
                destination.name, duration, budget.value, interests, daily_activities
            )
        except UpstreamError as e:
            logging.warning(f"일정 요약 생성 실패, 요약 없이 반환: {e}")
            return None

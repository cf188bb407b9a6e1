# app/api/recommendations/test_itinerary.py
import pytest

from app.api.recommendations.itinerary import (
    ItineraryPlanner, TIME_ORDER, activities_per_day, estimate_budget, parse_budget, suggest_time_of_day
)
from app.api.recommendations.services import PlaceCatalog
from app.core.errors import NotFoundError, UpstreamError
from app.models.place import CatalogPlace
from app.models.trip import BudgetLevel

KYOTO = {
    'id': 'kyoto', 'name': 'Kyoto', 'country': 'Japan', 'type': 'city', 'cost_level': 'high',
    'has_public_transport': True, 'walkable': True,
}

ATTRACTIONS = [
    {'id': 'a1', 'name': 'Kinkaku-ji', 'tags': ['history'], 'popularity': 90, 'crowd_level': 80,
     'activity_type': 'temple', 'cost': '$'},
    {'id': 'a2', 'name': 'Fushimi Inari', 'tags': ['history', 'hiking'], 'popularity': 95, 'crowd_level': 90,
     'activity_type': 'nature'},
    {'id': 'a3', 'name': 'Kyoto National Museum', 'tags': ['history'], 'popularity': 60, 'crowd_level': 30,
     'activity_type': 'museum', 'indoors': True},
    {'id': 'a4', 'name': 'Gion Bar Street', 'tags': ['nightlife'], 'popularity': 70, 'crowd_level': 50},
    {'id': 'a5', 'name': 'Philosopher Path', 'tags': ['history', 'nature'], 'popularity': 50, 'crowd_level': 10,
     'best_time_of_day': 'evening'},
]


class FailingTextGenerator:
    def generate_itinerary_summary(self, *args):
        raise UpstreamError("boom")


@pytest.fixture
def catalog(store):
    store.put('places', KYOTO)
    for attraction in ATTRACTIONS:
        store.put('places', {**attraction, 'country': 'Japan', 'type': 'attraction'})
    return PlaceCatalog(store)


@pytest.fixture
def planner(catalog, text_generator):
    return ItineraryPlanner(catalog, text_generator)


def _attraction_names(day_plan):
    return [a['name'] for a in day_plan['activities'] if a['type'] != 'meal']


def test_generate_full_itinerary(planner):
    itinerary = planner.generate({'interests': ['history'], 'budget': 'Budget'}, 'Kyoto', 4)

    assert itinerary['destination']['id'] == 'kyoto'
    assert itinerary['duration'] == 4
    assert itinerary['budget'] == 'Budget'
    assert [d['day'] for d in itinerary['daily_activities']] == [1, 2, 3, 4]
    assert itinerary['summary'] == 'Kyoto에서 보내는 4일간의 여행'

    for day_plan in itinerary['daily_activities']:
        names = [a['name'] for a in day_plan['activities']]
        assert {'Breakfast', 'Lunch', 'Dinner'} <= set(names)
        assert 'Gion Bar Street' not in names
        ranks = [TIME_ORDER[a['time_of_day']] for a in day_plan['activities']]
        assert ranks == sorted(ranks)


def test_first_half_prefers_popular_and_second_half_quiet_places(planner):
    itinerary = planner.generate({'budget': 'Luxury'}, 'Kyoto', 4)
    day1, day2, day3, _ = itinerary['daily_activities']

    # 하루 4곳: 1일차는 인기순 상위 4곳, 2일차는 아직 가지 않은 곳, 후반부는 한산한 순
    assert set(_attraction_names(day1)) == {'Fushimi Inari', 'Kinkaku-ji', 'Gion Bar Street', 'Kyoto National Museum'}
    assert _attraction_names(day2) == ['Philosopher Path']
    assert 'Fushimi Inari' not in _attraction_names(day3)


def test_estimated_budget_uses_destination_cost_level(planner):
    budget = planner.generate({'budget': 'budget'}, 'Kyoto', 4)['estimated_budget']

    assert budget['daily_costs'] == {'accommodation': 75, 'food': 45, 'transportation': 22.5, 'activities': 30}
    assert budget['total_costs'] == {'accommodation': 300, 'food': 180, 'transportation': 90, 'activities': 120}
    assert budget['total_budget'] == 690
    assert budget['currency_code'] == 'USD'


def test_transportation_sorted_for_budget(planner):
    options = planner.generate({'budget': 'Budget'}, 'Kyoto', 2)['transportation_options']
    assert [o['type'] for o in options] == ['walking', 'public_transport', 'taxi']

    options = planner.generate({'budget': 'Luxury'}, 'Kyoto', 2)['transportation_options']
    assert [o['type'] for o in options] == ['taxi', 'public_transport', 'walking']


def test_accommodations_from_catalog_or_generic(planner, store):
    generic = planner.generate({'budget': 'Budget'}, 'Kyoto', 2)['accommodation_suggestions']
    assert [a['type'] for a in generic] == ['hostel', 'guesthouse']
    assert generic[0]['location'] == 'Kyoto, Japan'

    store.put('accommodations', {'id': 'h1', 'name': 'Kyoto Hostel', 'country': 'Japan', 'city': 'Kyoto',
                                 'type': 'hostel', 'price_range': '$', 'amenities': ['WiFi']})
    found = planner.generate({'budget': 'Budget'}, 'Kyoto', 2)['accommodation_suggestions']
    assert [a['name'] for a in found] == ['Kyoto Hostel']


def test_unknown_destination(planner):
    with pytest.raises(NotFoundError):
        planner.generate({}, 'Atlantis', 3)


def test_summary_is_optional(catalog):
    assert ItineraryPlanner(catalog, None).generate({}, 'Kyoto', 1)['summary'] is None
    assert ItineraryPlanner(catalog, FailingTextGenerator()).generate({}, 'Kyoto', 1)['summary'] is None


@pytest.mark.parametrize('value, expected', [
    (None, BudgetLevel.MODERATE),
    ('Luxury', BudgetLevel.LUXURY),
    ('mid-range', BudgetLevel.MODERATE),
    ('BUDGET', BudgetLevel.BUDGET),
    ('unknown', BudgetLevel.MODERATE),
])
def test_parse_budget(value, expected):
    assert parse_budget(value) == expected


@pytest.mark.parametrize('duration, expected', [(1, 5), (3, 5), (4, 4), (5, 3), (30, 3)])
def test_activities_per_day(duration, expected):
    assert activities_per_day(duration) == expected


def test_suggest_time_of_day():
    assert suggest_time_of_day(CatalogPlace(id='x', name='x', best_time_of_day='evening'), 1) == 'evening'
    assert suggest_time_of_day(CatalogPlace(id='x', name='x', activity_type='museum', indoors=True), 2) == 'morning'
    assert suggest_time_of_day(CatalogPlace(id='x', name='x', activity_type='museum', indoors=True), 3) == 'afternoon'
    assert suggest_time_of_day(CatalogPlace(id='x', name='x', activity_type='beach'), 1) == 'morning'
    assert suggest_time_of_day(CatalogPlace(id='x', name='Jazz Bar'), 1) == 'night'
    assert suggest_time_of_day(CatalogPlace(id='x', name='Park'), 1) == 'afternoon'


def test_estimate_budget_breakdown_sums_to_about_100():
    estimate = estimate_budget(BudgetLevel.MODERATE, CatalogPlace(id='x', name='x'), 3)
    assert estimate['total_budget'] == (150 + 80 + 40 + 60) * 3
    assert 99 <= sum(estimate['breakdown'].values()) <= 101

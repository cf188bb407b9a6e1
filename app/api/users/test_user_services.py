# app/api/users/test_user_services.py
import pytest

from app.api.users.services import UserService, follow_doc_id
from app.core.errors import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def user_service(store, identity, clock):
    identity.add_user('u1', email='u1@example.com', display_name='하늘')
    identity.add_user('u2', email='u2@example.com', display_name='바다')
    return UserService(store, identity, clock=clock)


def test_own_profile_is_created_on_first_read(user_service, store):
    assert store.find('users', 'u1') is None

    profile = user_service.get_profile('u1', 'u1')

    assert profile.uid == 'u1'
    assert profile.email == 'u1@example.com'
    assert profile.display_name == '하늘'
    assert profile.joined_date == '2024-01-01T00:00:00.000000Z'
    assert store.find('users', 'u1') is not None


def test_other_users_missing_profile_is_not_found(user_service):
    with pytest.raises(NotFoundError):
        user_service.get_profile('u2', 'u1')


def test_stats_are_derived_from_documents(user_service, store):
    user_service.ensure_profile('u1')
    user_service.ensure_profile('u2')
    store.put('trips', {'user_id': 'u1'})
    store.put('trips', {'user_id': 'u1'})
    store.put('stories', {'user_id': 'u1'})
    user_service.follow('u2', 'u1')

    stats = user_service.get_profile('u1', 'u2').stats

    assert (stats.trips_count, stats.stories_count) == (2, 1)
    assert (stats.followers_count, stats.following_count) == (1, 0)


def test_update_profile_allow_list(user_service):
    updated = user_service.update_profile('u1', {'bio': '여행 좋아함', 'interests': ['hiking']})
    assert updated.bio == '여행 좋아함'
    assert updated.interests == ['hiking']

    with pytest.raises(ValidationError) as exc_info:
        user_service.update_profile('u1', {'stats': {'trips_count': 100}, 'uid': 'evil'})
    assert set(exc_info.value.details) == {'stats', 'uid'}


def test_follow_rules(user_service, store):
    user_service.ensure_profile('u2')

    with pytest.raises(ValidationError):
        user_service.follow('u1', 'u1')
    with pytest.raises(NotFoundError):
        user_service.follow('u1', 'ghost')

    user_service.follow('u1', 'u2')
    assert store.find('followers', follow_doc_id('u2', 'u1'))['follower_id'] == 'u1'
    with pytest.raises(ConflictError):
        user_service.follow('u1', 'u2')


def test_unfollow_is_a_no_op_when_not_following(user_service):
    user_service.ensure_profile('u2')
    user_service.unfollow('u1', 'u2')

    user_service.follow('u1', 'u2')
    user_service.unfollow('u1', 'u2')
    assert user_service.list_following('u1') == []


def test_follower_lists(user_service):
    user_service.ensure_profile('u1')
    user_service.ensure_profile('u2')
    user_service.follow('u1', 'u2')

    assert [p.uid for p in user_service.list_followers('u2')] == ['u1']
    assert [p.uid for p in user_service.list_following('u1')] == ['u2']
    assert user_service.list_followers('u1') == []

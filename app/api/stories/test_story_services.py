# app/api/stories/test_story_services.py
import threading

import pytest

from app.api.stories.services import StoryService
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.services.firestore_service import InMemoryDocumentStore


@pytest.fixture
def story_service(store, clock):
    return StoryService(store, clock=clock)


@pytest.fixture
def s1(store):
    store.put('stories', {'id': 's1', 'user_id': 'u2', 'title': '교토 산책', 'content': '...',
                          'is_public': True, 'likes': [], 'comments': []})
    return 's1'


def _story(service, user_id, title, is_public=True, **extra):
    return service.create_story(user_id, {'title': title, 'content': f'{title} 본문', 'is_public': is_public, **extra})


def test_toggle_like_scenario(story_service, s1):
    assert story_service.toggle_like(s1, 'u3') == {'liked': True, 'like_count': 1}
    assert story_service.toggle_like(s1, 'u3') == {'liked': False, 'like_count': 0}


def test_toggle_like_twice_restores_previous_likes(story_service, store, s1):
    story_service.toggle_like(s1, 'u4')
    before = store.get('stories', s1)

    story_service.toggle_like(s1, 'u5')
    story_service.toggle_like(s1, 'u5')
    after = store.get('stories', s1)

    assert after['likes'] == before['likes'] == ['u4']
    assert after['like_count'] == before['like_count'] == 1


class InterleavingStore(InMemoryDocumentStore):
    """첫 transact 직전에 다른 사용자의 쓰기를 한 번 끼워 넣는 저장소."""

    def __init__(self, clock=None):
        super().__init__(clock=clock)
        self.interleave = None

    def transact(self, collection, doc_id, mutate):
        if self.interleave is not None:
            concurrent, self.interleave = self.interleave, None
            concurrent()
        return super().transact(collection, doc_id, mutate)


@pytest.fixture
def racing_store(clock):
    store = InterleavingStore(clock=clock)
    store.put('stories', {'id': 's1', 'user_id': 'u2', 'title': '교토 산책', 'content': '...',
                          'is_public': True, 'likes': [], 'comments': []})
    return store


def test_concurrent_likes_from_different_users_are_both_kept(racing_store, clock):
    service = StoryService(racing_store, clock=clock)
    racing_store.interleave = lambda: service.toggle_like('s1', 'u2')

    assert service.toggle_like('s1', 'u1') == {'liked': True, 'like_count': 2}

    story = service.get_story('s1')
    assert story.likes == {'u1', 'u2'}
    assert racing_store.get('stories', 's1')['like_count'] == 2


def test_concurrent_comments_are_both_kept(racing_store, clock):
    service = StoryService(racing_store, clock=clock)
    racing_store.interleave = lambda: service.add_comment('s1', 'u3', '먼저 도착한 댓글')

    service.add_comment('s1', 'u4', '나중 댓글')

    comments = service.get_story('s1').comments
    assert [c.user_id for c in comments] == ['u3', 'u4']


def test_likes_from_many_threads_are_all_kept(story_service, s1):
    users = [f'user-{i}' for i in range(20)]
    threads = [threading.Thread(target=story_service.toggle_like, args=(s1, uid)) for uid in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert story_service.get_story(s1).likes == set(users)


def test_like_on_missing_story_is_not_found(story_service):
    with pytest.raises(NotFoundError):
        story_service.toggle_like('ghost', 'u1')
    with pytest.raises(NotFoundError):
        story_service.add_comment('ghost', 'u1', '안녕하세요')


def test_update_missing_story_with_forbidden_field_is_not_found(story_service):
    with pytest.raises(NotFoundError):
        story_service.update_story('ghost', 'u1', {'likes': ['u1']})


def test_author_can_like_own_story(story_service, s1):
    assert story_service.toggle_like(s1, 'u2')['liked'] is True


def test_create_story_starts_empty(story_service):
    story = _story(story_service, 'u1', '첫 스토리', likes=['u9'], comments=[{'id': 'x'}])

    assert story.user_id == 'u1'
    assert story.likes == set()
    assert story.comments == []
    assert story.is_public is True


def test_story_can_link_only_to_own_existing_trip(story_service, store):
    store.put('trips', {'id': 't1', 'user_id': 'u1', 'title': '교토'})

    assert _story(story_service, 'u1', '연결됨', trip_id='t1').trip_id == 't1'
    with pytest.raises(ForbiddenError):
        _story(story_service, 'u2', '남의 여행', trip_id='t1')
    with pytest.raises(ValidationError):
        _story(story_service, 'u1', '없는 여행', trip_id='ghost')


def test_update_story_guards(story_service, store, s1):
    with pytest.raises(ForbiddenError):
        story_service.update_story(s1, 'u3', {'title': 'hijack'})
    with pytest.raises(ValidationError):
        story_service.update_story(s1, 'u2', {'likes': ['u2']})

    updated = story_service.update_story(s1, 'u2', {'title': '교토 밤 산책', 'is_public': False})
    assert updated.title == '교토 밤 산책'
    assert updated.is_public is False
    assert store.get('stories', s1)['likes'] == []


def test_delete_story_twice(story_service, s1):
    with pytest.raises(ForbiddenError):
        story_service.delete_story(s1, 'u3')

    story_service.delete_story(s1, 'u2')
    with pytest.raises(NotFoundError):
        story_service.delete_story(s1, 'u2')


def test_add_comment_appends_in_order(story_service, clock, s1):
    first = story_service.add_comment(s1, 'u3', '  좋아요!  ', user_name='민지')
    clock.advance(minutes=1)
    story_service.add_comment(s1, 'u4', '다음엔 같이 가요')

    story = story_service.get_story(s1)
    assert first.text == '좋아요!'
    assert [c.user_id for c in story.comments] == ['u3', 'u4']
    assert story.comments[0].user_name == '민지'
    assert story.comments[1].created_at == '2025-06-01T12:01:00.000000Z'


def test_blank_comment_is_rejected(story_service, s1):
    with pytest.raises(ValidationError):
        story_service.add_comment(s1, 'u3', '   ')


def test_public_feed_pagination_visits_every_story_once(story_service, clock):
    public_ids = []
    for i in range(7):
        public_ids.append(_story(story_service, 'u1', f'public-{i}').id)
        clock.advance(seconds=1)
    for i in range(2):
        _story(story_service, 'u1', f'private-{i}', is_public=False)

    seen, cursor, pages = [], None, 0
    while True:
        stories, cursor, has_more = story_service.list_public_stories(3, cursor)
        pages += 1
        seen.extend(s.id for s in stories)
        if not has_more:
            break

    assert pages == 3
    assert seen == list(reversed(public_ids))


def test_public_feed_ends_with_empty_page_on_exact_multiple(story_service):
    for i in range(4):
        _story(story_service, 'u1', f'public-{i}')

    stories, cursor, has_more = story_service.list_public_stories(2)
    assert has_more is True
    stories, cursor, has_more = story_service.list_public_stories(2, cursor)
    assert has_more is True
    stories, cursor, has_more = story_service.list_public_stories(2, cursor)
    assert (stories, cursor, has_more) == ([], None, False)


def test_user_and_trip_story_lists(story_service, store, clock):
    store.put('trips', {'id': 't1', 'user_id': 'u1', 'title': '교토'})
    older = _story(story_service, 'u1', 'older', trip_id='t1')
    clock.advance(hours=1)
    newer = _story(story_service, 'u1', 'newer', is_public=False, trip_id='t1')
    _story(story_service, 'u2', 'someone else')

    assert [s.id for s in story_service.list_user_stories('u1')] == [newer.id, older.id]
    assert [s.id for s in story_service.list_trip_stories('t1')] == [newer.id, older.id]

# app/services/test_firestore_service.py
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import FailedPrecondition, ServiceUnavailable

from app.core.errors import InvalidQueryError, NotFoundError, StoreError, ValidationError
from app.services import firestore_service
from app.services.firestore_service import (
    InMemoryDocumentStore, FirestoreDocumentStore, QueryOptions, ASCENDING, DESCENDING
)


def _seed(store, docs):
    for doc in docs:
        store.put('trips', doc)


def test_put_assigns_id_and_timestamps(store):
    doc_id = store.put('trips', {'title': '제주'})
    doc = store.get('trips', doc_id)

    assert doc['id'] == doc_id
    assert doc['title'] == '제주'
    assert doc['created_at'] == '2025-06-01T12:00:00.000000Z'
    assert doc['updated_at'] == doc['created_at']


def test_put_keeps_given_id(store):
    assert store.put('trips', {'id': 't1', 'title': '부산'}) == 't1'
    assert store.get('trips', 't1')['title'] == '부산'


def test_get_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.get('trips', 'nope')
    assert store.find('trips', 'nope') is None


def test_update_merges_and_touches_updated_at(store, clock):
    store.put('trips', {'id': 't1', 'title': '부산', 'tags': ['sea']})
    clock.advance(minutes=5)

    updated = store.update('trips', 't1', {'title': '부산 2박'})

    assert updated['title'] == '부산 2박'
    assert updated['tags'] == ['sea']
    assert updated['created_at'] == '2025-06-01T12:00:00.000000Z'
    assert updated['updated_at'] == '2025-06-01T12:05:00.000000Z'


def test_update_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.update('trips', 'nope', {'title': 'x'})


def test_delete_twice_raises_not_found_second_time(store):
    store.put('trips', {'id': 't1'})
    store.delete('trips', 't1')
    with pytest.raises(NotFoundError):
        store.delete('trips', 't1')


def test_returned_documents_are_copies(store):
    store.put('trips', {'id': 't1', 'tags': ['a']})
    doc = store.get('trips', 't1')
    doc['tags'].append('b')

    assert store.get('trips', 't1')['tags'] == ['a']


def test_query_filters_and_orders(store):
    _seed(store, [
        {'id': 'a', 'user_id': 'u1', 'start_date': '2025-03-01'},
        {'id': 'b', 'user_id': 'u2', 'start_date': '2025-01-01'},
        {'id': 'c', 'user_id': 'u1', 'start_date': '2025-02-01'},
    ])

    docs = store.query('trips', QueryOptions(where=[('user_id', '==', 'u1')], order_by=[('start_date', ASCENDING)]))
    assert [d['id'] for d in docs] == ['c', 'a']

    docs = store.query('trips', QueryOptions(order_by=[('start_date', DESCENDING)], limit=2))
    assert [d['id'] for d in docs] == ['a', 'c']


def test_query_nested_field_and_array_contains(store):
    store.put('places', {'id': 'p1', 'coordinates': {'latitude': 37.5}, 'seasonal_tags': ['summer']})
    store.put('places', {'id': 'p2', 'coordinates': {'latitude': 35.1}, 'seasonal_tags': ['winter']})
    store.put('places', {'id': 'p3', 'seasonal_tags': ['summer']})

    docs = store.query('places', QueryOptions(where=[('coordinates.latitude', '>=', 36)]))
    assert [d['id'] for d in docs] == ['p1']

    docs = store.query('places', QueryOptions(where=[('seasonal_tags', 'array-contains', 'summer')]))
    assert sorted(d['id'] for d in docs) == ['p1', 'p3']


def test_query_documents_missing_order_field_are_excluded(store):
    _seed(store, [{'id': 'a', 'rank': 1}, {'id': 'b'}])
    docs = store.query('trips', QueryOptions(order_by=[('rank', ASCENDING)]))
    assert [d['id'] for d in docs] == ['a']


def test_cursor_pagination_visits_every_document_once(store):
    _seed(store, [{'id': f'd{i}', 'score': i % 3} for i in range(8)])

    seen, cursor = [], None
    while True:
        page = store.query('trips', QueryOptions(order_by=[('score', DESCENDING)], limit=3, cursor=cursor))
        seen.extend(d['id'] for d in page)
        if len(page) < 3:
            break
        cursor = page[-1]['id']

    assert sorted(seen) == sorted(f'd{i}' for i in range(8))
    assert len(seen) == len(set(seen))


def test_unknown_cursor_is_rejected(store):
    with pytest.raises(ValidationError):
        store.query('trips', QueryOptions(order_by=[('score', ASCENDING)], cursor='ghost'))


@pytest.mark.parametrize('options', [
    QueryOptions(where=[('a', 'like', 1)]),
    QueryOptions(where=[('a', '>', 1), ('b', '<', 2)]),
    QueryOptions(where=[('a', '>', 1)], order_by=[('b', ASCENDING)]),
    QueryOptions(order_by=[('a', 'sideways')]),
    QueryOptions(limit=0),
])
def test_invalid_queries_are_surfaced(store, options):
    with pytest.raises(InvalidQueryError):
        store.query('trips', options)


def test_reset_clears_all_collections():
    store = InMemoryDocumentStore()
    store.put('trips', {'id': 't1'})
    store.reset()
    assert store.find('trips', 't1') is None


# --- Firestore 구현 (클라이언트는 mock) ---

def _firestore_store(clock=None):
    db = MagicMock()
    return FirestoreDocumentStore(db=db, clock=clock), db


def test_firestore_find_converts_snapshot():
    store, db = _firestore_store()
    snapshot = MagicMock(exists=True, id='t1')
    snapshot.to_dict.return_value = {'title': '제주'}
    db.collection.return_value.document.return_value.get.return_value = snapshot

    assert store.find('trips', 't1') == {'id': 't1', 'title': '제주'}


def test_firestore_missing_document_is_none():
    store, db = _firestore_store()
    db.collection.return_value.document.return_value.get.return_value = MagicMock(exists=False)

    assert store.find('trips', 't1') is None
    with pytest.raises(NotFoundError):
        store.delete('trips', 't1')


def test_firestore_api_failure_becomes_store_error():
    store, db = _firestore_store()
    db.collection.return_value.document.return_value.get.side_effect = ServiceUnavailable('down')

    with pytest.raises(StoreError):
        store.find('trips', 't1')


def test_firestore_missing_index_becomes_invalid_query():
    store, db = _firestore_store()
    db.collection.return_value.stream.side_effect = FailedPrecondition('The query requires an index.')

    with pytest.raises(InvalidQueryError):
        store.query('trips')


def test_firestore_put_stamps_timestamps(clock):
    store, db = _firestore_store(clock)
    ref = db.collection.return_value.document.return_value
    ref.id = 't1'

    assert store.put('trips', {'id': 't1', 'title': '제주'}) == 't1'
    saved = ref.set.call_args[0][0]
    assert saved['created_at'] == saved['updated_at'] == '2025-06-01T12:00:00.000000Z'


def test_transact_applies_changes_and_returns_result(store, clock):
    store.put('stories', {'id': 's1', 'likes': ['u1']})
    clock.advance(minutes=3)

    result = store.transact('stories', 's1', lambda doc: ({'likes': doc['likes'] + ['u2']}, len(doc['likes']) + 1))

    assert result == 2
    saved = store.get('stories', 's1')
    assert saved['likes'] == ['u1', 'u2']
    assert saved['updated_at'] == '2025-06-01T12:03:00.000000Z'


def test_transact_missing_document_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.transact('stories', 'ghost', lambda doc: ({}, None))


def test_firestore_transact_reads_and_writes_in_one_transaction(clock, monkeypatch):
    monkeypatch.setattr(firestore_service.firestore, 'transactional', lambda fn: fn)
    store, db = _firestore_store(clock)
    transaction = db.transaction.return_value
    ref = db.collection.return_value.document.return_value
    snapshot = MagicMock(exists=True, id='s1')
    snapshot.to_dict.return_value = {'likes': ['u1']}
    ref.get.return_value = snapshot

    result = store.transact('stories', 's1', lambda doc: ({'likes': doc['likes'] + ['u2']}, 'done'))

    assert result == 'done'
    ref.get.assert_called_once_with(transaction=transaction)
    transaction.update.assert_called_once_with(
        ref, {'likes': ['u1', 'u2'], 'updated_at': '2025-06-01T12:00:00.000000Z'}
    )


def test_firestore_transact_missing_document_raises_not_found(monkeypatch):
    monkeypatch.setattr(firestore_service.firestore, 'transactional', lambda fn: fn)
    store, db = _firestore_store()
    db.collection.return_value.document.return_value.get.return_value = MagicMock(exists=False)

    with pytest.raises(NotFoundError):
        store.transact('stories', 's1', lambda doc: ({}, None))
    db.transaction.return_value.update.assert_not_called()

# app/services/firestore_service.py
"""
문서 저장소(Persistence Adapter).

서비스 계층은 컬렉션 이름 + 문서 ID 로만 저장소에 접근하며,
실제 구현은 Firestore(운영)와 인메모리(로컬 개발/테스트) 두 가지입니다.
모든 문서는 'id' 필드를 포함한 dict 로 주고받습니다.
"""
import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition, GoogleAPICallError, InvalidArgument, NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.errors import InvalidQueryError, NotFoundError, StoreError, ValidationError
from app.utils.datetime_utils import Clock, DateTimeUtils, iso_from_clock

# Firestore 컬렉션 이름
COLLECTION_TRIPS = 'trips'
COLLECTION_STORIES = 'stories'
COLLECTION_USERS = 'users'
COLLECTION_PLACES = 'places'
COLLECTION_ACCOMMODATIONS = 'accommodations'
COLLECTION_FOLLOWERS = 'followers'
COLLECTION_REVOKED_TOKENS = 'revoked_tokens'

Where = Tuple[str, str, Any]
OrderBy = Tuple[str, str]
# transact() 에 넘기는 함수: 현재 문서를 받아 (변경할 필드, 호출자에게 돌려줄 값) 을 반환합니다.
Mutation = Callable[[Dict[str, Any]], Tuple[Dict[str, Any], Any]]

ASCENDING = 'asc'
DESCENDING = 'desc'

EQUALITY_OPERATORS = {'==', 'in', 'array-contains', 'array-contains-any'}
INEQUALITY_OPERATORS = {'!=', '<', '<=', '>', '>=', 'not-in'}
SUPPORTED_OPERATORS = EQUALITY_OPERATORS | INEQUALITY_OPERATORS


@dataclass
class QueryOptions:
    """query() 호출 조건. cursor 는 직전 페이지 마지막 문서의 ID 입니다."""
    where: List[Where] = field(default_factory=list)
    order_by: List[OrderBy] = field(default_factory=list)
    limit: Optional[int] = None
    cursor: Optional[str] = None


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        ...

    def find(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    def put(self, collection: str, doc: Dict[str, Any]) -> str:
        ...

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def query(self, collection: str, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        ...

    def transact(self, collection: str, doc_id: str, mutate: Mutation) -> Any:
        ...


def validate_query(options: QueryOptions) -> None:
    """
    Firestore 가 처리할 수 없는 조합을 미리 걸러냅니다.
    - 지원하지 않는 연산자
    - 두 개 이상의 필드에 걸친 범위(부등호) 필터
    - 범위 필터가 있을 때 첫 번째 정렬 필드가 그 필드가 아닌 경우
    """
    inequality_fields = set()
    for field_path, op, _ in options.where:
        if op not in SUPPORTED_OPERATORS:
            raise InvalidQueryError(f"지원하지 않는 쿼리 연산자입니다: '{op}'")
        if op in INEQUALITY_OPERATORS:
            inequality_fields.add(field_path)

    if len(inequality_fields) > 1:
        raise InvalidQueryError(f"범위 필터는 하나의 필드에만 적용할 수 있습니다: {sorted(inequality_fields)}")

    for field_path, direction in options.order_by:
        if direction not in (ASCENDING, DESCENDING):
            raise InvalidQueryError(f"잘못된 정렬 방향입니다: '{direction}'")

    if inequality_fields and options.order_by:
        (inequality_field,) = inequality_fields
        if options.order_by[0][0] != inequality_field:
            raise InvalidQueryError(
                f"범위 필터 필드('{inequality_field}')가 첫 번째 정렬 필드여야 합니다."
            )

    if options.limit is not None and options.limit <= 0:
        raise InvalidQueryError("limit 은 1 이상이어야 합니다.")


# =====================================================================================
# 인메모리 구현
# =====================================================================================
_MISSING = object()


def _get_field(doc: Dict[str, Any], field_path: str) -> Any:
    value: Any = doc
    for part in field_path.split('.'):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(doc: Dict[str, Any], field_path: str, op: str, expected: Any) -> bool:
    value = _get_field(doc, field_path)
    if value is _MISSING:
        return False
    try:
        if op == '==':
            return value == expected
        if op == '!=':
            return value != expected
        if op == '<':
            return value < expected
        if op == '<=':
            return value <= expected
        if op == '>':
            return value > expected
        if op == '>=':
            return value >= expected
        if op == 'in':
            return value in expected
        if op == 'not-in':
            return value not in expected
        if op == 'array-contains':
            return isinstance(value, list) and expected in value
        if op == 'array-contains-any':
            return isinstance(value, list) and any(item in value for item in expected)
    except TypeError:
        # Firestore 는 타입이 다른 값끼리 비교하지 않습니다.
        return False
    return False


class InMemoryDocumentStore:
    """
    프로세스 메모리에 문서를 보관하는 저장소.
    Firestore 와 같은 쿼리 제약을 검사하므로 로컬에서 통과한 쿼리는 운영에서도 유효합니다.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self.clock = clock

    def reset(self) -> None:
        with self._lock:
            self._collections.clear()

    def _docs(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        doc = self.find(collection, doc_id)
        if doc is None:
            raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
        return doc

    def find(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def put(self, collection: str, doc: Dict[str, Any]) -> str:
        doc_id = doc.get('id') or uuid.uuid4().hex
        timestamp = iso_from_clock(self.clock)
        stored = copy.deepcopy(doc)
        stored.update({'id': doc_id, 'created_at': timestamp, 'updated_at': timestamp})
        with self._lock:
            self._docs(collection)[doc_id] = stored
        return doc_id

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
            merged = {**docs[doc_id], **copy.deepcopy(partial)}
            merged['id'] = doc_id
            merged['updated_at'] = iso_from_clock(self.clock)
            docs[doc_id] = merged
            return copy.deepcopy(merged)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
            del docs[doc_id]

    def transact(self, collection: str, doc_id: str, mutate: Mutation) -> Any:
        """
        문서 하나를 읽고-수정하고-쓰는 과정을 잠금 안에서 한 번에 처리합니다.
        mutate 안에서는 저장소를 다시 호출하면 안 됩니다.
        """
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
            changes, result = mutate(copy.deepcopy(docs[doc_id]))
            merged = {**docs[doc_id], **copy.deepcopy(changes)}
            merged['id'] = doc_id
            merged['updated_at'] = iso_from_clock(self.clock)
            docs[doc_id] = merged
            return result

    def query(self, collection: str, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        options = options or QueryOptions()
        validate_query(options)

        order_by = list(options.order_by)
        if not order_by:
            # Firestore 와 같이 범위 필터 필드로 암묵 정렬합니다.
            inequality = [w[0] for w in options.where if w[1] in INEQUALITY_OPERATORS]
            if inequality:
                order_by = [(inequality[0], ASCENDING)]

        with self._lock:
            all_docs = self._docs(collection)
            matched = [
                doc for doc in all_docs.values()
                if all(_matches(doc, f, op, v) for f, op, v in options.where)
                and all(_get_field(doc, f) is not _MISSING for f, _ in order_by)
            ]
            cursor_doc = None
            if options.cursor:
                cursor_doc = all_docs.get(options.cursor)
                if cursor_doc is None or any(_get_field(cursor_doc, f) is _MISSING for f, _ in order_by):
                    raise ValidationError(f"유효하지 않은 페이지 커서입니다: {options.cursor}")
            result = copy.deepcopy(matched)
            cursor_copy = copy.deepcopy(cursor_doc) if cursor_doc is not None else None

        if cursor_copy is not None:
            result = [doc for doc in result if doc['id'] != cursor_copy['id']]
            result.append(cursor_copy)

        result = self._sort(result, order_by)

        if cursor_copy is not None:
            position = next(i for i, doc in enumerate(result) if doc['id'] == cursor_copy['id'])
            result = result[position + 1:]

        if options.limit is not None:
            result = result[:options.limit]
        return result

    @staticmethod
    def _sort(docs: List[Dict[str, Any]], order_by: List[OrderBy]) -> List[Dict[str, Any]]:
        # 문서 ID 를 마지막 기준으로 두고, 정렬 조건을 뒤에서부터 안정 정렬로 적용합니다.
        docs = sorted(docs, key=lambda d: d['id'])
        try:
            for field_path, direction in reversed(order_by):
                docs = sorted(docs, key=lambda d: _get_field(d, field_path), reverse=(direction == DESCENDING))
        except TypeError as e:
            raise InvalidQueryError(f"정렬 필드에 비교할 수 없는 값이 섞여 있습니다: {e}")
        return docs


# =====================================================================================
# Firestore 구현
# =====================================================================================
class FirestoreDocumentStore:
    """firebase_admin Firestore 클라이언트를 사용하는 운영용 저장소."""

    def __init__(self, db=None, clock: Optional[Clock] = None):
        self.db = db or firestore.client()
        self.clock = clock

    def _collection(self, collection: str):
        return self.db.collection(collection)

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = DateTimeUtils.from_firestore(snapshot.to_dict() or {})
        data['id'] = snapshot.id
        return data

    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        doc = self.find(collection, doc_id)
        if doc is None:
            raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
        return doc

    def find(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = self._collection(collection).document(doc_id).get()
        except GoogleAPICallError as e:
            logging.error(f"Firestore 조회 실패 ({collection}/{doc_id}): {e}", exc_info=True)
            raise StoreError()
        return self._to_dict(snapshot) if snapshot.exists else None

    def put(self, collection: str, doc: Dict[str, Any]) -> str:
        ref = self._collection(collection).document(doc['id']) if doc.get('id') else self._collection(collection).document()
        timestamp = iso_from_clock(self.clock)
        data = {**doc, 'id': ref.id, 'created_at': timestamp, 'updated_at': timestamp}
        try:
            ref.set(data)
        except GoogleAPICallError as e:
            logging.error(f"Firestore 저장 실패 (Collection: {collection}): {e}", exc_info=True)
            raise StoreError()
        logging.info(f"Firestore 저장 성공 (Collection: {collection}, Doc ID: {ref.id})")
        return ref.id

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        ref = self._collection(collection).document(doc_id)
        try:
            ref.update({**partial, 'updated_at': iso_from_clock(self.clock)})
            snapshot = ref.get()
        except NotFound:
            raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
        except GoogleAPICallError as e:
            logging.error(f"Firestore 수정 실패 ({collection}/{doc_id}): {e}", exc_info=True)
            raise StoreError()
        return self._to_dict(snapshot)

    def delete(self, collection: str, doc_id: str) -> None:
        # Firestore delete 는 문서가 없어도 성공하므로 존재 여부를 먼저 확인합니다.
        self.get(collection, doc_id)
        try:
            self._collection(collection).document(doc_id).delete()
        except GoogleAPICallError as e:
            logging.error(f"Firestore 삭제 실패 ({collection}/{doc_id}): {e}", exc_info=True)
            raise StoreError()

    def transact(self, collection: str, doc_id: str, mutate: Mutation) -> Any:
        """
        Firestore 트랜잭션 안에서 문서를 읽고 수정합니다.
        다른 요청과 충돌하면 Firestore 가 트랜잭션 함수를 처음부터 다시 실행합니다.
        """
        ref = self._collection(collection).document(doc_id)

        @firestore.transactional
        def _run_in_transaction(transaction):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"'{collection}' 컬렉션에서 문서를 찾을 수 없습니다: {doc_id}")
            changes, result = mutate(self._to_dict(snapshot))
            transaction.update(ref, {**changes, 'updated_at': iso_from_clock(self.clock)})
            return result

        try:
            return _run_in_transaction(self.db.transaction())
        except GoogleAPICallError as e:
            logging.error(f"Firestore 트랜잭션 실패 ({collection}/{doc_id}): {e}", exc_info=True)
            raise StoreError()

    def query(self, collection: str, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        options = options or QueryOptions()
        validate_query(options)

        ref = self._collection(collection)
        query = ref
        for field_path, op, value in options.where:
            query = query.where(filter=FieldFilter(field_path, op, value))
        for field_path, direction in options.order_by:
            firestore_direction = (firestore.Query.DESCENDING if direction == DESCENDING
                                   else firestore.Query.ASCENDING)
            query = query.order_by(field_path, direction=firestore_direction)

        try:
            if options.cursor:
                cursor_doc = ref.document(options.cursor).get()
                if not cursor_doc.exists:
                    raise ValidationError(f"유효하지 않은 페이지 커서입니다: {options.cursor}")
                query = query.start_after(cursor_doc)
            if options.limit is not None:
                query = query.limit(options.limit)
            return [self._to_dict(snapshot) for snapshot in query.stream()]
        except (FailedPrecondition, InvalidArgument) as e:
            # 복합 인덱스 누락 등은 조용히 무시하지 않고 그대로 알립니다.
            logging.error(f"Firestore 쿼리 실행 불가 (Collection: {collection}): {e}")
            raise InvalidQueryError(f"Firestore 가 처리할 수 없는 쿼리입니다: {e.message}")
        except GoogleAPICallError as e:
            logging.error(f"Firestore 쿼리 실패 (Collection: {collection}): {e}", exc_info=True)
            raise StoreError()

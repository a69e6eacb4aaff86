# blog_app/services/document_store.py
"""
원격 문서 저장소(Firestore)에 대한 추상화.

- DocumentStore: 서비스 계층이 의존하는 인터페이스
- Query: 컬렉션 + 필터 + 정렬로 이루어진 질의 정의
- InMemoryDocumentStore: 로컬 개발과 테스트에서 쓰는 메모리 구현
  (서버 타임스탬프, 보안 규칙, 실시간 스냅샷 전달을 Firestore와 같은 방식으로 흉내 냅니다.)
"""

import copy
import itertools
import logging
import operator
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from firebase_admin import firestore

from blog_app.core import rules
from blog_app.core.errors import NotFoundError
from blog_app.models.post import POSTS_COLLECTION
from blog_app.utils.datetime_utils import DateTimeUtils

# 문서에 이 값을 쓰면 저장소가 서버 시각으로 치환합니다.
SERVER_TIMESTAMP = firestore.SERVER_TIMESTAMP

Snapshot = List[Dict[str, Any]]
SnapshotCallback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class Query:
    """컬렉션 질의. filters는 (필드, 연산자, 값) 튜플의 목록입니다."""
    collection: str
    filters: Tuple[Tuple[str, str, Any], ...] = field(default_factory=tuple)
    order_by: Optional[str] = None
    descending: bool = False

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        return Query(self.collection, self.filters + ((field_path, op, value),), self.order_by, self.descending)


class DocumentStore(Protocol):
    """문서 저장소 인터페이스. actor는 쓰기를 요청한 사용자의 uid입니다."""

    def add(self, collection: str, data: Dict[str, Any], actor: Optional[str]) -> str:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], actor: Optional[str]) -> None:
        ...

    def delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        ...

    def authorize_delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        """삭제 권한만 미리 판정합니다. 문서는 바꾸지 않으며, 거부되면 AuthorizationError를 올립니다."""
        ...

    def query(self, query: Query) -> Snapshot:
        ...

    def listen(self, query: Query, callback: SnapshotCallback) -> Unsubscribe:
        ...


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    '==': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    'in': lambda value, options: value in options,
    'array_contains': lambda value, item: isinstance(value, list) and item in value,
}


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        # 정렬 값이 같을 때 쓰는 삽입 순서
        self._sequence: Dict[Tuple[str, str], int] = {}
        self._counter = itertools.count()
        self._listeners: Dict[int, Tuple[Query, SnapshotCallback]] = {}
        # 리스너별로 마지막에 전달한 결과. 결과가 그대로면 다시 보내지 않습니다.
        self._delivered: Dict[int, Snapshot] = {}
        self._listener_ids = itertools.count()
        self._last_timestamp: Optional[datetime] = None
        self._lock = threading.RLock()

    # --- 쓰기 ---
    def add(self, collection: str, data: Dict[str, Any], actor: Optional[str]) -> str:
        with self._lock:
            document = self._materialize(data)
            rules.authorize_create(collection, actor, document)
            doc_id = uuid.uuid4().hex[:20]
            self.collections[collection][doc_id] = document
            self._sequence[(collection, doc_id)] = next(self._counter)
            self._notify(collection)
            return doc_id

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], actor: Optional[str]) -> None:
        with self._lock:
            existing = self.collections[collection].get(doc_id)
            if existing is None:
                raise NotFoundError(f"No document to update: {collection}/{doc_id}")
            changes = self._materialize(patch)
            rules.authorize_update(collection, actor, doc_id, existing, changes)
            existing.update(changes)
            self._notify(collection)

    def delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        with self._lock:
            existing = self.collections[collection].get(doc_id)
            if existing is None:
                # Firestore와 마찬가지로 없는 문서 삭제는 성공으로 처리합니다.
                return
            rules.authorize_delete(collection, actor, doc_id, existing, self.collections[POSTS_COLLECTION].get)
            del self.collections[collection][doc_id]
            self._sequence.pop((collection, doc_id), None)
            self._notify(collection)

    def authorize_delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        with self._lock:
            existing = self.collections[collection].get(doc_id)
            if existing is None:
                return
            rules.authorize_delete(collection, actor, doc_id, existing, self.collections[POSTS_COLLECTION].get)

    # --- 읽기 ---
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self.collections[collection].get(doc_id)
            if document is None:
                return None
            return self._export(doc_id, document)

    def query(self, query: Query) -> Snapshot:
        with self._lock:
            matched = []
            for doc_id, document in self.collections[query.collection].items():
                if all(self._matches(document, f) for f in query.filters):
                    matched.append((doc_id, document))

            # 삽입 순서로 먼저 정렬해 두면, 안정 정렬 덕분에 동률이 삽입 순서대로 남습니다.
            matched.sort(key=lambda item: self._sequence[(query.collection, item[0])])
            if query.order_by:
                # Firestore처럼 정렬 필드가 없는 문서는 결과에서 빠집니다.
                matched = [item for item in matched if item[1].get(query.order_by) is not None]
                matched.sort(key=lambda item: item[1][query.order_by], reverse=query.descending)
            return [self._export(doc_id, document) for doc_id, document in matched]

    # --- 실시간 구독 ---
    def listen(self, query: Query, callback: SnapshotCallback) -> Unsubscribe:
        with self._lock:
            listener_id = next(self._listener_ids)
            self._listeners[listener_id] = (query, callback)
            # 구독 직후 현재 결과 집합을 한 번 전달합니다.
            snapshot = self.query(query)
            self._delivered[listener_id] = snapshot
            callback(snapshot)

        def unsubscribe():
            with self._lock:
                self._listeners.pop(listener_id, None)
                self._delivered.pop(listener_id, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    # --- 내부 도우미 ---
    def _notify(self, collection: str) -> None:
        for listener_id, (query, callback) in list(self._listeners.items()):
            if query.collection != collection:
                continue
            snapshot = self.query(query)
            if snapshot == self._delivered.get(listener_id):
                continue
            self._delivered[listener_id] = snapshot
            try:
                callback(snapshot)
            except Exception as e:
                # 한 구독자의 오류가 쓰기나 다른 구독자에게 번지지 않도록 합니다.
                logging.error(f"스냅샷 전달 실패 (collection: {collection}): {e}", exc_info=True)

    def _server_timestamp(self) -> datetime:
        self._last_timestamp = DateTimeUtils.next_after(self._last_timestamp)
        return self._last_timestamp

    def _materialize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """SERVER_TIMESTAMP 자리에 서버 시각을 채운 사본을 만듭니다. 한 번의 쓰기는 같은 시각을 공유합니다."""
        timestamp = None

        def resolve(value):
            nonlocal timestamp
            if value is SERVER_TIMESTAMP:
                if timestamp is None:
                    timestamp = self._server_timestamp()
                return timestamp
            if isinstance(value, dict):
                return {k: resolve(v) for k, v in value.items()}
            if isinstance(value, list):
                return [resolve(v) for v in value]
            return copy.deepcopy(value)

        return resolve(data)

    @staticmethod
    def _matches(document: Dict[str, Any], condition: Tuple[str, str, Any]) -> bool:
        field_path, op, value = condition
        if op not in _OPERATORS:
            raise ValueError(f"지원하지 않는 연산자입니다: {op}")
        if field_path not in document:
            return False
        return _OPERATORS[op](document[field_path], value)

    @staticmethod
    def _export(doc_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        exported = copy.deepcopy(document)
        exported['id'] = doc_id
        return exported

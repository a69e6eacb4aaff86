# blog_app/services/subscription_service.py
"""
실시간 구독 계층.

저장소의 콜백 기반 리스너를 '전체 스냅샷이 차례로 흘러나오는 취소 가능한 채널'로 감쌉니다.
- 스냅샷은 증분이 아니라 항상 정렬된 전체 결과 집합입니다.
- 구독을 연 쪽이 반드시 unsubscribe()로 닫아야 합니다. (여러 번 호출해도 안전)
- 쓰기 호출이 끝났다고 해서 구독에 곧바로 반영된다는 보장은 없습니다. 다음 전달을 기다려야 합니다.
"""

import logging
import queue
import threading
from typing import Callable, Iterator, List, Optional, Set

from blog_app.models.comment import COMMENTS_COLLECTION
from blog_app.models.post import POSTS_COLLECTION
from blog_app.services.document_store import DocumentStore, Query, Snapshot, Unsubscribe

_CLOSED = object()

POSTS_QUERY = Query(POSTS_COLLECTION, order_by='created_at', descending=True)


def comments_query(post_id: str) -> Query:
    return Query(COMMENTS_COLLECTION, order_by='created_at').where('post_id', '==', post_id)


class Subscription:
    """하나의 라이브 질의에 대한 스냅샷 채널."""

    def __init__(self, name: str, on_change: Optional[Callable[[Snapshot], None]] = None,
                 on_close: Optional[Callable[["Subscription"], None]] = None):
        self.name = name
        self.latest: Optional[Snapshot] = None
        self.delivery_count = 0
        self._on_change = on_change
        self._on_close = on_close
        self._queue: "queue.Queue" = queue.Queue()
        self._cancel: Optional[Unsubscribe] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return not self._closed

    def attach(self, cancel: Unsubscribe) -> None:
        """저장소 리스너의 해제 함수를 연결합니다. 이미 닫힌 구독이면 즉시 해제합니다."""
        with self._lock:
            if not self._closed:
                self._cancel = cancel
                return
        cancel()

    def deliver(self, snapshot: Snapshot) -> None:
        """저장소 알림 스레드에서 호출됩니다."""
        with self._lock:
            if self._closed:
                return
            self.latest = snapshot
            self.delivery_count += 1
        self._queue.put(snapshot)
        if self._on_change is not None:
            try:
                self._on_change(snapshot)
            except Exception as e:
                # 콜백이 실패해도 스냅샷은 이미 채널에 들어가 있습니다.
                logging.error(f"on_change 콜백 실패: {self.name}: {e}", exc_info=True)

    def unsubscribe(self) -> bool:
        """
        리스너를 해제하고 대기 중인 소비자를 깨웁니다.
        처음 호출에서만 True를 반환하며, 이후 호출은 아무 일도 하지 않습니다.
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()
        self._queue.put(_CLOSED)
        if self._on_close is not None:
            self._on_close(self)
        logging.info(f"구독 해제: {self.name} (전달된 스냅샷 {self.delivery_count}개)")
        return True

    def next_snapshot(self, timeout: Optional[float] = None) -> Optional[Snapshot]:
        """다음 스냅샷을 기다립니다. 시간 초과이거나 구독이 닫히면 None을 반환합니다."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            return None
        return item

    def iter_snapshots(self, keepalive: Optional[float] = None) -> Iterator[Optional[Snapshot]]:
        """
        스냅샷을 전달 순서대로 내보냅니다.
        keepalive 초 동안 새 스냅샷이 없으면 None을 내보내 호출자가 연결 유지 신호를 보낼 수 있게 합니다.
        """
        while True:
            try:
                item = self._queue.get(timeout=keepalive)
            except queue.Empty:
                if self._closed:
                    return
                yield None
                continue
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                return
            yield item

    def __iter__(self) -> Iterator[Snapshot]:
        for snapshot in self.iter_snapshots():
            if snapshot is not None:
                yield snapshot

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class SubscriptionService:
    """
    게시글/댓글 목록에 대한 라이브 구독을 열고, 열린 구독을 추적합니다.
    목록 화면 하나당 구독 하나를 사용합니다.
    """
    def __init__(self, store: DocumentStore):
        self.store = store
        self._active: Set[Subscription] = set()
        self._lock = threading.Lock()

    def _open(self, name: str, query: Query, on_change) -> Subscription:
        subscription = Subscription(name, on_change=on_change, on_close=self._forget)
        with self._lock:
            self._active.add(subscription)
        try:
            cancel = self.store.listen(query, subscription.deliver)
        except Exception as e:
            logging.error(f"구독 시작 실패: {name}: {e}", exc_info=True)
            subscription.unsubscribe()
            raise
        subscription.attach(cancel)
        logging.info(f"구독 시작: {name}")
        return subscription

    def subscribe_to_posts(self, on_change: Optional[Callable[[Snapshot], None]] = None) -> Subscription:
        """모든 게시글을 created_at 내림차순(최신순)으로 구독합니다."""
        return self._open('posts', POSTS_QUERY, on_change)

    def subscribe_to_comments(self, post_id: str,
                              on_change: Optional[Callable[[Snapshot], None]] = None) -> Subscription:
        """특정 게시글의 댓글을 created_at 오름차순으로 구독합니다."""
        return self._open(f"comments:{post_id}", comments_query(post_id), on_change)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def active_subscriptions(self) -> List[Subscription]:
        with self._lock:
            return list(self._active)

    def close_all(self) -> int:
        """프로세스 종료 시 남아 있는 구독을 모두 닫습니다. 닫은 개수를 반환합니다."""
        leaked = self.active_subscriptions()
        if leaked:
            logging.warning(f"해제되지 않은 구독 {len(leaked)}개를 종료합니다.")
        for subscription in leaked:
            subscription.unsubscribe()
        return len(leaked)

    def _forget(self, subscription: Subscription) -> None:
        with self._lock:
            self._active.discard(subscription)

# blog_app/services/test_subscription_service.py
"""
실시간 구독 채널 테스트

사용법: python -m pytest blog_app/services/test_subscription_service.py -v
"""

import threading

from blog_app.services.document_store import InMemoryDocumentStore, SERVER_TIMESTAMP
from blog_app.services.subscription_service import SubscriptionService


def _add_post(store, title='t', author_id='owner'):
    return store.add('posts', {
        'title': title, 'content': 'c', 'excerpt': 'e', 'category': 'Design',
        'author': 'Owner', 'author_id': author_id,
        'created_at': SERVER_TIMESTAMP, 'updated_at': SERVER_TIMESTAMP,
    }, actor=author_id)


def _add_comment(store, post_id, author_id='reader'):
    return store.add('comments', {
        'post_id': post_id, 'content': 'hello', 'author': author_id,
        'author_id': author_id, 'created_at': SERVER_TIMESTAMP,
    }, actor=author_id)


def test_posts_subscription_receives_newest_first():
    """게시글 N개를 만든 뒤 마지막 스냅샷은 N개를 최신순으로 담고 있어야 함"""
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    subscription = service.subscribe_to_posts()

    ids = [_add_post(store, title=f"post {i}") for i in range(3)]

    assert subscription.delivery_count == 4  # 초기 스냅샷 + 생성 3회
    assert [p['id'] for p in subscription.latest] == list(reversed(ids))
    subscription.unsubscribe()


def test_snapshots_are_consumed_in_delivery_order():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    subscription = service.subscribe_to_posts()
    _add_post(store)

    assert subscription.next_snapshot(timeout=1) == []
    assert len(subscription.next_snapshot(timeout=1)) == 1
    assert subscription.next_snapshot(timeout=0.01) is None
    subscription.unsubscribe()


def test_unsubscribe_is_idempotent_and_stops_delivery():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    subscription = service.subscribe_to_posts()
    assert service.active_count == 1
    assert store.listener_count == 1

    assert subscription.unsubscribe() is True
    assert subscription.unsubscribe() is False
    assert not subscription.active
    assert service.active_count == 0
    assert store.listener_count == 0

    _add_post(store)
    assert subscription.delivery_count == 1


def test_iteration_ends_when_unsubscribed_from_another_thread():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    subscription = service.subscribe_to_posts()
    received = []

    def consume():
        for snapshot in subscription:
            received.append(snapshot)

    consumer = threading.Thread(target=consume)
    consumer.start()
    _add_post(store)
    subscription.unsubscribe()
    consumer.join(timeout=2)

    assert not consumer.is_alive()
    assert len(received) == 2


def test_iter_snapshots_yields_none_when_idle():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    with service.subscribe_to_posts() as subscription:
        items = subscription.iter_snapshots(keepalive=0.01)
        assert next(items) == []
        assert next(items) is None
    assert service.active_count == 0


def test_on_change_callback_receives_each_snapshot():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    seen = []
    subscription = service.subscribe_to_posts(on_change=seen.append)
    _add_post(store)
    _add_post(store)
    subscription.unsubscribe()

    assert [len(s) for s in seen] == [0, 1, 2]


def test_comment_subscription_is_scoped_to_post_in_ascending_order():
    """댓글 구독은 해당 게시글의 댓글만 작성 순서대로 받아야 함"""
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    post_id = _add_post(store)
    other_post = _add_post(store)
    subscription = service.subscribe_to_comments(post_id)

    first = _add_comment(store, post_id)
    _add_comment(store, other_post)
    second = _add_comment(store, post_id)

    assert [c['id'] for c in subscription.latest] == [first, second]
    assert subscription.delivery_count == 3
    subscription.unsubscribe()


def test_close_all_releases_leaked_subscriptions():
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)
    service.subscribe_to_posts()
    service.subscribe_to_comments('some-post')

    assert service.close_all() == 2
    assert service.active_count == 0
    assert store.listener_count == 0
    assert service.close_all() == 0


def test_failing_on_change_still_queues_snapshot():
    """on_change 콜백이 실패해도 스냅샷은 채널로 전달되어야 함"""
    store = InMemoryDocumentStore()
    service = SubscriptionService(store)

    def broken(snapshot):
        raise RuntimeError("render failed")

    subscription = service.subscribe_to_posts(on_change=broken)
    _add_post(store)

    assert subscription.delivery_count == 2
    assert subscription.next_snapshot(timeout=1) == []
    assert len(subscription.next_snapshot(timeout=1)) == 1
    subscription.unsubscribe()

# blog_app/api/posts/test_services.py
"""
게시글 데이터 접근 계층 테스트 (검증, 소유권, 연쇄 삭제)

사용법: python -m pytest blog_app/api/posts/test_services.py -v
"""

from unittest.mock import MagicMock

import pytest
from marshmallow import ValidationError

from blog_app.api.posts.services import PostService
from blog_app.conftest import post_payload
from blog_app.core.errors import AuthorizationError, WriteError
from blog_app.models.identity import Identity
from blog_app.services.document_store import InMemoryDocumentStore, Query, SERVER_TIMESTAMP

ALICE = Identity(uid='user-alice', display_name='Alice', email='alice@example.com')
BOB = Identity(uid='user-bob', email='bob@example.com')


class FlakyStore(InMemoryDocumentStore):
    """지정한 댓글 삭제만 실패시키는 저장소."""

    def __init__(self, failing_ids):
        super().__init__()
        self.failing_ids = set(failing_ids)

    def delete(self, collection, doc_id, actor):
        if collection == 'comments' and doc_id in self.failing_ids:
            raise WriteError(f"unavailable: {doc_id}")
        super().delete(collection, doc_id, actor)


def _add_comments(store, post_id, count, author=BOB):
    return [
        store.add('comments', {
            'post_id': post_id, 'content': f"comment {i}", 'author': author.author_name,
            'author_id': author.uid, 'created_at': SERVER_TIMESTAMP,
        }, actor=author.uid)
        for i in range(count)
    ]


def test_create_post_records_author_and_server_timestamps():
    store = InMemoryDocumentStore()
    service = PostService(store)

    post_id = service.create_post(ALICE, post_payload())
    post = service.get_post(post_id)

    assert post['title'] == 'Hello World'
    assert post['author'] == 'Alice'
    assert post['author_id'] == 'user-alice'
    assert post['category'] == 'Development'
    assert post['created_at'] == post['updated_at']
    assert post['created_at'] is not None


def test_create_post_author_falls_back_to_email():
    service = PostService(InMemoryDocumentStore())
    post = service.get_post(service.create_post(BOB, post_payload()))
    assert post['author'] == 'bob@example.com'


def test_empty_excerpt_falls_back_to_content_prefix():
    service = PostService(InMemoryDocumentStore())
    content = 'x' * 200
    post = service.get_post(service.create_post(ALICE, post_payload(content=content, excerpt='')))
    assert post['excerpt'] == 'x' * 150 + '...'


def test_invalid_payload_never_reaches_store():
    """검증 실패 시 저장소 호출 없이 ValidationError가 발생해야 함"""
    store = MagicMock()
    service = PostService(store)
    for bad in [post_payload(title=''), post_payload(category='Gossip'), {'title': 'only title'}]:
        with pytest.raises(ValidationError):
            service.create_post(ALICE, bad)
    store.add.assert_not_called()


def test_update_by_owner_changes_fields_and_timestamp():
    store = InMemoryDocumentStore()
    service = PostService(store)
    post_id = service.create_post(ALICE, post_payload())
    before = service.get_post(post_id)

    service.update_post(post_id, ALICE, {'title': 'Hello Again'})
    after = service.get_post(post_id)

    assert after['title'] == 'Hello Again'
    assert after['content'] == before['content']
    assert after['updated_at'] > before['updated_at']
    assert after['created_at'] == before['created_at']


def test_update_by_other_user_is_rejected():
    store = InMemoryDocumentStore()
    service = PostService(store)
    post_id = service.create_post(ALICE, post_payload())

    with pytest.raises(AuthorizationError) as excinfo:
        service.update_post(post_id, BOB, {'title': 'Hacked'})
    assert 'insufficient permissions' in excinfo.value.message
    assert isinstance(excinfo.value, WriteError)
    assert service.get_post(post_id)['title'] == 'Hello World'


def test_empty_update_is_rejected():
    service = PostService(MagicMock())
    with pytest.raises(ValidationError):
        service.update_post('any', ALICE, {})


def test_delete_post_removes_all_comments_first():
    store = InMemoryDocumentStore()
    service = PostService(store, cascade_workers=4)
    post_id = service.create_post(ALICE, post_payload())
    other_id = service.create_post(ALICE, post_payload(title='Other'))
    _add_comments(store, post_id, 10)
    _add_comments(store, other_id, 2)

    assert service.delete_post(post_id, ALICE) == 10

    assert service.get_post(post_id) is None
    assert store.query(Query('comments').where('post_id', '==', post_id)) == []
    # 다른 게시글의 댓글은 그대로
    assert len(store.query(Query('comments').where('post_id', '==', other_id))) == 2


def test_delete_post_without_comments():
    service = PostService(InMemoryDocumentStore())
    post_id = service.create_post(ALICE, post_payload())
    assert service.delete_post(post_id, ALICE) == 0
    assert service.get_post(post_id) is None


def test_partial_cascade_failure_keeps_post():
    """댓글 삭제가 하나라도 실패하면 게시글은 남고 첫 번째 실패가 그대로 올라와야 함"""
    store = InMemoryDocumentStore()
    service = PostService(store)
    post_id = service.create_post(ALICE, post_payload())
    comment_ids = _add_comments(store, post_id, 5)

    flaky = FlakyStore(failing_ids=[comment_ids[1], comment_ids[3]])
    flaky.collections = store.collections
    flaky._sequence = store._sequence
    flaky_service = PostService(flaky)

    with pytest.raises(WriteError) as excinfo:
        flaky_service.delete_post(post_id, ALICE)
    assert excinfo.value.message == f"unavailable: {comment_ids[1]}"

    assert flaky_service.get_post(post_id) is not None
    remaining = {c['id'] for c in flaky.query(Query('comments'))}
    assert remaining == {comment_ids[1], comment_ids[3]}


def test_delete_by_non_owner_keeps_post_and_comments():
    """작성자가 아닌 사용자의 삭제는 거부되고, 그 사용자가 쓴 댓글을 포함해 아무것도 지워지지 않아야 함"""
    store = InMemoryDocumentStore()
    service = PostService(store)
    post_id = service.create_post(ALICE, post_payload())
    _add_comments(store, post_id, 2, author=ALICE)
    _add_comments(store, post_id, 2, author=BOB)

    with pytest.raises(AuthorizationError):
        service.delete_post(post_id, BOB)
    assert service.get_post(post_id) is not None
    assert len(store.query(Query('comments'))) == 4


def test_delete_checks_post_permission_before_touching_comments():
    store = MagicMock()
    store.authorize_delete.side_effect = AuthorizationError("Missing or insufficient permissions")
    with pytest.raises(AuthorizationError):
        PostService(store).delete_post('post-1', BOB)
    store.query.assert_not_called()
    store.delete.assert_not_called()


def test_get_missing_post_returns_none():
    assert PostService(InMemoryDocumentStore()).get_post('missing') is None


def test_list_posts_newest_first():
    service = PostService(InMemoryDocumentStore())
    first = service.create_post(ALICE, post_payload(title='first'))
    second = service.create_post(ALICE, post_payload(title='second'))
    assert [p['id'] for p in service.list_posts()] == [second, first]

# blog_app/core/rules.py
"""
posts / comments 컬렉션의 쓰기 보안 규칙.

Admin SDK는 Firestore 보안 규칙을 우회하므로, 클라이언트 SDK가 받던 것과 같은 판정을
저장소 계층이 쓰기 직전에 직접 수행합니다. 같은 규칙을 Firestore 콘솔에 설치할 수 있도록
FIRESTORE_RULES 텍스트로도 제공합니다.
"""

from typing import Any, Callable, Dict, Iterable, Optional

from blog_app.core.errors import AuthorizationError
from blog_app.models.comment import COMMENTS_COLLECTION
from blog_app.models.post import POSTS_COLLECTION

FIRESTORE_RULES = """rules_version = '2';
service cloud.firestore {
  match /databases/{database}/documents {
    match /posts/{postId} {
      allow read: if request.auth != null;
      allow create: if request.auth != null
        && request.auth.uid == request.resource.data.author_id;
      allow update: if request.auth != null
        && request.auth.uid == resource.data.author_id
        && request.resource.data.author_id == resource.data.author_id;
      allow delete: if request.auth != null
        && request.auth.uid == resource.data.author_id;
    }

    match /comments/{commentId} {
      allow read: if request.auth != null;
      allow create: if request.auth != null
        && request.auth.uid == request.resource.data.author_id;
      allow update: if request.auth != null
        && request.auth.uid == resource.data.author_id
        && request.resource.data.diff(resource.data).affectedKeys().hasOnly(['content']);
      // 댓글 작성자 본인, 또는 상위 게시글의 작성자(연쇄 삭제)만 삭제할 수 있습니다.
      allow delete: if request.auth != null
        && (request.auth.uid == resource.data.author_id
            || request.auth.uid == get(/databases/$(database)/documents/posts/$(resource.data.post_id)).data.author_id);
    }
  }
}
"""

GUARDED_COLLECTIONS = (POSTS_COLLECTION, COMMENTS_COLLECTION)

# 댓글 수정 시 바뀔 수 있는 필드
COMMENT_MUTABLE_FIELDS = frozenset(['content'])


def _require_auth(actor: Optional[str]) -> None:
    if not actor:
        raise AuthorizationError("Missing or insufficient permissions: request.auth is null")


def _deny(operation: str, collection: str, doc_id: Optional[str]) -> None:
    target = f"{collection}/{doc_id}" if doc_id else collection
    raise AuthorizationError(f"Missing or insufficient permissions: {operation} on {target}")


def authorize_create(collection: str, actor: Optional[str], data: Dict[str, Any]) -> None:
    if collection not in GUARDED_COLLECTIONS:
        return
    _require_auth(actor)
    if data.get('author_id') != actor:
        _deny('create', collection, None)


def authorize_update(collection: str, actor: Optional[str], doc_id: str,
                     resource: Dict[str, Any], patch: Dict[str, Any]) -> None:
    if collection not in GUARDED_COLLECTIONS:
        return
    _require_auth(actor)
    if resource.get('author_id') != actor:
        _deny('update', collection, doc_id)
    if 'author_id' in patch and patch['author_id'] != resource.get('author_id'):
        _deny('update', collection, doc_id)
    if collection == COMMENTS_COLLECTION and not _only_changes(patch.keys(), COMMENT_MUTABLE_FIELDS):
        _deny('update', collection, doc_id)


def authorize_delete(collection: str, actor: Optional[str], doc_id: str,
                     resource: Dict[str, Any],
                     load_post: Callable[[str], Optional[Dict[str, Any]]]) -> None:
    """
    삭제 권한을 판정합니다.
    댓글의 경우 상위 게시글 작성자 여부를 확인하기 위해 load_post로 게시글을 조회합니다.
    """
    if collection not in GUARDED_COLLECTIONS:
        return
    _require_auth(actor)
    if resource.get('author_id') == actor:
        return
    if collection == COMMENTS_COLLECTION:
        parent = load_post(resource.get('post_id'))
        if parent is not None and parent.get('author_id') == actor:
            return
    _deny('delete', collection, doc_id)


def _only_changes(keys: Iterable[str], allowed: frozenset) -> bool:
    return set(keys) <= allowed

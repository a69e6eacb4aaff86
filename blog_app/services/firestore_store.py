# blog_app/services/firestore_store.py
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from firebase_admin import firestore
from google.api_core import exceptions

from blog_app.core import rules
from blog_app.core.errors import AuthorizationError, NotFoundError, WriteError
from blog_app.models.post import POSTS_COLLECTION
from blog_app.services.document_store import Query, Snapshot, SnapshotCallback, Unsubscribe
from blog_app.utils.datetime_utils import DateTimeUtils


@contextmanager
def _translate_errors(operation: str, target: str):
    """Firestore(google.api_core) 예외를 도메인 예외로 바꿉니다. 원본 메시지는 그대로 유지합니다."""
    try:
        yield
    except exceptions.PermissionDenied as e:
        logging.warning(f"Firestore 권한 거부 ({operation} {target}): {e.message}")
        raise AuthorizationError(e.message) from e
    except exceptions.NotFound as e:
        raise NotFoundError(e.message) from e
    except exceptions.GoogleAPIError as e:
        logging.error(f"Firestore {operation} 실패 ({target}): {e}", exc_info=True)
        raise WriteError(str(e)) from e


class FirestoreDocumentStore:
    """
    firebase_admin Firestore 클라이언트를 사용하는 DocumentStore 구현.
    - 쓰기 전 보안 규칙(core.rules)을 적용합니다. 수정/삭제는 판정과 쓰기를 하나의 트랜잭션으로 묶습니다.
    - listen은 on_snapshot 워치를 열고, 변경이 있을 때마다 정렬된 전체 결과를 콜백으로 넘깁니다.
    """
    def __init__(self, client=None):
        self.db = client or firestore.client()

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = DateTimeUtils.from_firestore(snapshot.to_dict() or {})
        data['id'] = snapshot.id
        return data

    def _build_query(self, query: Query):
        ref = self.db.collection(query.collection)
        for field_path, op, value in query.filters:
            ref = ref.where(field_path, op, value)
        if query.order_by:
            direction = firestore.Query.DESCENDING if query.descending else firestore.Query.ASCENDING
            ref = ref.order_by(query.order_by, direction=direction)
        return ref

    def add(self, collection: str, data: Dict[str, Any], actor: Optional[str]) -> str:
        rules.authorize_create(collection, actor, data)
        with _translate_errors('create', collection):
            doc_ref = self.db.collection(collection).document()
            doc_ref.set(data)
        logging.info(f"Firestore 문서 생성 (Collection: {collection}, Doc ID: {doc_ref.id})")
        return doc_ref.id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with _translate_errors('get', f"{collection}/{doc_id}"):
            snapshot = self.db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return self._to_dict(snapshot)

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], actor: Optional[str]) -> None:
        doc_ref = self.db.collection(collection).document(doc_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _update_in_transaction(transaction, doc_ref, patch):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"No document to update: {collection}/{doc_id}")
            rules.authorize_update(collection, actor, doc_id, snapshot.to_dict(), patch)
            transaction.update(doc_ref, patch)

        with _translate_errors('update', f"{collection}/{doc_id}"):
            _update_in_transaction(transaction, doc_ref, patch)

    def delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        doc_ref = self.db.collection(collection).document(doc_id)
        posts_ref = self.db.collection(POSTS_COLLECTION)
        transaction = self.db.transaction()

        @firestore.transactional
        def _delete_in_transaction(transaction, doc_ref):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                return

            def load_post(post_id):
                if not post_id:
                    return None
                parent = posts_ref.document(post_id).get(transaction=transaction)
                return parent.to_dict() if parent.exists else None

            rules.authorize_delete(collection, actor, doc_id, snapshot.to_dict(), load_post)
            transaction.delete(doc_ref)

        with _translate_errors('delete', f"{collection}/{doc_id}"):
            _delete_in_transaction(transaction, doc_ref)

    def authorize_delete(self, collection: str, doc_id: str, actor: Optional[str]) -> None:
        """트랜잭션 없이 현재 문서로 삭제 권한만 판정합니다. 실제 삭제는 delete가 다시 판정합니다."""
        posts_ref = self.db.collection(POSTS_COLLECTION)

        def load_post(post_id):
            if not post_id:
                return None
            parent = posts_ref.document(post_id).get()
            return parent.to_dict() if parent.exists else None

        with _translate_errors('authorize delete', f"{collection}/{doc_id}"):
            snapshot = self.db.collection(collection).document(doc_id).get()
            if snapshot.exists:
                rules.authorize_delete(collection, actor, doc_id, snapshot.to_dict(), load_post)

    def query(self, query: Query) -> Snapshot:
        with _translate_errors('query', query.collection):
            return [self._to_dict(doc) for doc in self._build_query(query).stream()]

    def listen(self, query: Query, callback: SnapshotCallback) -> Unsubscribe:
        def on_snapshot(docs, changes, read_time):
            # docs는 질의 순서대로 정렬된 현재 전체 결과입니다. 변경분(changes)은 사용하지 않습니다.
            callback([self._to_dict(doc) for doc in docs])

        with _translate_errors('listen', query.collection):
            watch = self._build_query(query).on_snapshot(on_snapshot)
        return watch.unsubscribe

# blog_app/api/comments/services.py

import logging
from dataclasses import asdict
from typing import Optional, Dict, Any, List

from blog_app.api.comments.schemas import CommentCreateSchema
from blog_app.core.errors import NotFoundError
from blog_app.models.comment import Comment, COMMENTS_COLLECTION
from blog_app.models.identity import Identity
from blog_app.models.post import POSTS_COLLECTION
from blog_app.services.document_store import DocumentStore, SERVER_TIMESTAMP
from blog_app.services.subscription_service import comments_query


class CommentService:
    """
    댓글 관련 데이터 접근 로직을 담당하는 서비스 클래스.
    - 댓글 내용(3~1000자)은 저장소 호출 전에 검사하며, 실패하면 요청 자체를 보내지 않습니다.
    - 삭제/수정 권한은 저장소의 보안 규칙이 판정합니다.
    """
    def __init__(self, store: DocumentStore):
        self.store = store

    def add_comment(self, identity: Identity, post_id: str, content: str) -> str:
        """댓글을 작성하고 저장소가 발급한 ID를 반환합니다."""
        data = CommentCreateSchema().load({'content': content})

        # 저장소가 참조 무결성을 보장하지 않으므로, 없는 게시글에 댓글이 생기지 않게 먼저 확인합니다.
        if self.store.get(POSTS_COLLECTION, post_id) is None:
            raise NotFoundError("댓글을 작성할 게시물이 존재하지 않습니다.")

        new_comment = Comment(
            post_id=post_id,
            content=data['content'],
            author=identity.author_name,
            author_id=identity.uid
        )
        document = asdict(new_comment)
        document['created_at'] = SERVER_TIMESTAMP
        try:
            comment_id = self.store.add(COMMENTS_COLLECTION, document, actor=identity.uid)
        except Exception as e:
            logging.error(f"댓글 작성 실패 (post_id: {post_id}, user_id: {identity.uid}): {e}", exc_info=True)
            raise
        return comment_id

    def update_comment(self, comment_id: str, identity: Identity, content: str) -> None:
        """댓글 내용을 수정합니다. 작성자 본인만 가능합니다."""
        data = CommentCreateSchema().load({'content': content})
        try:
            self.store.update(COMMENTS_COLLECTION, comment_id, {'content': data['content']}, actor=identity.uid)
        except Exception as e:
            logging.error(f"댓글 수정 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise

    def delete_comment(self, comment_id: str, identity: Identity) -> None:
        """댓글 하나를 삭제합니다. 연쇄 삭제는 없습니다."""
        try:
            self.store.delete(COMMENTS_COLLECTION, comment_id, actor=identity.uid)
        except Exception as e:
            logging.error(f"댓글 삭제 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise

    def get_comment(self, comment_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(COMMENTS_COLLECTION, comment_id)

    def get_comments(self, post_id: str) -> List[Dict[str, Any]]:
        """특정 게시글의 댓글을 작성 순서(created_at 오름차순)로 조회합니다."""
        return self.store.query(comments_query(post_id))

# blog_app/api/posts/services.py
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import asdict
from typing import Optional, Dict, Any, List

from blog_app.api.posts.schemas import PostCreateSchema, PostUpdateSchema
from blog_app.models.category import Category
from blog_app.models.comment import COMMENTS_COLLECTION
from blog_app.models.identity import Identity
from blog_app.models.post import Post, POSTS_COLLECTION
from blog_app.services.document_store import DocumentStore, Query, SERVER_TIMESTAMP
from blog_app.services.subscription_service import POSTS_QUERY


class PostService:
    """
    게시글 쓰기를 저장소 연산으로 옮기는 데이터 접근 계층.
    - 입력 검증은 저장소 호출 전에 끝냅니다. (marshmallow.ValidationError)
    - 소유권은 확인하지 않습니다. 저장소의 보안 규칙이 거부하면 AuthorizationError가 그대로 올라갑니다.
    - 저장소 오류는 삼키지 않고 호출자에게 그대로 전달합니다. 재시도도 하지 않습니다.
    """
    def __init__(self, store: DocumentStore, cascade_workers: int = 8):
        self.store = store
        self.cascade_workers = max(1, cascade_workers)

    def create_post(self, identity: Identity, payload: Dict[str, Any]) -> str:
        """새 게시글을 저장하고 저장소가 발급한 ID를 반환합니다."""
        data = PostCreateSchema().load(payload)
        new_post = Post(
            title=data['title'], content=data['content'], excerpt=data['excerpt'],
            category=Category(data['category']),
            author=identity.author_name, author_id=identity.uid
        )
        document = asdict(new_post)
        document['category'] = new_post.category.value
        # 시각은 클라이언트가 아니라 서버가 기록합니다.
        document['created_at'] = SERVER_TIMESTAMP
        document['updated_at'] = SERVER_TIMESTAMP
        try:
            post_id = self.store.add(POSTS_COLLECTION, document, actor=identity.uid)
        except Exception as e:
            logging.error(f"게시글 생성 실패 (user_id: {identity.uid}): {e}", exc_info=True)
            raise
        logging.info(f"게시글 생성 완료 (post_id: {post_id}, user_id: {identity.uid})")
        return post_id

    def update_post(self, post_id: str, identity: Identity, patch: Dict[str, Any]) -> None:
        """title/content/excerpt/category 중 전달된 항목만 바꾸고 updated_at을 갱신합니다."""
        changes = PostUpdateSchema().load(patch)
        changes['updated_at'] = SERVER_TIMESTAMP
        try:
            self.store.update(POSTS_COLLECTION, post_id, changes, actor=identity.uid)
        except Exception as e:
            logging.error(f"게시글 수정 실패 (post_id: {post_id}, user_id: {identity.uid}): {e}", exc_info=True)
            raise

    def delete_post(self, post_id: str, identity: Identity) -> int:
        """
        게시글과 그 게시글의 댓글을 모두 삭제합니다. 삭제한 댓글 수를 반환합니다.

        저장소에는 여러 문서를 한 번에 지우는 연쇄 삭제가 없으므로 순서를 직접 지킵니다.
        0. 게시글 삭제 권한을 먼저 판정합니다. 거부되면 댓글도 건드리지 않습니다.
        1. post_id가 일치하는 댓글을 조회해 동시에 삭제하고, 일괄 작업 전체가 끝날 때까지 기다립니다.
        2. 하나라도 실패하면 게시글은 지우지 않고 첫 번째 실패를 그대로 올립니다.
        3. 모두 성공했을 때만 게시글을 삭제합니다.
        두 단계는 하나의 트랜잭션이 아니어서, 1과 3 사이에 프로세스가 죽으면 댓글만 지워진 상태가 남을 수 있습니다.
        """
        self.store.authorize_delete(POSTS_COLLECTION, post_id, identity.uid)

        comments = self.store.query(Query(COMMENTS_COLLECTION).where('post_id', '==', post_id))
        if comments:
            logging.info(f"게시글 삭제 전 댓글 {len(comments)}개 삭제 시작 (post_id: {post_id})")
            workers = min(self.cascade_workers, len(comments))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self.store.delete, COMMENTS_COLLECTION, comment['id'], identity.uid)
                    for comment in comments
                ]
                wait(futures)
            failures = [f.exception() for f in futures if f.exception() is not None]
            if failures:
                logging.error(
                    f"댓글 일괄 삭제 실패 {len(failures)}/{len(comments)}건, 게시글 삭제를 중단합니다 "
                    f"(post_id: {post_id}): {failures[0]}"
                )
                raise failures[0]

        try:
            self.store.delete(POSTS_COLLECTION, post_id, actor=identity.uid)
        except Exception as e:
            logging.error(f"게시글 삭제 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise
        logging.info(f"게시글 삭제 완료 (post_id: {post_id}, 삭제된 댓글: {len(comments)}개)")
        return len(comments)

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """단건 조회. 없으면 None을 반환합니다. (오류가 아님)"""
        return self.store.get(POSTS_COLLECTION, post_id)

    def list_posts(self) -> List[Dict[str, Any]]:
        """현재 게시글 전체를 최신순으로 한 번 조회합니다."""
        return self.store.query(POSTS_QUERY)


# blog_app/models/comment.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

COMMENTS_COLLECTION = 'comments'


@dataclass
class Comment:
    """
    'comments' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    post_id는 저장소가 참조 무결성을 보장하지 않으므로, 게시글 삭제 시 애플리케이션이 직접 정리합니다.
    """
    post_id: str
    content: str
    author: str
    author_id: str
    created_at: Optional[datetime] = None

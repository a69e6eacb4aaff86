# blog_app/models/post.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from blog_app.models.category import Category

POSTS_COLLECTION = 'posts'


@dataclass
class Post:
    """
    'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID와 created_at/updated_at은 저장소(서버)가 채웁니다.
    """
    title: str
    content: str
    excerpt: str
    category: Category
    author: str
    author_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

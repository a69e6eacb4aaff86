# blog_app/api/posts/view_model.py
"""
구독 스냅샷으로부터 화면 상태를 계산하는 순수 함수 모음.
카테고리 목록, 검색/필터, 읽기 시간은 모두 이미 받은 데이터로만 계산하며 저장소를 다시 조회하지 않습니다.
"""

import math
from typing import Any, Dict, Iterable, List

from blog_app.models.category import ALL_CATEGORIES

WORDS_PER_MINUTE = 200


def available_categories(posts: Iterable[Dict[str, Any]]) -> List[str]:
    """'All' + 현재 불러온 게시글에 등장한 카테고리(처음 나온 순서, 중복 제거)."""
    categories = [ALL_CATEGORIES]
    for post in posts:
        category = post.get('category')
        if category and category not in categories:
            categories.append(category)
    return categories


def matches_search(post: Dict[str, Any], search_term: str) -> bool:
    """제목 또는 요약에 검색어가 포함되는지(대소문자 무시) 확인합니다."""
    needle = (search_term or "").lower()
    if not needle:
        return True
    return needle in (post.get('title') or "").lower() or needle in (post.get('excerpt') or "").lower()


def filter_posts(posts: Iterable[Dict[str, Any]], search_term: str = "",
                 category: str = ALL_CATEGORIES) -> List[Dict[str, Any]]:
    """검색 조건과 카테고리 조건을 AND로 적용합니다. 'All'이면 카테고리 필터를 끕니다."""
    return [
        post for post in posts
        if matches_search(post, search_term)
        and (category == ALL_CATEGORIES or post.get('category') == category)
    ]


def read_time_minutes(content: str) -> int:
    # 공백 덩어리 기준으로 단어를 셉니다. 아무리 짧아도 1분으로 표시합니다.
    word_count = len((content or "").split())
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def read_time_label(content: str) -> str:
    return f"{read_time_minutes(content)} min read"


def comment_count_label(count: int) -> str:
    return f"{count} {'Comment' if count == 1 else 'Comments'}"


def with_read_time(post: Dict[str, Any]) -> Dict[str, Any]:
    return dict(post, read_time=read_time_label(post.get('content', "")))


def build_feed(posts: List[Dict[str, Any]], search_term: str = "",
               category: str = ALL_CATEGORIES) -> Dict[str, Any]:
    """
    목록 화면 하나에 필요한 상태를 만듭니다.
    categories는 필터 적용 전 전체 게시글 기준이며, total은 필터 전, count는 필터 후 개수입니다.
    """
    visible = filter_posts(posts, search_term, category)
    return {
        "posts": [with_read_time(post) for post in visible],
        "categories": available_categories(posts),
        "selected_category": category,
        "search": search_term,
        "total": len(posts),
        "count": len(visible),
        "summary": f"{len(visible)} article{'' if len(visible) == 1 else 's'} found",
    }

# blog_app/models/category.py
from enum import Enum
from typing import List

# 카테고리 필터에서 '전체'를 뜻하는 가상 항목. Category 값과 겹치지 않습니다.
ALL_CATEGORIES = "All"


class Category(Enum):
    """게시글 카테고리. 검증, 편집기 선택지, 필터가 모두 이 목록을 공유합니다."""
    DEVELOPMENT = "Development"
    DESIGN = "Design"
    ARCHITECTURE = "Architecture"
    TECHNOLOGY = "Technology"
    PERFORMANCE = "Performance"
    TUTORIAL = "Tutorial"
    OPINION = "Opinion"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

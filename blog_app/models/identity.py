# blog_app/models/identity.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """
    Identity Provider(Firebase Auth)가 확인해 준 사용자 정보.
    uid만이 문서 소유권 판단의 기준이 됩니다.
    """
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def author_name(self) -> str:
        """게시글/댓글에 비정규화되어 저장될 작성자 표시 이름."""
        return self.display_name or self.email or "Anonymous"

# blog_app/core/errors.py
"""
저장소 연산에서 발생하는 도메인 예외.

- 저장소가 돌려준 원본 메시지를 그대로 담아 UI까지 전달합니다.
- 입력값 검증 실패는 marshmallow.ValidationError를 그대로 사용합니다.
- 단건 조회에서 문서가 없는 경우는 예외가 아니라 None으로 표현합니다.
"""


class BlogError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    error_code = "BLOG_ERROR"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


class WriteError(BlogError):
    """저장소가 쓰기를 거부하거나 실패한 경우. 네트워크, 할당량 등 그 밖의 실패는 이 클래스 그대로 사용합니다."""
    error_code = "WRITE_FAILED"
    status_code = 502


class AuthorizationError(WriteError):
    """보안 규칙(소유자 검사)에 의해 쓰기가 거부된 경우."""
    error_code = "FORBIDDEN"
    status_code = 403


class NotFoundError(WriteError):
    """수정/댓글 작성 대상 문서가 존재하지 않는 경우."""
    error_code = "NOT_FOUND"
    status_code = 404


class AuthenticationError(BlogError):
    """Identity Provider가 발급한 ID 토큰을 확인할 수 없는 경우."""
    error_code = "INVALID_ID_TOKEN"
    status_code = 401

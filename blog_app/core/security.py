# blog_app/core/security.py
"""
인증 게이트.

보호된 엔드포인트는 신원이 확인되기 전에는 실행되지 않습니다.
확인된 Identity는 전역 상태가 아니라 요청 컨텍스트(flask.g)에 담겨 서비스로 명시적으로 전달됩니다.
"""

from functools import wraps

from flask import g
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity

from blog_app.models.identity import Identity


def identity_claims(identity: Identity) -> dict:
    """자체 JWT에 함께 실어 보낼 표시용 정보."""
    return {"display_name": identity.display_name, "email": identity.email}


def current_identity() -> Identity:
    """검증이 끝난 JWT에서 Identity를 복원합니다."""
    claims = get_jwt()
    return Identity(
        uid=get_jwt_identity(),
        display_name=claims.get('display_name'),
        email=claims.get('email')
    )


def identity_required(fn):
    """
    JWT를 검증하고 g.identity를 채운 뒤에만 뷰 함수를 실행합니다.
    토큰이 없거나 유효하지 않으면 flask_jwt_extended의 기본 핸들러가 401을 반환합니다.
    """
    @wraps(fn)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        g.identity = current_identity()
        return fn(*args, **kwargs)

    return decorated_function

# blog_app/api/auth/schemas.py
from marshmallow import Schema, fields


class SessionRequestSchema(Schema):
    """Firebase Auth로 로그인한 브라우저가 받은 ID 토큰을 자체 JWT로 교환하는 요청."""
    id_token = fields.Str(
        required=True,
        metadata={"description": "이메일/비밀번호 또는 Google 팝업 로그인으로 받은 Firebase ID 토큰"}
    )


class LogoutRequestSchema(Schema):
    """로그아웃 요청. Authorization 헤더의 토큰과 함께 refresh 토큰도 무효화할 수 있습니다."""
    refresh_token = fields.Str(required=False)


class IdentitySchema(Schema):
    """현재 로그인한 사용자 정보 응답."""
    uid = fields.Str(required=True)
    display_name = fields.Str(allow_none=True)
    email = fields.Str(allow_none=True)
    author_name = fields.Str(dump_only=True)

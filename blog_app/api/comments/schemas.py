# blog_app/api/comments/schemas.py
from marshmallow import Schema, fields, validate, pre_load

COMMENT_MIN_LENGTH = 3
COMMENT_MAX_LENGTH = 1000


class CommentCreateSchema(Schema):
    """
    POST /api/posts/{post_id}/comments, PATCH /api/comments/{comment_id}
    댓글 내용은 앞뒤 공백을 제거한 뒤 길이를 검사합니다.
    """
    content = fields.Str(required=True, validate=validate.Length(
        min=COMMENT_MIN_LENGTH, max=COMMENT_MAX_LENGTH,
        error=f"댓글은 {COMMENT_MIN_LENGTH}~{COMMENT_MAX_LENGTH}자 사이여야 합니다."))

    @pre_load
    def strip_content(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('content'), str):
            data = dict(data, content=data['content'].strip())
        return data


class CommentResponseSchema(Schema):
    """댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    comment_id = fields.Str(attribute='id', dump_only=True)
    post_id = fields.Str(required=True)
    content = fields.Str(required=True)
    author = fields.Str(required=True)
    author_id = fields.Str(required=True)
    created_at = fields.DateTime(allow_none=True)

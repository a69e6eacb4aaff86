# blog_app/api/posts/schemas.py
from marshmallow import Schema, fields, validate, pre_load, post_load, validates_schema, ValidationError

from blog_app.models.category import Category, ALL_CATEGORIES

# 요약문을 비워 두면 본문 앞부분으로 대신합니다.
EXCERPT_FALLBACK_LENGTH = 150


def default_excerpt(content: str) -> str:
    return content[:EXCERPT_FALLBACK_LENGTH] + "..."


def _strip_strings(data):
    if not isinstance(data, dict):
        return data
    return {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}


class PostCreateSchema(Schema):
    """POST /api/posts 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200, error="제목은 1~200자 사이여야 합니다."))
    content = fields.Str(required=True, validate=validate.Length(min=1, error="본문을 입력해 주세요."))
    excerpt = fields.Str(load_default="", validate=validate.Length(max=300, error="요약은 300자 이하여야 합니다."))
    category = fields.Str(required=True, validate=validate.OneOf(Category.values()))

    @pre_load
    def strip_whitespace(self, data, **kwargs):
        return _strip_strings(data)

    @post_load
    def fill_excerpt(self, data, **kwargs):
        if not data.get('excerpt'):
            data['excerpt'] = default_excerpt(data['content'])
        return data


class PostUpdateSchema(Schema):
    """PATCH /api/posts/{post_id} 부분 수정 요청 스키마."""
    title = fields.Str(validate=validate.Length(min=1, max=200, error="제목은 1~200자 사이여야 합니다."))
    content = fields.Str(validate=validate.Length(min=1, error="본문을 입력해 주세요."))
    excerpt = fields.Str(validate=validate.Length(max=300, error="요약은 300자 이하여야 합니다."))
    category = fields.Str(validate=validate.OneOf(Category.values()))

    @pre_load
    def strip_whitespace(self, data, **kwargs):
        return _strip_strings(data)

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("수정할 항목(title, content, excerpt, category)이 하나 이상 필요합니다.")

    @post_load
    def fill_excerpt(self, data, **kwargs):
        # 빈 요약은 새 본문이 함께 올 때만 본문으로 대체하고, 아니면 기존 요약을 유지합니다.
        if 'excerpt' in data and not data['excerpt']:
            if data.get('content'):
                data['excerpt'] = default_excerpt(data['content'])
            else:
                del data['excerpt']
        return data


class FeedQuerySchema(Schema):
    """GET /api/posts 쿼리 파라미터 (검색어, 카테고리 필터)."""
    search = fields.Str(load_default="")
    category = fields.Str(load_default=ALL_CATEGORIES,
                          validate=validate.OneOf([ALL_CATEGORIES] + Category.values()))


class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    post_id = fields.Str(attribute='id', dump_only=True)
    title = fields.Str(required=True)
    content = fields.Str(required=True)
    excerpt = fields.Str(required=True)
    category = fields.Str(required=True)
    author = fields.Str(required=True)
    author_id = fields.Str(required=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)

    # 뷰모델이 채워주는 응답 전용 필드
    read_time = fields.Str(dump_only=True)
    comment_count = fields.Int(dump_only=True)

# blog_app/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g, Response, stream_with_context

from blog_app.api.posts.schemas import FeedQuerySchema, PostResponseSchema
from blog_app.api.posts.view_model import build_feed, with_read_time, comment_count_label
from blog_app.core.security import identity_required
from blog_app.models.category import Category
from blog_app.utils.sse import stream_snapshots

posts_bp = Blueprint('posts_bp', __name__)


def _render_feed(posts, query):
    feed = build_feed(posts, query['search'], query['category'])
    feed['posts'] = PostResponseSchema(many=True).dump(feed['posts'])
    return feed


def _post_not_found():
    # 쓰기 직후 다시 읽었을 때 이미 삭제된 경우도 여기로 옵니다.
    return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없습니다."}), 404


@posts_bp.route('/', methods=['GET'])
@identity_required
def get_posts():
    """
    게시글 목록을 최신순으로 조회합니다.
    - search: 제목/요약 검색어, category: 카테고리 필터('All'이면 전체)
    """
    post_service = current_app.services['posts']
    query = FeedQuerySchema().load(request.args.to_dict())
    try:
        posts = post_service.list_posts()
    except Exception as e:
        logging.error(f"게시글 목록 조회 중 오류 발생: {e}", exc_info=True)
        raise
    return jsonify(_render_feed(posts, query)), 200


@posts_bp.route('/stream', methods=['GET'])
@identity_required
def stream_posts():
    """
    게시글 목록의 라이브 스트림(SSE).
    게시글이 생성/수정/삭제될 때마다 필터가 적용된 전체 목록을 'feed' 이벤트로 보냅니다.
    """
    subscriptions = current_app.services['subscriptions']
    query = FeedQuerySchema().load(request.args.to_dict())
    keepalive = current_app.config['STREAM_KEEPALIVE_SECONDS']

    events = stream_snapshots(subscriptions.subscribe_to_posts,
                              lambda posts: _render_feed(posts, query), 'feed', keepalive)
    return Response(stream_with_context(events), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})


@posts_bp.route('/', methods=['POST'])
@identity_required
def create_post():
    """
    새로운 게시글을 생성합니다.
    - 성공 시, 생성된 게시글 정보를 201 Created 상태 코드와 함께 반환합니다.
    - 목록 화면은 이 응답이 아니라 구독의 다음 스냅샷으로 갱신되어야 합니다.
    """
    post_service = current_app.services['posts']
    post_id = post_service.create_post(g.identity, request.get_json(silent=True))
    post = post_service.get_post(post_id)
    if not post:
        return _post_not_found()
    return jsonify(PostResponseSchema().dump(with_read_time(post))), 201


@posts_bp.route('/<string:post_id>', methods=['GET'])
@identity_required
def get_post(post_id: str):
    """특정 게시글의 상세 정보(읽기 시간, 댓글 수 포함)를 조회합니다."""
    post_service = current_app.services['posts']
    comment_service = current_app.services['comments']
    post = post_service.get_post(post_id)
    if not post:
        return _post_not_found()

    comment_count = len(comment_service.get_comments(post_id))
    response = PostResponseSchema().dump(dict(with_read_time(post), comment_count=comment_count))
    response['comment_count_label'] = comment_count_label(comment_count)
    return jsonify(response), 200


@posts_bp.route('/<string:post_id>', methods=['PATCH'])
@identity_required
def update_post(post_id: str):
    """
    특정 게시글의 내용을 수정합니다.
    - 작성자가 아니면 저장소가 거부하며 403(FORBIDDEN)이 반환됩니다.
    """
    post_service = current_app.services['posts']
    post_service.update_post(post_id, g.identity, request.get_json(silent=True))
    post = post_service.get_post(post_id)
    if not post:
        return _post_not_found()
    return jsonify(PostResponseSchema().dump(with_read_time(post))), 200


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@identity_required
def delete_post(post_id: str):
    """
    특정 게시글과 그 댓글을 모두 삭제합니다. (작성자 본인만 가능)
    - 댓글 삭제 단계가 실패하면 게시글은 남아 있고 오류가 그대로 반환됩니다.
    """
    post_service = current_app.services['posts']
    deleted_comments = post_service.delete_post(post_id, g.identity)
    return jsonify({"message": "게시글이 삭제되었습니다.", "deleted_comments": deleted_comments}), 200


@posts_bp.route('/categories', methods=['GET'])
def get_categories():
    """게시글 편집기에서 고를 수 있는 카테고리 목록."""
    return jsonify({"categories": Category.values()}), 200

# blog_app/api/comments/routes.py
from flask import Blueprint, request, jsonify, Response, current_app, g, stream_with_context

from blog_app.api.comments.schemas import CommentResponseSchema
from blog_app.api.posts.view_model import comment_count_label
from blog_app.core.security import identity_required
from blog_app.utils.sse import stream_snapshots

comments_bp = Blueprint('comments_bp', __name__)


def _render_comments(comments):
    return {
        "comments": CommentResponseSchema(many=True).dump(comments),
        "count": len(comments),
        "count_label": comment_count_label(len(comments))
    }


def _comment_not_found():
    # 쓰기 직후 다시 읽었을 때 이미 삭제된 경우
    return jsonify({"error_code": "COMMENT_NOT_FOUND", "message": "댓글을 찾을 수 없습니다."}), 404


@comments_bp.route('/posts/<string:post_id>/comments', methods=['POST'])
@identity_required
def create_comment(post_id: str):
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 내용이 3~1000자가 아니면 저장소에 요청하지 않고 400을 반환합니다.
    - 게시글이 없으면 404를 반환합니다.
    """
    comment_service = current_app.services['comments']
    payload = request.get_json(silent=True) or {}
    comment_id = comment_service.add_comment(g.identity, post_id, payload.get('content'))
    comment = comment_service.get_comment(comment_id)
    if not comment:
        return _comment_not_found()
    return jsonify(CommentResponseSchema().dump(comment)), 201


@comments_bp.route('/posts/<string:post_id>/comments', methods=['GET'])
@identity_required
def get_comments(post_id: str):
    """특정 게시글의 댓글 목록을 작성 순서대로 조회합니다."""
    comment_service = current_app.services['comments']
    return jsonify(_render_comments(comment_service.get_comments(post_id))), 200


@comments_bp.route('/posts/<string:post_id>/comments/stream', methods=['GET'])
@identity_required
def stream_comments(post_id: str):
    """특정 게시글 댓글 목록의 라이브 스트림(SSE). 변경될 때마다 전체 목록을 'comments' 이벤트로 보냅니다."""
    subscriptions = current_app.services['subscriptions']
    keepalive = current_app.config['STREAM_KEEPALIVE_SECONDS']
    events = stream_snapshots(lambda: subscriptions.subscribe_to_comments(post_id),
                              _render_comments, 'comments', keepalive)
    return Response(stream_with_context(events), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})


@comments_bp.route('/comments/<string:comment_id>', methods=['PATCH'])
@identity_required
def update_comment(comment_id: str):
    """댓글 내용을 수정합니다. (작성자 본인만 가능)"""
    comment_service = current_app.services['comments']
    payload = request.get_json(silent=True) or {}
    comment_service.update_comment(comment_id, g.identity, payload.get('content'))
    comment = comment_service.get_comment(comment_id)
    if not comment:
        return _comment_not_found()
    return jsonify(CommentResponseSchema().dump(comment)), 200


@comments_bp.route('/comments/<string:comment_id>', methods=['DELETE'])
@identity_required
def delete_comment(comment_id: str):
    """
    특정 댓글을 삭제합니다.
    - 댓글 작성자 또는 게시글 작성자만 가능하며, 그 밖의 사용자는 403을 받습니다.
    """
    comment_service = current_app.services['comments']
    comment_service.delete_comment(comment_id, g.identity)
    return Response(status=204)

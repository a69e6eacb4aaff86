# blog_app/api/auth/routes.py

import logging
from flask import Blueprint, request, jsonify, current_app, g
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt,
    get_jwt_identity,
    decode_token
)

from blog_app.api.auth.schemas import SessionRequestSchema, LogoutRequestSchema, IdentitySchema
from blog_app.core.security import identity_claims, identity_required

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/session', methods=['POST'])
def create_session():
    """
    Firebase ID 토큰을 검증하고 자체 Access/Refresh 토큰을 발급합니다.
    - ID 토큰이 유효하지 않으면 401(INVALID_ID_TOKEN)을 반환합니다.
    """
    auth_service = current_app.services['auth']
    data = SessionRequestSchema().load(request.get_json(silent=True) or {})
    identity = auth_service.verify_id_token(data['id_token'])

    claims = identity_claims(identity)
    access_token = create_access_token(identity=identity.uid, additional_claims=claims)
    refresh_token = create_refresh_token(identity=identity.uid, additional_claims=claims)
    logging.info(f"로그인 세션 발급 (uid: {identity.uid})")

    return jsonify({
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": IdentitySchema().dump(identity)
    }), 200


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다. 표시 정보 클레임은 그대로 유지됩니다."""
    claims = get_jwt()
    new_access_token = create_access_token(
        identity=get_jwt_identity(),
        additional_claims={"display_name": claims.get('display_name'), "email": claims.get('email')}
    )
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
@jwt_required(verify_type=False)
def logout():
    """현재 토큰(그리고 전달된 경우 refresh 토큰)을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    data = LogoutRequestSchema().load(request.get_json(silent=True) or {})

    current = get_jwt()
    auth_service.revoke_token(current['jti'], current.get('exp'))

    if data.get('refresh_token'):
        try:
            decoded_refresh = decode_token(data['refresh_token'], allow_expired=True)
        except Exception as e:
            logging.warning(f"로그아웃 시 refresh 토큰 해독 실패: {e}")
            return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
        if decoded_refresh.get('sub') != current.get('sub'):
            return jsonify({"error_code": "INVALID_TOKEN", "message": "다른 사용자의 토큰은 무효화할 수 없습니다."}), 422
        auth_service.revoke_token(decoded_refresh['jti'], decoded_refresh.get('exp'))

    return jsonify({"message": "로그아웃 되었습니다."}), 200


@auth_bp.route('/me', methods=['GET'])
@identity_required
def me():
    """인증 게이트를 통과한 현재 사용자 정보를 반환합니다."""
    return jsonify(IdentitySchema().dump(g.identity)), 200

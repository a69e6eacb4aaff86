# blog_app/api/setup/routes.py
from flask import Blueprint, jsonify, current_app

from blog_app.core.rules import FIRESTORE_RULES

setup_bp = Blueprint('setup_bp', __name__)


@setup_bp.route('/security-rules', methods=['GET'])
def get_security_rules():
    """
    Firestore 권한 오류(Permission Denied)가 날 때 안내할 보안 규칙 원문을 반환합니다.
    Firebase 콘솔의 Firestore > 규칙 탭에 그대로 붙여 넣으면 됩니다.
    """
    return jsonify({
        "document_store": current_app.config['DOCUMENT_STORE'],
        "rules": FIRESTORE_RULES
    }), 200

# blog_app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import atexit
import os
import logging
from typing import Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from blog_app.core.config import config_by_name
from blog_app.core.errors import BlogError

# - API 블루프린트
from blog_app.api.auth.routes import auth_bp
from blog_app.api.posts.routes import posts_bp
from blog_app.api.comments.routes import comments_bp
from blog_app.api.setup.routes import setup_bp

# - 서비스 모듈
from blog_app.api.auth.services import AuthService
from blog_app.api.posts.services import PostService
from blog_app.api.comments.services import CommentService
from blog_app.services.document_store import InMemoryDocumentStore
from blog_app.services.firestore_store import FirestoreDocumentStore
from blog_app.services.subscription_service import SubscriptionService


def _create_document_store(app: Flask):
    """설정에 따라 Firestore 또는 메모리 저장소를 만듭니다."""
    store_type = app.config['DOCUMENT_STORE']
    if store_type == 'memory':
        logging.info("In-memory document store initialized")
        return InMemoryDocumentStore()
    if store_type != 'firestore':
        raise ValueError(f"지원하지 않는 DOCUMENT_STORE 값입니다: {store_type}")

    if not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        options = {'projectId': app.config['FIREBASE_PROJECT_ID']} if app.config['FIREBASE_PROJECT_ID'] else None
        firebase_admin.initialize_app(cred, options)
    logging.info("Firestore document store initialized")
    return FirestoreDocumentStore()


def create_app(config_name: Optional[str] = None):
    """
    Flask 애플리케이션 팩토리 함수.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 저장소 먼저 생성
    try:
        app.services['store'] = _create_document_store(app)
    except Exception as e:
        logging.error(f"Failed to initialize document store: {e}")
        raise

    # 5-2. 저장소를 주입받는 도메인 서비스 생성
    store = app.services['store']
    app.services['auth'] = AuthService(store)
    app.services['posts'] = PostService(store, cascade_workers=app.config['CASCADE_DELETE_MAX_WORKERS'])
    app.services['comments'] = CommentService(store)
    app.services['subscriptions'] = SubscriptionService(store)

    # 프로세스가 끝날 때 해제되지 않은 구독이 남지 않도록 정리합니다.
    atexit.register(app.services['subscriptions'].close_all)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(setup_bp, url_prefix='/api/setup')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(BlogError)
    def handle_blog_error(err):
        # 저장소가 돌려준 원본 메시지를 그대로 전달합니다.
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app

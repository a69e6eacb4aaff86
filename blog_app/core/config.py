# blog_app/core/config.py

import os
from datetime import timedelta


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 서명 키. Firebase ID 토큰을 검증한 뒤 발급하는 자체 토큰에 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=14)

    # 'firestore' 또는 'memory'. memory는 로컬 개발/테스트용 저장소입니다.
    DOCUMENT_STORE = os.getenv('DOCUMENT_STORE', 'firestore')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')

    # 게시글 삭제 시 댓글을 동시에 지우는 작업자 수
    CASCADE_DELETE_MAX_WORKERS = int(os.getenv('CASCADE_DELETE_MAX_WORKERS', 8))
    # SSE 스트림이 유휴 상태일 때 keep-alive 주석을 보내는 간격(초)
    STREAM_KEEPALIVE_SECONDS = float(os.getenv('STREAM_KEEPALIVE_SECONDS', 15))


class DevelopmentConfig(Config):
    """개발 환경 설정. 코드 변경 시 자동 재시작, 상세 에러 페이지를 사용합니다."""
    DEBUG = True


class TestingConfig(Config):
    """테스트 환경 설정. Firebase 없이 메모리 저장소로 동작합니다."""
    TESTING = True
    DEBUG = False
    DOCUMENT_STORE = 'memory'
    JWT_SECRET_KEY = 'testing-secret-key-that-is-long-enough'
    CASCADE_DELETE_MAX_WORKERS = 4
    STREAM_KEEPALIVE_SECONDS = 0.05


class ProductionConfig(Config):
    """운영 환경 설정."""
    DEBUG = False


# FLASK_ENV 값(또는 create_app 인자)에 따라 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)

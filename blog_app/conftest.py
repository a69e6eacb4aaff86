# blog_app/conftest.py
"""
공용 테스트 픽스처

사용법: python -m pytest -v
Firebase 없이 메모리 저장소(TestingConfig)로 앱을 띄웁니다.
"""

import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from blog_app import create_app
from blog_app.core.security import identity_claims
from blog_app.models.identity import Identity


@pytest.fixture
def app():
    app = create_app('testing')
    yield app
    app.services['subscriptions'].close_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.services['store']


@pytest.fixture
def alice():
    return Identity(uid='user-alice', display_name='Alice', email='alice@example.com')


@pytest.fixture
def bob():
    return Identity(uid='user-bob', display_name=None, email='bob@example.com')


@pytest.fixture
def auth_headers(app):
    """Identity로 Authorization 헤더를 만드는 함수를 돌려줍니다."""
    def _headers(identity, refresh=False):
        with app.app_context():
            make_token = create_refresh_token if refresh else create_access_token
            token = make_token(identity=identity.uid, additional_claims=identity_claims(identity))
        return {'Authorization': f'Bearer {token}'}
    return _headers


def post_payload(**overrides):
    payload = {
        'title': 'Hello World',
        'content': 'word ' * 60,
        'excerpt': 'A first post',
        'category': 'Development',
    }
    payload.update(overrides)
    return payload

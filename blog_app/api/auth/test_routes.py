# blog_app/api/auth/test_routes.py
"""
인증 API 테스트 (Firebase ID 토큰 검증은 monkeypatch로 대체)

사용법: python -m pytest blog_app/api/auth/test_routes.py -v
"""

import pytest
from firebase_admin import auth as firebase_auth

VALID_TOKEN = 'valid-firebase-id-token'


@pytest.fixture(autouse=True)
def fake_firebase(monkeypatch):
    def verify_id_token(id_token, check_revoked=False):
        if id_token != VALID_TOKEN:
            raise firebase_auth.InvalidIdTokenError('Could not verify token signature.')
        return {'uid': 'firebase-uid-1', 'name': 'Dana', 'email': 'dana@example.com'}

    monkeypatch.setattr('blog_app.api.auth.services.firebase_auth.verify_id_token', verify_id_token)


def _login(client):
    res = client.post('/api/auth/session', json={'id_token': VALID_TOKEN})
    assert res.status_code == 200
    return res.get_json()


def test_session_issues_tokens_and_identity(client):
    body = _login(client)
    assert body['access_token'] and body['refresh_token']
    assert body['user'] == {
        'uid': 'firebase-uid-1', 'display_name': 'Dana',
        'email': 'dana@example.com', 'author_name': 'Dana'
    }

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.get_json()['uid'] == 'firebase-uid-1'


def test_invalid_id_token(client):
    res = client.post('/api/auth/session', json={'id_token': 'forged'})
    assert res.status_code == 401
    assert res.get_json()['error_code'] == 'INVALID_ID_TOKEN'


def test_session_requires_id_token(client):
    res = client.post('/api/auth/session', json={})
    assert res.status_code == 400
    assert 'id_token' in res.get_json()['details']


def test_refresh_keeps_display_claims(client):
    body = _login(client)
    res = client.post('/api/auth/token/refresh', headers={'Authorization': f"Bearer {body['refresh_token']}"})
    assert res.status_code == 200

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {res.get_json()['access_token']}"})
    assert me.get_json()['author_name'] == 'Dana'


def test_access_token_cannot_refresh(client):
    body = _login(client)
    res = client.post('/api/auth/token/refresh', headers={'Authorization': f"Bearer {body['access_token']}"})
    assert res.status_code == 422


def test_logout_revokes_access_and_refresh_tokens(client):
    body = _login(client)
    access = {'Authorization': f"Bearer {body['access_token']}"}

    res = client.post('/api/auth/logout', json={'refresh_token': body['refresh_token']}, headers=access)
    assert res.status_code == 200

    assert client.get('/api/auth/me', headers=access).status_code == 401
    res = client.post('/api/auth/token/refresh', headers={'Authorization': f"Bearer {body['refresh_token']}"})
    assert res.status_code == 401


def test_logout_rejects_someone_elses_refresh_token(client, bob, auth_headers):
    body = _login(client)
    bob_refresh = auth_headers(bob, refresh=True)['Authorization'].split(' ', 1)[1]
    res = client.post('/api/auth/logout', json={'refresh_token': bob_refresh},
                      headers={'Authorization': f"Bearer {body['access_token']}"})
    assert res.status_code == 422
    assert res.get_json()['error_code'] == 'INVALID_TOKEN'

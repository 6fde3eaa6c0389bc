from urllib.parse import parse_qs, urlparse

import pytest

from battlebeats.models import Session, User
from battlebeats.services.google_oauth import GoogleOAuthService

GOOGLE_PROFILE = {
    'sub': '109876543210',
    'email': 'dj.nova@example.com',
    'given_name': 'Nova',
    'family_name': 'Reyes',
    'picture': 'https://lh3.googleusercontent.com/a/nova',
    'name': 'djnova',
}


@pytest.fixture
def fake_google(monkeypatch):
    monkeypatch.setattr(GoogleOAuthService, 'exchange_code', lambda self, code: {'access_token': f'token-{code}'})
    monkeypatch.setattr(GoogleOAuthService, 'fetch_profile', lambda self, access_token: dict(GOOGLE_PROFILE))


def _sign_in(client):
    login = client.get('/api/login')
    state = parse_qs(urlparse(login.headers['Location']).query)['state'][0]
    return client.get(f'/api/auth/google/callback?code=abc&state={state}')


def test_login_redirects_to_google_with_state(client):
    response = client.get('/api/login')

    assert response.status_code == 302
    location = urlparse(response.headers['Location'])
    assert location.netloc == 'accounts.google.com'
    query = parse_qs(location.query)
    assert query['client_id'] == ['test-client-id']
    assert query['state'][0]


def test_callback_with_wrong_state_fails(client, fake_google):
    client.get('/api/login')

    response = client.get('/api/auth/google/callback?code=abc&state=forged')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login-failed')
    assert User.query.count() == 0


def test_callback_creates_user_and_session_cookie(client, fake_google):
    response = _sign_in(client)

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard')
    assert client.get_cookie('battlebeats_session') is not None
    assert Session.query.count() == 1

    me = client.get('/api/auth/user')
    assert me.status_code == 200
    assert me.get_json()['email'] == 'dj.nova@example.com'
    assert me.get_json()['username'] == 'djnova'
    assert me.get_json()['role'] == 'listener'


def test_second_sign_in_reuses_user(client, fake_google):
    _sign_in(client)
    first_id = client.get('/api/auth/user').get_json()['id']

    _sign_in(client)

    assert client.get('/api/auth/user').get_json()['id'] == first_id
    assert User.query.count() == 1


def test_new_user_with_taken_username_gets_a_suffix(client, make_user, fake_google):
    make_user(username='djnova')

    _sign_in(client)

    assert client.get('/api/auth/user').get_json()['username'] == 'djnova-543210'


def test_logout_revokes_session(client, fake_google):
    _sign_in(client)
    token = client.get_cookie('battlebeats_session').value

    response = client.get('/api/logout')

    assert response.status_code == 302
    assert Session.query.count() == 0
    assert client.get('/api/auth/user', headers={'Authorization': f'Bearer {token}'}).status_code == 401


def test_auth_user_requires_session(client):
    response = client.get('/api/auth/user')

    assert response.status_code == 401
    assert response.get_json() == {'message': 'Unauthorized'}

# app/api/auth/test_auth_routes.py
import pytest


@pytest.fixture
def firebase_user(identity):
    return identity.add_user('u1', email='u1@example.com', display_name='하늘', id_token='valid-id-token')


def test_register_creates_account_and_profile(client, services):
    response = client.post('/api/auth/register', json={
        'email': 'new@example.com', 'password': 'secret123', 'displayName': '새내기'
    })
    data = response.get_json()['data']

    assert response.status_code == 201
    assert data['customToken'] == f"custom-token-{data['user']['uid']}"
    assert data['user']['email'] == 'new@example.com'
    assert 'password' not in data['user']
    assert services['users'].find_profile(data['user']['uid']).display_name == '새내기'


def test_register_duplicate_email_conflicts(client, firebase_user):
    response = client.post('/api/auth/register', json={'email': 'u1@example.com', 'password': 'secret123'})
    assert response.status_code == 409


def test_register_validates_password(client):
    response = client.post('/api/auth/register', json={'email': 'new@example.com', 'password': '123'})
    assert response.status_code == 400
    assert 'password' in response.get_json()['details']


def test_token_exchange_issues_app_tokens(client, firebase_user):
    response = client.post('/api/auth/token', json={'idToken': 'valid-id-token'})
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['accessToken'] and data['refreshToken']
    assert data['user']['uid'] == 'u1'
    assert data['user']['displayName'] == '하늘'

    me = client.get('/api/users/profile', headers={'Authorization': f"Bearer {data['accessToken']}"})
    assert me.get_json()['data']['email'] == 'u1@example.com'


def test_token_exchange_rejects_invalid_id_token(client, firebase_user):
    response = client.post('/api/auth/token', json={'idToken': 'forged'})
    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'UNAUTHORIZED'


def test_refresh_requires_refresh_token(client, tokens_for):
    access_token, refresh_token = tokens_for('u1')

    ok = client.post('/api/auth/token/refresh', headers={'Authorization': f'Bearer {refresh_token}'})
    assert ok.status_code == 200
    assert ok.get_json()['data']['accessToken']

    wrong = client.post('/api/auth/token/refresh', headers={'Authorization': f'Bearer {access_token}'})
    assert wrong.status_code == 401


def test_logout_revokes_both_tokens(client, tokens_for):
    access_token, refresh_token = tokens_for('u1')

    response = client.post('/api/auth/logout', json={'accessToken': access_token, 'refreshToken': refresh_token})
    assert response.status_code == 200

    trips = client.get('/api/trips', headers={'Authorization': f'Bearer {access_token}'})
    assert trips.status_code == 401
    refresh = client.post('/api/auth/token/refresh', headers={'Authorization': f'Bearer {refresh_token}'})
    assert refresh.status_code == 401


def test_logout_with_garbage_token(client):
    response = client.post('/api/auth/logout', json={'accessToken': 'not-a-jwt', 'refreshToken': 'nope'})
    assert response.status_code == 401

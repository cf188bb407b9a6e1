# app/api/users/test_user_routes.py
import pytest


@pytest.fixture
def users(identity, services):
    identity.add_user('u1', email='u1@example.com', display_name='하늘', photo_url='https://img/u1.png')
    identity.add_user('u2', email='u2@example.com', display_name='바다')
    services['users'].ensure_profile('u2')


def test_my_profile_includes_private_fields(client, auth_headers, users):
    response = client.get('/api/users/profile', headers=auth_headers('u1'))
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['uid'] == 'u1'
    assert data['email'] == 'u1@example.com'
    assert data['photoURL'] == 'https://img/u1.png'
    assert data['preferences'] == {'notificationsEnabled': True, 'privacySettings': 'public'}
    assert data['stats'] == {'tripsCount': 0, 'storiesCount': 0, 'followersCount': 0, 'followingCount': 0}


def test_other_profile_hides_private_fields(client, auth_headers, users):
    data = client.get('/api/users/profile/u2', headers=auth_headers('u1')).get_json()['data']

    assert data['displayName'] == '바다'
    assert 'email' not in data
    assert 'preferences' not in data


def test_unknown_profile_is_not_found(client, auth_headers, users):
    assert client.get('/api/users/profile/ghost', headers=auth_headers('u1')).status_code == 404


def test_update_profile(client, auth_headers, users):
    response = client.put('/api/users/profile', headers=auth_headers('u1'), json={
        'displayName': '하늘이',
        'photoURL': 'https://img/new.png',
        'socialLinks': {'instagram': '@sky'},
        'preferences': {'notificationsEnabled': False, 'privacySettings': 'followers'},
    })
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['displayName'] == '하늘이'
    assert data['photoURL'] == 'https://img/new.png'
    assert data['socialLinks'] == {'instagram': '@sky'}
    assert data['preferences']['privacySettings'] == 'followers'


@pytest.mark.parametrize('patch', [{'uid': 'u2'}, {'email': 'x@example.com'}, {'stats': {}}, {'joinedDate': 'now'}])
def test_update_profile_rejects_protected_fields(client, auth_headers, users, patch):
    assert client.put('/api/users/profile', json=patch, headers=auth_headers('u1')).status_code == 400


def test_follow_flow(client, auth_headers, users):
    headers = auth_headers('u1')

    assert client.post('/api/users/follow/u2', headers=headers).status_code == 200
    assert client.post('/api/users/follow/u2', headers=headers).status_code == 409
    assert client.post('/api/users/follow/u1', headers=headers).status_code == 400

    followers = client.get('/api/users/u2/followers', headers=headers).get_json()['data']
    assert [f['uid'] for f in followers] == []

    client.get('/api/users/profile', headers=headers)
    followers = client.get('/api/users/u2/followers', headers=headers).get_json()['data']
    following = client.get('/api/users/u1/following', headers=headers).get_json()['data']
    assert [f['uid'] for f in followers] == ['u1']
    assert [f['uid'] for f in following] == ['u2']

    profile = client.get('/api/users/profile/u2', headers=headers).get_json()['data']
    assert profile['stats']['followersCount'] == 1

    assert client.delete('/api/users/follow/u2', headers=headers).status_code == 200
    assert client.delete('/api/users/follow/u2', headers=headers).status_code == 200

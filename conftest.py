# conftest.py
"""
공용 pytest 픽스처.

Firebase/OpenAI 없이 앱 전체를 띄울 수 있도록 인메모리 저장소와
가짜 인증 제공자, 가짜 스토리지 버킷, 가짜 문장 생성기를 주입합니다.
"""
from datetime import datetime, timedelta, timezone

import pytest
from flask_jwt_extended import create_access_token, create_refresh_token

from app import create_app
from app.core.errors import ConflictError, NotFoundError, UnauthorizedError
from app.services.firestore_service import InMemoryDocumentStore
from app.services.storage_service import StorageService

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """테스트용 시계. advance() 로만 시간이 흐릅니다."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeIdentityProvider:
    def __init__(self):
        self.users = {}
        self.id_tokens = {}

    def add_user(self, uid, email=None, display_name='', photo_url='', id_token=None):
        self.users[uid] = {
            'uid': uid,
            'email': email,
            'display_name': display_name,
            'photo_url': photo_url,
            'joined_date': '2024-01-01T00:00:00.000000Z',
        }
        if id_token:
            self.id_tokens[id_token] = uid
        return self.users[uid]

    def verify_token(self, id_token):
        uid = self.id_tokens.get(id_token)
        if uid is None:
            raise UnauthorizedError("유효하지 않은 인증 토큰입니다.")
        user = self.users[uid]
        claims = {'uid': uid, 'email': user['email'], 'name': user['display_name'], 'picture': user['photo_url']}
        return {'uid': uid, 'claims': claims}

    def get_user(self, uid):
        if uid not in self.users:
            raise NotFoundError(f"인증 계정을 찾을 수 없습니다: {uid}")
        return dict(self.users[uid])

    def create_user(self, email, password, display_name=None):
        if any(user['email'] == email for user in self.users.values()):
            raise ConflictError("이미 가입된 이메일입니다.")
        uid = f"uid-{len(self.users) + 1}"
        return dict(self.add_user(uid, email=email, display_name=display_name or ''))

    def create_custom_token(self, uid):
        return f"custom-token-{uid}"


class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name

    def generate_signed_url(self, version, expiration, method, content_type):
        self.bucket.signed.append((self.name, method, content_type))
        return f"https://storage.example.com/{self.name}?X-Goog-Signature=fake"

    def exists(self):
        return self.name in self.bucket.uploaded

    def make_public(self):
        self.bucket.public.add(self.name)

    @property
    def public_url(self):
        return f"https://storage.example.com/{self.name}"


class FakeBucket:
    def __init__(self):
        self.uploaded = set()
        self.public = set()
        self.signed = []

    def blob(self, name):
        return FakeBlob(self, name)


class FakeTextGenerator:
    def __init__(self):
        self.calls = []

    def generate_itinerary_summary(self, destination, duration, budget, interests, daily_activities):
        self.calls.append((destination, duration, budget))
        return f"{destination}에서 보내는 {duration}일간의 여행"


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def text_generator():
    return FakeTextGenerator()


@pytest.fixture
def app(store, identity, bucket, text_generator, clock):
    app = create_app(
        'testing',
        store=store,
        identity_provider=identity,
        storage=StorageService(bucket=bucket),
        text_generator=text_generator,
        clock=clock,
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.services


@pytest.fixture
def tokens_for(app):
    """uid 로 앱 Access/Refresh 토큰을 발급합니다."""
    def _tokens(uid):
        with app.app_context():
            return create_access_token(identity=uid), create_refresh_token(identity=uid)
    return _tokens


@pytest.fixture
def auth_headers(tokens_for):
    def _headers(uid):
        access_token, _ = tokens_for(uid)
        return {'Authorization': f'Bearer {access_token}'}
    return _headers

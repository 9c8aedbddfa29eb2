"""
CareerHub - Test Configuration and Fixtures
"""
import os
import json
import time
import uuid
from datetime import datetime, timedelta

import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['STORAGE_BACKEND'] = 'mongo'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['SUPABASE_URL'] = 'http://identity.test'
os.environ['SUPABASE_ANON_KEY'] = 'test-anon-key'
os.environ['SUPABASE_JWT_SECRET'] = 'test-jwt-secret'
os.environ['LOG_LEVEL'] = 'WARNING'

from careerhub.main import app
from careerhub.api.deps import get_stores
from careerhub.core.config import get_settings
from careerhub.db.mongodb import init_mongo_indexes
from careerhub.db.postgres import init_postgres_schema
from careerhub.services.identity import SupabaseIdentityProvider, get_identity_provider
from careerhub.stores.mongo import build_mongo_stores
from careerhub.stores.sql import build_sql_stores

TEST_JWT_SECRET = 'test-jwt-secret'


class FakeClock:
    """Deterministic clock; every reading is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


def mint_token(profile_id: str, email: str = None, user_type: str = None, admin: bool = False,
               expires_in: int = 3600, audience: str = 'authenticated', secret: str = TEST_JWT_SECRET) -> str:
    """Access token shaped like the ones Supabase issues."""
    claims = {
        'sub': profile_id,
        'email': email,
        'aud': audience,
        'exp': int(time.time()) + expires_in,
        'user_metadata': {'user_type': user_type} if user_type else {},
        'app_metadata': {'role': 'admin'} if admin else {},
    }
    return jwt.encode(claims, secret, algorithm='HS256')


def bearer(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


class FakeGoTrue:
    """In-memory stand-in for the GoTrue REST API, served through httpx.MockTransport."""

    PASSWORD_ERROR = {'error': 'invalid_grant', 'error_description': 'Invalid login credentials'}

    def __init__(self):
        self.users = {}  # email -> {id, email, password, user_metadata}
        self.logged_out = []
        self.fail_with = None  # status code or exception to simulate outages

    def handler(self, request: httpx.Request) -> httpx.Response:
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        if self.fail_with:
            return httpx.Response(self.fail_with, json={'msg': 'upstream failure'})

        path = request.url.path
        if path.endswith('/signup'):
            body = json.loads(request.content)
            if body['email'] in self.users:
                return httpx.Response(422, json={
                    'code': 422, 'error_code': 'user_already_exists', 'msg': 'User already registered'
                })
            user = {
                'id': str(uuid.uuid4()),
                'email': body['email'],
                'password': body['password'],
                'user_metadata': body.get('data', {}),
                'app_metadata': {},
            }
            self.users[body['email']] = user
            return httpx.Response(200, json={k: v for k, v in user.items() if k != 'password'})

        if path.endswith('/token'):
            body = json.loads(request.content)
            user = self.users.get(body['email'])
            if not user or user['password'] != body['password']:
                return httpx.Response(400, json=self.PASSWORD_ERROR)
            return httpx.Response(200, json={
                'access_token': mint_token(user['id'], user['email'], user['user_metadata'].get('user_type')),
                'refresh_token': 'refresh-' + user['id'],
                'token_type': 'bearer',
                'expires_in': 3600,
                'user': {k: v for k, v in user.items() if k != 'password'},
            })

        if path.endswith('/logout'):
            self.logged_out.append(request.headers.get('Authorization'))
            return httpx.Response(204)

        return httpx.Response(404, json={'msg': 'not found'})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=['mongo', 'sql'])
def stores(request):
    """Every store, on the document backend and on the relational backend."""
    if request.param == 'mongo':
        db = mongomock.MongoClient()['careerhub_test']
        init_mongo_indexes(db)
        yield build_mongo_stores(db)
    else:
        engine = create_engine(
            'sqlite://',
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
        init_postgres_schema(engine)
        yield build_sql_stores(sessionmaker(bind=engine, autocommit=False, autoflush=False))
        engine.dispose()


@pytest.fixture
def gotrue() -> FakeGoTrue:
    return FakeGoTrue()


@pytest.fixture
def identity(gotrue: FakeGoTrue) -> SupabaseIdentityProvider:
    client = httpx.Client(
        base_url='http://identity.test/auth/v1',
        transport=httpx.MockTransport(gotrue.handler),
    )
    return SupabaseIdentityProvider(get_settings(), client=client)


@pytest.fixture
def client(stores, identity):
    """Test client with the stores and the identity provider overridden."""
    app.dependency_overrides[get_stores] = lambda: stores
    app.dependency_overrides[get_identity_provider] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()

import time

import jwt
import pytest
from fastapi.testclient import TestClient

from tasks_api.main import create_app
from tasks_api.settings import Settings

JWT_KEY = "tasks-service-test-signing-key-0123456789"


def make_token(roles=("admin",), key=JWT_KEY, expires_in=300, **extra):
    now = int(time.time())
    payload = {"sub": "tester", "iat": now, "exp": now + expires_in, "roles": list(roles)}
    payload.update(extra)
    return jwt.encode(payload, key, algorithm="HS256")


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tasks.db'}",
        auth_jwt_key=JWT_KEY,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def admin_headers():
    return bearer(make_token())

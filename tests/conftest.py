import pytest
from fastapi.testclient import TestClient

from mock_emr.config import Settings
from mock_emr.db import seed_store
from mock_emr.main import create_app

API_KEY = "test-api-key"


def auth_header(token: str = API_KEY):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings():
    return Settings(api_key=API_KEY, public_url="http://emr.test", open_browser=False)


@pytest.fixture
def store():
    return seed_store()


@pytest.fixture
def app(settings, store):
    return create_app(settings, store)


@pytest.fixture
def client(app):
    return TestClient(app)

import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storefront.auth.passwords import hash_password
from storefront.auth.session import SessionCodec
from storefront.infra.users_repo import insert_user
from storefront.settings import Settings

TEST_SECRET = "test-secret-do-not-use"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(secret_key=TEST_SECRET, data_dir=tmp_path / "data")


@pytest.fixture()
def codec() -> SessionCodec:
    return SessionCodec(TEST_SECRET)


@pytest.fixture()
def users(settings: Settings) -> dict:
    """Seed one administrator and one customer; returns username -> user_id."""
    return {
        "admin": insert_user(settings.users_path, "admin", hash_password("admin123"), is_admin=True),
        "customer": insert_user(settings.users_path, "customer", hash_password("customer123"), is_admin=False),
    }


@pytest.fixture()
def app(settings: Settings):
    from storefront.app import create_app

    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


def login(client: TestClient, username: str, password: str):
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )

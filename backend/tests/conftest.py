import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from pickem.main import create_app
from pickem.db import configure_db, get_engine, init_db
from pickem.settings import Settings


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        db_url=f"sqlite:///{tmp_path / 'test.db'}",
        editor_password="editor-secret",
        admin_password="admin-secret",
        jwt_secret="test-jwt-secret",
        log_level="DEBUG",
    )


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    init_db()
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(settings):
    configure_db(settings.db_url)
    init_db()
    with Session(get_engine()) as s:
        yield s


def login(client: TestClient, password: str) -> str:
    r = client.post("/auth/login", json={"password": password})
    assert r.status_code == 200, r.text
    return r.json()["token"]


@pytest.fixture()
def editor_headers(client):
    token = login(client, "editor-secret")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    token = login(client, "admin-secret")
    return {"Authorization": f"Bearer {token}"}

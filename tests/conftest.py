import os
import tempfile
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="huequitas_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_HOST", "")
os.environ.setdefault("LOG_DIR", str(_tmpdir / "logs"))

import pytest
from fastapi.testclient import TestClient

from huequitas.core.rate_limit import _reset_for_tests
from huequitas.core.security import create_access_token
from huequitas.db.base import Base
from huequitas.db.session import SessionLocal, engine
from huequitas.main import create_auth_app, create_chat_app, create_core_app

STRONG_PASSWORD = "Abcdef1!"


@pytest.fixture()
def clean_db():
    _reset_for_tests()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def auth_client(clean_db):
    with TestClient(create_auth_app()) as c:
        yield c


@pytest.fixture()
def core_client(clean_db):
    with TestClient(create_core_app()) as c:
        yield c


@pytest.fixture()
def chat_client(clean_db):
    with TestClient(create_chat_app()) as c:
        yield c


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def token_for(user_id: str, name: str = "Ana Lopez", email: str | None = None) -> str:
    """Session token as issued by the auth service; core and chat verify it locally."""
    return create_access_token(user_id, email=email or f"{user_id}@example.com", name=name)


@pytest.fixture()
def alice_headers():
    return auth_header(token_for("11111111-1111-1111-1111-111111111111", name="Alice Perez"))


@pytest.fixture()
def bob_headers():
    return auth_header(token_for("22222222-2222-2222-2222-222222222222", name="Bob Garcia"))


def register(client, email="u1@example.com", password=STRONG_PASSWORD, name="Ana Lopez"):
    return client.post(
        "/register",
        json={"email": email, "password": password, "confirmPassword": password, "name": name},
    )

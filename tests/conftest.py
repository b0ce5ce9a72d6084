"""
Shared test fixtures.

Provides: in-memory SQLite database, cipher engines, users, the services
wired the way the FastAPI dependencies wire them, and a TestClient whose
DB session, cipher engine and SSH tester are replaced.
"""

import base64
import os
import secrets
import tempfile

# Settings are read at import time, so the environment has to be in place
# before any application module is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["MASTER_ENCRYPTION_KEY"] = base64.b64encode(secrets.token_bytes(32)).decode("ascii")
os.environ["SSHVAULT_LOG_DIR"] = tempfile.mkdtemp(prefix="sshvault-test-log-")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.crypto import CipherEngine, generate_key
from credentials.store import CredentialStore
from database import Base
from models.user import User
from sessions.connection import ConnectionTestResult
from sessions.service import SessionService
from tags.service import TagService

import models.credential   # noqa: F401
import models.ssh_session  # noqa: F401
import models.tag          # noqa: F401


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def cipher():
    return CipherEngine.from_key(os.environ["MASTER_ENCRYPTION_KEY"])


@pytest.fixture
def rotated_cipher():
    """An engine keyed differently, as after a botched key rotation."""
    return CipherEngine.from_key(generate_key())


def _make_user(db, username):
    user = User(username=username, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "alice")


@pytest.fixture
def other_user(db):
    return _make_user(db, "mallory")


@pytest.fixture
def store(db, cipher):
    return CredentialStore(db, cipher)


@pytest.fixture
def tags(db):
    return TagService(db)


@pytest.fixture
def service(db, cipher):
    return SessionService(db, cipher)


class FakeTester:
    """Records the profiles it was asked to test instead of opening SSH."""

    def __init__(self, result=None):
        self.result = result or ConnectionTestResult(True, "Connection successful")
        self.profiles = []

    def test(self, profile):
        self.profiles.append(profile)
        return self.result


@pytest.fixture
def fake_tester():
    return FakeTester()


@pytest.fixture
def client(db, cipher, fake_tester):
    from fastapi.testclient import TestClient

    from database import get_db
    from dependencies import get_connection_tester
    from main import app

    def _get_db():
        yield db

    previous_cipher = app.state.cipher
    app.state.cipher = cipher
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_connection_tester] = lambda: fake_tester
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.cipher = previous_cipher


@pytest.fixture
def auth_headers(user):
    from core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token({'user_id': user.id})}"}


@pytest.fixture
def other_auth_headers(other_user):
    from core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token({'user_id': other_user.id})}"}

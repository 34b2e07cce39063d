import os

# Must be set before fintrack is imported: the engine is built at import time.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import uuid
from fintrack.core.clock import utcnow

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from fintrack.core.jwt import create_access_token
from fintrack.core.security import hash_password
from fintrack.database import get_session, init_db
from fintrack.main import create_app
from fintrack.models.user import User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def app(engine):
    app = create_app()

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(session):
    def _make_user(email="ada@example.com", password="secret123", display_name=None):
        now = utcnow()
        user = User(
            id=uuid.uuid4(),
            email=email,
            hashed_password=hash_password(password),
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


def bearer(user):
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def headers(user):
    return bearer(user)


@pytest.fixture
def other_headers(make_user):
    return bearer(make_user(email="grace@example.com"))

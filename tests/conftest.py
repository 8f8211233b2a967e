"""Shared fixtures: an in-memory, seeded database and an app bound to it."""

from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.db.seeds.seed_all import seed_all
from school_admin.db.session import init_db
from school_admin.main import create_app
from school_admin.models.user import User
from school_admin.services.auth_service import auth_service
from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, DEFAULT_PASSWORD, role_named


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET="test-secret",
        DATABASE_URL="sqlite://",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )


@pytest.fixture
def app(settings: Settings):
    """Application with tables created and bootstrap data seeded."""
    application = create_app(settings)
    init_db(application.state.engine)
    session = application.state.session_factory()
    try:
        seed_all(session, settings)
    finally:
        session.close()
    yield application
    application.state.engine.dispose()


@pytest.fixture
def db(app) -> Session:
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory creating a user holding the named role, or no role."""
    counter = {"n": 0}

    def _make(role_name: Optional[str] = None, email: Optional[str] = None, **kwargs) -> User:
        counter["n"] += 1
        role_id = role_named(db, role_name).id if role_name else None
        return auth_service.create_user(
            db,
            email=email or f"user{counter['n']}@school.test",
            password=kwargs.pop("password", DEFAULT_PASSWORD),
            first_name=kwargs.pop("first_name", "Test"),
            last_name=kwargs.pop("last_name", f"User{counter['n']}"),
            role_id=role_id,
            **kwargs,
        )

    return _make


@pytest.fixture
def admin_user(db: Session) -> User:
    return db.query(User).filter(User.email == ADMIN_EMAIL).one()


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[User], dict]:
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {auth_service.issue_token(user, settings)}"}

    return _headers

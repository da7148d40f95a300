"""
Fixtures compartidas: base SQLite en memoria, usuarios, tokens y cliente HTTP.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.database.database import Database
from app.dependencies.dbDependecies import get_clock
from app.main import create_app
from app.modules.auth.models import User
from app.modules.auth.utils import create_access_token

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def database():
    """Base en memoria; una sola conexión compartida entre hilos"""
    database = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


def _create_user(db_session, email: str, is_superuser: bool) -> User:
    user = User(email=email, is_active=True, is_superuser=is_superuser)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _create_user(db_session, "admin@example.com", is_superuser=True)


@pytest.fixture
def regular_user(db_session):
    return _create_user(db_session, "member@example.com", is_superuser=False)


def bearer(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user.id)


@pytest.fixture
def user_headers(regular_user):
    return bearer(regular_user.id)


@pytest.fixture
def headers_for():
    """Construye cabeceras Bearer para un id de usuario arbitrario"""
    return bearer


@pytest.fixture
def client(database, fixed_clock):
    app = create_app(database)
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    with TestClient(app) as test_client:
        yield test_client

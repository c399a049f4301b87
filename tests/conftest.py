import os
import tempfile

# Settings are read at import time; point them at throwaway values first.
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CREATE_SCHEMA_ON_STARTUP"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(), "unused.db")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from hotel_api.db import create_schema, get_db, make_engine
from hotel_api.main import app
from hotel_api.models import Room, User, UserRole
from hotel_api.security import create_access_token, hash_password
from hotel_api.services.locks import room_locks
from hotel_api.services.permissions import Principal


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_schema(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _fresh_room_locks():
    # Room ids restart at 1 for every test database
    room_locks._locks.clear()
    yield


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(email="guest@example.com", role=UserRole.GUEST, name="Test User", password="secret123"):
        user = User(name=name, email=email, password_hash=hash_password(password), role=UserRole(role).value)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def make_room(db):
    def _make(name="Suite 101", capacity=2, price="100.00", is_active=True):
        room = Room(name=name, capacity=capacity, price_per_night=Decimal(price), is_active=is_active)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room
    return _make


def principal_of(user: User) -> Principal:
    return Principal(id=user.id, email=user.email, role=UserRole(user.role))


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def guest_user(make_user):
    return make_user("guest@example.com", UserRole.GUEST, name="Guest")


@pytest.fixture()
def operator_user(make_user):
    return make_user("operator@example.com", UserRole.OPERATOR, name="Operator")


@pytest.fixture()
def admin_user(make_user):
    return make_user("admin@example.com", UserRole.ADMIN, name="Admin")


@pytest.fixture()
def guest(guest_user):
    return principal_of(guest_user)


@pytest.fixture()
def operator(operator_user):
    return principal_of(operator_user)


@pytest.fixture()
def admin(admin_user):
    return principal_of(admin_user)

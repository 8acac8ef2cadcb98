"""Pytest fixtures for FabNStitch tests."""
import os

# Keep the app's own engine off the filesystem; tests use their own engine below.
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fabnstitch.auth import create_access_token, get_password_hash
from fabnstitch.database import Base, enable_sqlite_foreign_keys, get_db
from fabnstitch.main import app
from fabnstitch.models.user import User, UserRole
from fabnstitch.schemas.order import OrderCreate
from fabnstitch.services.order_lifecycle import Actor, create_order


@pytest.fixture
def engine():
    """A fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    """Test client whose requests share the test's session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory creating users; password is always 'secret123'."""
    counter = {"n": 0}

    def _make_user(role=UserRole.CUSTOMER, email=None, name=None, **fields):
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@example.com",
            hashed_password=get_password_hash("secret123"),
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
            is_active=True,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@fabnstitch.com", name="Admin User")


@pytest.fixture
def tailor(make_user):
    return make_user(UserRole.TAILOR, email="tailor@fabnstitch.com", name="Keshav Roy")


@pytest.fixture
def customer(make_user):
    return make_user(UserRole.CUSTOMER, email="rahul@example.com", name="Rahul Sharma", address="123 Main Street")


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def order_factory(db_session, admin, customer):
    """Create orders through the lifecycle service, as the admin. Fields passed as None are left out."""
    def _make_order(customer_id=None, **fields):
        data = {
            "customer_id": customer_id or customer.id,
            "style": "Blazer",
            "fabric_name": "Premium Italian Wool",
            "fabric_color": "Navy Blue",
            "price": 5000,
            "chest": 42,
            "waist": 36,
        }
        data.update(fields)
        data = {key: value for key, value in data.items() if value is not None}
        return create_order(db_session, Actor.from_user(admin), OrderCreate(**data))

    return _make_order

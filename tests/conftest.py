import os

import pytest

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_api.main import app
from clinic_api.core.database import get_db, Base
from clinic_api.services.user_service import UserService

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

ADMIN_DATA = {
    "username": "root",
    "email": "admin@clinic.com",
    "password": "AdminPass1",
}


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def hasher():
    return app.state.hasher


@pytest.fixture
def token_service():
    return app.state.token_service


@pytest.fixture
def admin_user(db_session, hasher):
    return UserService(db_session, hasher).bootstrap_admin(
        ADMIN_DATA["username"], ADMIN_DATA["email"], ADMIN_DATA["password"]
    )


@pytest.fixture
def admin_headers(client, admin_user):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": ADMIN_DATA["email"], "password": ADMIN_DATA["password"]},
    )
    return bearer(response.json()["data"]["token"])


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, username, email, password="secret1", role=None):
    """Register through the API and return ``(user, token)``."""
    payload = {"username": username, "email": email, "password": password}
    if role:
        payload["role"] = role
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["user"], data["token"]

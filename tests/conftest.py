"""
Shared test fixtures — SQLite test database, test client, tenant auth helpers.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set JWT_SECRET before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from framing_app.database import Base, get_db
from framing_app.main import app


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, email, password="strongpassword123"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Register a shop account and return auth headers."""
    return register(client, "test@framing.se")


@pytest.fixture
def other_headers(client):
    """A second tenant, for isolation checks."""
    return register(client, "other@framing.se")


@pytest.fixture
def seeded_inventory(client):
    """Starter catalog, returned as {name: item dict}."""
    assert client.get("/api/inventory/seed").status_code == 200
    return {item["name"]: item for item in client.get("/api/inventory/").json()}


@pytest.fixture
def customer(client, auth_headers):
    response = client.post("/api/customers/", json={"name": "Anna Svensson"}, headers=auth_headers)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def order(client, auth_headers, customer):
    response = client.post("/api/orders/", json={"customer_id": customer["id"]}, headers=auth_headers)
    assert response.status_code == 200
    return response.json()

import os

os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_ORIGINS", "[\"http://testserver\"]")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from astrobook.main import app
from astrobook.core.database import Base, get_db, get_redis

# One in-memory database shared by every connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryRedis:
    """Just enough of the redis client API for the rate limiter."""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

    def expire(self, key, time):
        self.expiry[key] = time
        return True


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def test_db():
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
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def client(test_db, fake_redis):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user_data(username="stargazer", email="stargazer@example.com"):
    return {
        "username": username,
        "email": email,
        "password": "MoonInLeo123",
        "zodiacSign": "Leo",
    }


def make_appointment_data(**overrides):
    data = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "date": (date.today() + timedelta(days=7)).isoformat(),
        "time": "10:30",
        "astrologer": "Pandit Sharma",
        "consultationType": "Birth Chart Reading",
    }
    data.update(overrides)
    return data


@pytest.fixture
def signup(client):
    """Create a user and return Authorization headers for them."""
    def _signup(username="stargazer", email=None):
        email = email or f"{username}@example.com"
        response = client.post("/api/auth/signup", json=make_user_data(username, email))
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _signup

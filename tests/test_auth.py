import pytest
import redis
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import false

from astrobook.api import deps
from astrobook.core.config import Settings, settings
from astrobook.core.database import get_redis
from astrobook.main import app
from astrobook.services import auth_service
from astrobook.models.user import User
from tests.conftest import make_user_data

test_login_data = {
    "username": "stargazer",
    "password": "MoonInLeo123"
}

class TestSignup:
    
    def test_signup_user(self, client):
        """Test user signup returns a token and the public user fields."""
        response = client.post("/api/auth/signup", json=make_user_data())
        assert response.status_code == 201
        
        data = response.json()
        assert data["message"] == "User created successfully"
        assert data["token"]
        assert data["user"]["username"] == "stargazer"
        assert data["user"]["email"] == "stargazer@example.com"
        assert data["user"]["zodiacSign"] == "Leo"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
    
    def test_signup_stores_hash_not_password(self, client, db_session):
        client.post("/api/auth/signup", json=make_user_data())
        
        user = db_session.query(User).filter(User.username == "stargazer").one()
        assert user.password_hash != "MoonInLeo123"
        assert user.password_hash.startswith("$2")
    
    def test_signup_duplicate_username(self, client, db_session):
        """Test signup with an existing username."""
        client.post("/api/auth/signup", json=make_user_data())
        
        response = client.post(
            "/api/auth/signup",
            json=make_user_data(email="other@example.com")
        )
        assert response.status_code == 400
        assert response.json() == {"message": "User already exists", "code": "Conflict"}
        assert db_session.query(User).count() == 1
    
    def test_signup_duplicate_email(self, client, db_session):
        """Test signup with an existing email."""
        client.post("/api/auth/signup", json=make_user_data())
        
        response = client.post(
            "/api/auth/signup",
            json=make_user_data(username="moonchild")
        )
        assert response.status_code == 400
        assert response.json()["code"] == "Conflict"
        assert db_session.query(User).count() == 1
    
    def test_signup_unique_index_race_is_conflict(self, client, db_session, monkeypatch):
        """A duplicate that slips past the existence check hits the unique index."""
        client.post("/api/auth/signup", json=make_user_data())
        monkeypatch.setattr(auth_service, "or_", lambda *clauses: false())
        
        response = client.post(
            "/api/auth/signup",
            json=make_user_data(email="other@example.com")
        )
        assert response.status_code == 400
        assert response.json() == {"message": "User already exists", "code": "Conflict"}
        assert db_session.query(User).count() == 1
    
    @pytest.mark.parametrize("field", ["username", "email", "password", "zodiacSign"])
    def test_signup_missing_field(self, client, db_session, field):
        data = make_user_data()
        data[field] = ""
        
        response = client.post("/api/auth/signup", json=data)
        assert response.status_code == 400
        assert response.json() == {"message": "All fields are required", "code": "MissingField"}
        assert db_session.query(User).count() == 0

class TestLogin:
    
    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/auth/signup", json=make_user_data())
        
        response = client.post("/api/auth/login", json=test_login_data)
        assert response.status_code == 200
        
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["username"] == "stargazer"
        
        claims = jwt.decode(
            data["token"], settings.signing_secret, algorithms=[settings.JWT_ALGORITHM]
        )
        assert claims["userId"] == data["user"]["id"]
        assert claims["username"] == "stargazer"
        assert claims["exp"] - claims["iat"] == 24 * 60 * 60
    
    def test_login_wrong_password_and_unknown_user_look_the_same(self, client):
        client.post("/api/auth/signup", json=make_user_data())
        
        wrong_password = client.post(
            "/api/auth/login",
            json={"username": "stargazer", "password": "SunInAries"}
        )
        unknown_user = client.post(
            "/api/auth/login",
            json={"username": "nobody", "password": "SunInAries"}
        )
        
        assert wrong_password.status_code == 401
        assert unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()
        assert wrong_password.json()["message"] == "Invalid credentials"
    
    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"username": "stargazer"})
        assert response.status_code == 400
        assert response.json()["message"] == "Username and password are required"
    
    def test_login_rate_limited(self, client):
        for _ in range(settings.RATE_LIMIT_REQUESTS):
            client.post("/api/auth/login", json=test_login_data)
        
        response = client.post("/api/auth/login", json=test_login_data)
        assert response.status_code == 429
        assert response.json()["code"] == "RateLimited"

def test_api_test_route(client):
    response = client.get("/api/test")
    assert response.status_code == 200
    assert response.json() == {"message": "API is working"}

class BrokenRedis:
    def incr(self, key):
        raise redis.ConnectionError("Connection refused")

    def expire(self, key, time):
        raise redis.ConnectionError("Connection refused")

class TestRateLimiting:
    
    def test_window_expiry_set_on_first_request(self, client, fake_redis):
        client.post("/api/auth/login", json=test_login_data)
        client.post("/api/auth/login", json=test_login_data)
        
        key = "rate_limit:/api/auth/login:testclient"
        assert fake_redis.data[key] == "2"
        assert fake_redis.expiry == {key: settings.RATE_LIMIT_WINDOW_SECONDS}
    
    def test_forwarded_for_ignored_by_default(self, client, fake_redis):
        client.post(
            "/api/auth/login",
            json=test_login_data,
            headers={"X-Forwarded-For": "203.0.113.5"}
        )
        
        assert list(fake_redis.data) == ["rate_limit:/api/auth/login:testclient"]
    
    def test_forwarded_for_used_behind_trusted_proxy(self, client, monkeypatch):
        monkeypatch.setattr(
            deps, "settings", Settings(TRUST_FORWARDED_FOR=True, TESTING=True)
        )
        first_client = {"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}
        for _ in range(settings.RATE_LIMIT_REQUESTS):
            client.post("/api/auth/login", json=test_login_data, headers=first_client)
        
        limited = client.post("/api/auth/login", json=test_login_data, headers=first_client)
        other = client.post(
            "/api/auth/login",
            json=test_login_data,
            headers={"X-Forwarded-For": "198.51.100.7"}
        )
        assert limited.status_code == 429
        assert other.status_code == 401
    
    def test_redis_outage_is_service_unavailable(self, client):
        app.dependency_overrides[get_redis] = lambda: BrokenRedis()
        
        response = client.post("/api/auth/signup", json=make_user_data())
        assert response.status_code == 503
        assert response.json()["code"] == "ServiceUnavailable"

def test_any_host_accepted_by_default():
    with TestClient(app, base_url="https://astro-api.onrender.com") as remote_client:
        response = remote_client.get("/api/test")
    assert response.status_code == 200

def test_test_origin_not_in_default_cors_origins():
    default_origins = Settings.model_fields["ALLOWED_ORIGINS"].default
    assert "http://testserver" not in default_origins
    assert "https://astro-dailyhub.netlify.app" in default_origins

"""
Health check endpoint and auth utility tests.
"""

from datetime import timedelta

from fastapi.testclient import TestClient


def test_health_endpoint():
    """Test basic health check endpoint."""
    from src.main import app

    # Without the context manager the lifespan (owner bootstrap) does not run
    client = TestClient(app)
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "upline"}


def test_liveness_endpoint():
    from src.main import app

    response = TestClient(app).get("/api/health/live")
    assert response.json() == {"status": "alive"}


def test_password_hashing():
    """Test password hashing utility."""
    from src.utils.password import hash_password, verify_password

    password = "test_password_123"
    hashed = hash_password(password)

    # Hash should be different from original
    assert hashed != password

    # Verification should work
    assert verify_password(password, hashed)

    # Wrong password should fail
    assert not verify_password("wrong_password", hashed)


def test_malformed_hash_never_verifies():
    from src.utils.password import verify_password

    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_round_trip():
    from src.auth.jwt import create_access_token, verify_token

    token = create_access_token(7, "ga", is_admin=False)
    assert verify_token(token) == {"user_id": 7, "tier": "ga", "is_admin": False}


def test_expired_token_rejected():
    from src.auth.jwt import create_access_token, verify_token

    token = create_access_token(7, "ga", expires_delta=timedelta(seconds=-5))
    assert verify_token(token) is None
    assert verify_token("garbage") is None


def test_engine_options_per_backend():
    from sqlalchemy.pool import NullPool, StaticPool

    from src.db.session import engine_options

    assert engine_options("sqlite+aiosqlite:///:memory:")["poolclass"] is StaticPool
    assert engine_options("sqlite+aiosqlite:///./upline.db") == {}

    postgres = engine_options("postgresql+asyncpg://u:p@db:5432/upline")
    assert postgres["poolclass"] is NullPool
    assert postgres["connect_args"] == {"statement_cache_size": 0}

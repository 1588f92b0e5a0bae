"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Callable, Optional

import jwt  # PyJWT
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.app import create_app
from shared.config import Settings


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
    app_role: Optional[str] = None,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified
        app_role: Application role placed in app_metadata (e.g. "admin")
        secret: Signing secret

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    if app_role:
        payload["app_metadata"] = {"role": app_role}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Token factory for tests that need custom claims."""
    return create_test_token


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def admin_headers(test_user_id: str, test_user_email: str) -> dict[str, str]:
    """Authorization headers for a user with the admin app role."""
    token = create_test_token(user_id=test_user_id, email=test_user_email, app_role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_settings() -> Settings:
    """Settings with in-memory storage and the test JWT secret."""
    return Settings(
        _env_file=None,
        environment="test",
        storage_backend="memory",
        supabase_jwt_secret=TEST_JWT_SECRET,
        email_dry_run=True,
        brevo_api_key="test-brevo-key",
        resend_api_key="test-resend-key",
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Application wired with in-memory stores."""
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI):
    """Test client; exits the lifespan on teardown."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

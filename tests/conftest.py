"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.config import Settings
from infrastructure.auth.jwt_provider import JWTTokenVerifier
from infrastructure.container import ServiceContainer

TEST_SECRET = "test-secret-key"
TEST_ISSUER = "phone-profile-api-test"
TEST_PROJECT_ID = "test-project"
TEST_OTP_CODE = "123456"
TEST_PHONE = "+6591234567"


def make_settings(db_path: Path, **overrides: Any) -> Settings:
    """Settings for an isolated SQLite database file."""
    values: dict[str, Any] = {
        "database_url": f"sqlite+aiosqlite:///{db_path}",
        "auth_required": True,
        "firebase_project_id": TEST_PROJECT_ID,
        "jwt_secret_key": TEST_SECRET,
        "jwt_issuer": TEST_ISSUER,
        "otp_provider": "console",
        "otp_dev_code": TEST_OTP_CODE,
        "otp_allow_insecure_dev": True,
        "rate_limit_enabled": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Verified-mode settings on a fresh database."""
    return make_settings(tmp_path / "test.db")


@pytest.fixture
async def container(settings: Settings) -> AsyncGenerator[ServiceContainer, None]:
    """Started service container; schema created, clients open."""
    container = ServiceContainer(settings)
    await container.startup()
    yield container
    await container.shutdown()


@pytest.fixture
def token_verifier() -> JWTTokenVerifier:
    """Verifier sharing the test secret, used to mint session tokens."""
    return JWTTokenVerifier(secret_key=TEST_SECRET, issuer=TEST_ISSUER)


@pytest.fixture
def auth_token(token_verifier: JWTTokenVerifier) -> str:
    """Session token for TEST_PHONE."""
    return token_verifier.create_token(TEST_PHONE)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


async def _started_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan, so drive the container directly.
    await app.state.container.startup()
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
        await app.state.container.shutdown()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Verified-mode application."""
    from main import create_app

    return create_app(settings)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client for the verified-mode application."""
    async for c in _started_client(app):
        yield c


@pytest.fixture
def trusted_app(tmp_path: Path) -> FastAPI:
    """Application with AUTH_REQUIRED=false."""
    from main import create_app

    return create_app(make_settings(tmp_path / "trusted.db", auth_required=False))


@pytest.fixture
async def trusted_client(trusted_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client for the trusted-input application."""
    async for c in _started_client(trusted_app):
        yield c

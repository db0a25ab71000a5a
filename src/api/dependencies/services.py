"""Service dependencies, resolved from the app's ServiceContainer."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from domain.services.otp_service import OtpLoginService
from domain.services.profile_service import ProfileService
from infrastructure.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """Get the container built by create_app."""
    return request.app.state.container


def get_profile_service(request: Request) -> ProfileService:
    """Get Profile service instance."""
    return get_container(request).profile_service


def get_otp_service(request: Request) -> OtpLoginService:
    """Get OTP login service instance (router is only mounted when enabled)."""
    service = get_container(request).otp_service
    if service is None:
        raise RuntimeError("OTP login is disabled")
    return service


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_container(request).session_factory() as session:
        try:
            yield session
        finally:
            await session.close()

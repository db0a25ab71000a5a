"""Profile service layer: the phone-keyed profile store."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

from core.exceptions import StoreUnavailableError
from domain.entities.profile import Profile, ProfilePatch
from domain.repositories.unit_of_work import IUnitOfWork

T = TypeVar("T")


class ProfileService:
    """Reads and upserts the single profile row owned by a phone number.

    Every call runs in its own unit of work and is bounded by
    ``timeout_seconds``; a timeout surfaces as StoreUnavailableError.
    Driver failures are translated to StoreError subclasses by the
    repository layer. Nothing is retried here.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        timeout_seconds: float = 10.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._timeout_seconds = timeout_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_by_phone(self, phone: str) -> Profile | None:
        """Get the profile for a phone. Never creates a row."""

        async def operation() -> Profile | None:
            async with self._uow_factory() as uow:
                return await uow.profiles.get_by_phone(phone)

        return await self._bounded(operation())

    async def upsert_by_phone(self, phone: str, patch: ProfilePatch) -> Profile:
        """Create the profile or fully replace its describable fields."""

        async def operation() -> Profile:
            async with self._uow_factory() as uow:
                profile = await uow.profiles.upsert_by_phone(phone, patch, self._clock())
                await uow.commit()
                return profile

        return await self._bounded(operation())

    async def ensure_profile(self, phone: str) -> Profile:
        """Make sure a profile exists for the phone without touching its fields."""

        async def operation() -> Profile:
            async with self._uow_factory() as uow:
                profile = await uow.profiles.insert_if_absent(phone, self._clock())
                await uow.commit()
                return profile

        return await self._bounded(operation())

    async def _bounded(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout_seconds)
        except TimeoutError as exc:
            raise StoreUnavailableError(
                f"Profile store did not respond within {self._timeout_seconds}s"
            ) from exc

"""Profile repository protocol."""

from datetime import datetime
from typing import Protocol

from domain.entities.profile import Profile, ProfilePatch


class IProfileRepository(Protocol):
    """Repository interface for Profile entities, keyed by phone."""

    async def get_by_phone(self, phone: str) -> Profile | None:
        """Get the profile for a phone number, or None."""
        ...

    async def upsert_by_phone(
        self, phone: str, patch: ProfilePatch, now: datetime
    ) -> Profile:
        """Insert the profile or replace all patchable fields atomically."""
        ...

    async def insert_if_absent(self, phone: str, now: datetime) -> Profile:
        """Create a bare profile unless one exists; return the stored row."""
        ...

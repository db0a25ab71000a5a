"""Profile domain entity."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from core.exceptions import InvalidPhoneError

_PHONE_SEPARATORS = re.compile(r"[\s\-.()]")
_E164 = re.compile(r"^\+\d{6,15}$")


def normalize_phone(raw: str) -> str:
    """Strip separators and check the result is ``+`` followed by digits.

    Raises:
        InvalidPhoneError: If the value is not E.164-like after stripping.
    """
    phone = _PHONE_SEPARATORS.sub("", raw)
    if not _E164.match(phone):
        raise InvalidPhoneError(raw)
    return phone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Profile:
    """Domain entity for the profile attached to a phone number."""

    phone: str
    id: Optional[int] = None
    full_name: Optional[str] = None
    age: Optional[int] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, slots=True)
class ProfilePatch:
    """Describable profile attributes written by an upsert.

    Upserts replace every field, so a field left as None here is stored
    as NULL even if the row previously had a value.
    """

    full_name: Optional[str] = None
    age: Optional[int] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None

    def as_values(self) -> dict[str, object]:
        """Column values for an insert or update statement."""
        return {
            "full_name": self.full_name,
            "age": self.age,
            "address": self.address,
            "avatar_url": self.avatar_url,
        }

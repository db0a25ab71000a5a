"""Pydantic schemas for Profile API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.entities.profile import ProfilePatch


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, also accepts snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ProfileUpdate(CamelModel):
    """Schema for PUT /me.

    Every omitted field is stored as null: an update replaces the whole
    profile. ``phone`` is only read when authentication is disabled.
    """

    full_name: str | None = Field(None, max_length=200)
    age: int | None = Field(None, ge=0, le=150)
    address: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=2048)
    phone: str | None = Field(None, max_length=32)

    def to_patch(self) -> ProfilePatch:
        return ProfilePatch(
            full_name=self.full_name,
            age=self.age,
            address=self.address,
            avatar_url=self.avatar_url,
        )


class ProfileResponse(CamelModel):
    """Schema for Profile response."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "phone": "+6591234567",
                "fullName": "Ana Tan",
                "age": 29,
                "address": None,
                "avatarUrl": None,
                "createdAt": "2026-01-28T10:00:00Z",
                "updatedAt": "2026-01-28T10:00:00Z",
            }
        },
    )

    id: int
    phone: str
    full_name: str | None = None
    age: int | None = None
    address: str | None = None
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime

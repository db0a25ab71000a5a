"""Pydantic schemas for OTP login API."""

from typing import Literal

from pydantic import Field

from api.schemas.profile import CamelModel, ProfileResponse


class OtpStartRequest(CamelModel):
    """Schema for starting a phone verification."""

    phone: str = Field(..., min_length=1, max_length=32)
    channel: Literal["sms", "call", "whatsapp"] = "sms"


class OtpStartResponse(CamelModel):
    """Verification was handed to the provider."""

    status: Literal["pending"] = "pending"


class OtpVerifyRequest(CamelModel):
    """Schema for checking a passcode."""

    phone: str = Field(..., min_length=1, max_length=32)
    code: str = Field(..., pattern=r"^\d{4,10}$")


class SessionResponse(CamelModel):
    """Bearer token for the verified phone plus its profile."""

    token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int
    profile: ProfileResponse

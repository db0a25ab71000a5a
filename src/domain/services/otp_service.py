"""OTP login service: phone verification followed by a session token."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

import structlog

from core.exceptions import InvalidCodeError, OtpProviderError
from domain.entities.profile import Profile
from domain.services.profile_service import ProfileService
from domain.services.otp_provider import IOtpProvider, OtpChannel

logger = structlog.get_logger()


class SessionTokenIssuer(Protocol):
    """Issues bearer tokens the verified identity resolver accepts."""

    @property
    def expires_in_seconds(self) -> int: ...

    def create_token(self, phone: str) -> str: ...


@dataclass(frozen=True, slots=True)
class LoginSession:
    """Result of an approved OTP check."""

    token: str
    expires_in: int
    profile: Profile


class OtpLoginService:
    """Starts and checks phone verifications.

    An approved check creates the phone's profile if it does not exist
    yet; existing profile fields are never overwritten by a login.
    """

    def __init__(
        self,
        otp_provider: IOtpProvider,
        profile_service: ProfileService,
        token_issuer: SessionTokenIssuer,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._otp_provider = otp_provider
        self._profile_service = profile_service
        self._token_issuer = token_issuer
        self._timeout_seconds = timeout_seconds

    async def start(self, phone: str, channel: OtpChannel = "sms") -> None:
        """Ask the provider to send a passcode."""
        try:
            await asyncio.wait_for(
                self._otp_provider.start_verification(phone, channel),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as exc:
            raise OtpProviderError("OTP provider timed out starting verification") from exc

    async def verify(self, phone: str, code: str) -> LoginSession:
        """
        Check a passcode and open a session.

        Raises:
            InvalidCodeError: If the provider denied the code
            OtpProviderError: If the provider could not be reached
            StoreError: If the profile could not be ensured
        """
        try:
            approved = await asyncio.wait_for(
                self._otp_provider.check_verification(phone, code),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as exc:
            raise OtpProviderError("OTP provider timed out checking verification") from exc

        if not approved:
            logger.info("otp_denied", phone=phone)
            raise InvalidCodeError()

        profile = await self._profile_service.ensure_profile(phone)
        logger.info("otp_approved", phone=phone, profile_id=profile.id)
        return LoginSession(
            token=self._token_issuer.create_token(phone),
            expires_in=self._token_issuer.expires_in_seconds,
            profile=profile,
        )

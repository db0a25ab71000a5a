"""Identity resolvers: turn a request's credentials into a phone number.

Exactly one resolver is chosen when the app is built (``AUTH_REQUIRED``);
handlers call ``resolve`` and never branch on the mode themselves.
"""

import asyncio
import logging
from typing import Optional, Protocol

from core.config import Settings
from core.exceptions import (
    InvalidPhoneError,
    InvalidTokenError,
    MissingPhoneClaimError,
    MissingPhoneError,
    MissingTokenError,
)
from domain.entities.profile import normalize_phone
from infrastructure.auth.provider import ITokenVerifier

logger = logging.getLogger(__name__)


class IdentityResolver(Protocol):
    """Resolves the caller's normalized phone number."""

    async def resolve(
        self, bearer_token: Optional[str], supplied_phone: Optional[str] = None
    ) -> str:
        """
        Resolve the phone number for a request.

        Args:
            bearer_token: Token from the Authorization header, if any
            supplied_phone: Phone from the query string or body, if any

        Returns:
            The normalized phone number
        """
        ...


class VerifiedIdentityResolver:
    """Takes the phone from a verified bearer token's claims."""

    def __init__(self, verifier: ITokenVerifier, timeout_seconds: float = 5.0) -> None:
        self._verifier = verifier
        self._timeout_seconds = timeout_seconds

    async def resolve(
        self, bearer_token: Optional[str], supplied_phone: Optional[str] = None
    ) -> str:
        if not bearer_token:
            raise MissingTokenError()

        try:
            claims = await asyncio.wait_for(
                self._verifier.verify(bearer_token), timeout=self._timeout_seconds
            )
        except TimeoutError:
            logger.warning("Token verification timed out after %ss", self._timeout_seconds)
            raise InvalidTokenError() from None

        if claims is None:
            raise InvalidTokenError()
        if not claims.phone:
            logger.warning("Verified token for sub=%s has no phone claim", claims.subject)
            raise MissingPhoneClaimError()

        try:
            return normalize_phone(claims.phone)
        except InvalidPhoneError:
            logger.warning("Verified token for sub=%s has a malformed phone claim", claims.subject)
            raise InvalidTokenError("Token phone claim is malformed") from None


class TrustedInputIdentityResolver:
    """Development only: trusts the phone the caller sends."""

    async def resolve(
        self, bearer_token: Optional[str], supplied_phone: Optional[str] = None
    ) -> str:
        if not supplied_phone or not supplied_phone.strip():
            raise MissingPhoneError()
        return normalize_phone(supplied_phone)


def build_identity_resolver(
    settings: Settings, verifier: ITokenVerifier
) -> IdentityResolver:
    """Pick the resolver for this process from ``AUTH_REQUIRED``."""
    if settings.auth_required:
        return VerifiedIdentityResolver(verifier, timeout_seconds=settings.verifier_timeout_seconds)

    logger.warning("AUTH_REQUIRED=false: accepting caller-supplied phone numbers (dev mode)")
    return TrustedInputIdentityResolver()

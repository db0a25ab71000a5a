"""Token verifier protocol and the normalized claim set it produces."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True)
class TokenClaims:
    """Claims extracted from a verified token.

    Identity providers disagree on the phone claim name (``phone_number``
    for Firebase, ``phoneNumber`` in some client SDK payloads); both land
    in ``phone`` here so nothing downstream reads raw payloads.
    """

    subject: str
    phone: Optional[str] = None
    issuer: Optional[str] = None


def claims_from_payload(payload: Mapping[str, Any]) -> Optional[TokenClaims]:
    """Normalize a decoded JWT payload. Returns None without a subject."""
    subject = payload.get("sub")
    if not subject:
        return None

    phone = payload.get("phone_number") or payload.get("phoneNumber")
    return TokenClaims(
        subject=str(subject),
        phone=str(phone) if phone else None,
        issuer=payload.get("iss"),
    )


class ITokenVerifier(Protocol):
    """Protocol for bearer token verifiers."""

    async def verify(self, token: str) -> Optional[TokenClaims]:
        """
        Verify a bearer token.

        Args:
            token: The bearer token to verify

        Returns:
            TokenClaims if valid, None if invalid, expired or unverifiable
        """
        ...

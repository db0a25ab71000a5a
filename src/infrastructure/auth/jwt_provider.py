"""JWT token verifier.

Accepts two token families:

- Firebase ID tokens (RS256), verified against Google's JWKS endpoint.
  Firebase phone-auth payloads look like::

    {
        "iss": "https://securetoken.google.com/<project-id>",
        "aud": "<project-id>",
        "sub": "firebase-uid",
        "phone_number": "+6591234567",
        "exp": 1234567890
    }

- Session tokens (HS256) issued by this service after an approved OTP check.
  These are only accepted when ``accept_session_tokens`` is set, i.e. when
  OTP login is enabled.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from jose import jwk, jwt
from jose.exceptions import JOSEError

from infrastructure.auth.provider import TokenClaims, claims_from_payload

logger = logging.getLogger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"

_JWKS_ALGORITHMS = ("RS256",)


class JWTTokenVerifier:
    """JWT-based token verifier and session token issuer.

    Owns an ``httpx.AsyncClient`` for JWKS fetches between ``open()`` and
    ``close()``; keys are cached per instance by ``kid``.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60 * 24,
        issuer: str = "phone-profile-api",
        firebase_project_id: str = "",
        jwks_url: str = FIREBASE_JWKS_URL,
        timeout_seconds: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
        accept_session_tokens: bool = False,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._issuer = issuer
        self._firebase_project_id = firebase_project_id
        self._jwks_url = jwks_url
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None
        self._jwks_cache: dict[str, dict[str, Any]] | None = None
        self._accept_session_tokens = accept_session_tokens

    @property
    def firebase_project_id(self) -> str:
        return self._firebase_project_id

    @property
    def expires_in_seconds(self) -> int:
        return self._expire_minutes * 60

    async def open(self) -> None:
        """Create the HTTP client used for JWKS fetches."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout_seconds)
            self._owns_client = True

    async def close(self) -> None:
        """Close the HTTP client if this verifier created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def verify(self, token: str) -> Optional[TokenClaims]:
        """
        Verify a JWT and extract normalized claims.

        Detects the signing algorithm from the token header:
        - RS256 (Firebase): validates via JWKS public key, audience and issuer
        - HS256 (session): validates via shared secret and issuer, only when
          session tokens are accepted

        Args:
            token: The JWT to verify

        Returns:
            TokenClaims if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg")

            if alg == self._algorithm and self._accept_session_tokens:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    issuer=self._issuer,
                    options={"verify_aud": False},
                )
            elif alg in _JWKS_ALGORITHMS and self._firebase_project_id:
                payload = await self._validate_firebase(token, header)
            else:
                logger.info("Rejected token signed with alg=%s", alg)
                return None
        except JOSEError as exc:
            logger.info("Token verification failed: %s", exc)
            return None

        if payload is None:
            return None

        return claims_from_payload(payload)

    async def _validate_firebase(
        self, token: str, header: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Validate a Firebase ID token using the JWKS public keys."""
        kid = header.get("kid")
        if not kid:
            return None

        jwks_keys = await self._get_jwks_keys()
        key_data = jwks_keys.get(kid)
        if not key_data:
            # Key not found, refetch once in case Google rotated keys
            self._jwks_cache = None
            jwks_keys = await self._get_jwks_keys()
            key_data = jwks_keys.get(kid)
            if not key_data:
                logger.warning("JWKS key not found for kid=%s", kid)
                return None

        public_key = jwk.construct(key_data, algorithm=header["alg"])
        return jwt.decode(
            token,
            public_key,
            algorithms=list(_JWKS_ALGORITHMS),
            audience=self._firebase_project_id,
            issuer=f"{FIREBASE_ISSUER_PREFIX}{self._firebase_project_id}",
        )

    async def _get_jwks_keys(self) -> dict[str, dict[str, Any]]:
        """Fetch and cache the JWKS keys."""
        if self._jwks_cache is not None:
            return self._jwks_cache

        if self._http_client is None:
            logger.error("JWKS fetch attempted before verifier was opened")
            return {}

        try:
            response = await self._http_client.get(self._jwks_url)
            response.raise_for_status()
            jwks_data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch JWKS from %s", self._jwks_url)
            return {}

        # Build a kid -> key mapping
        self._jwks_cache = {}
        for key_data in jwks_data.get("keys", []):
            kid = key_data.get("kid")
            if kid:
                self._jwks_cache[kid] = key_data
        logger.info("Fetched %d JWKS keys", len(self._jwks_cache))
        return self._jwks_cache

    def create_token(self, phone: str) -> str:
        """
        Create a session token for a phone number (HS256).

        Args:
            phone: The verified, normalized phone number

        Returns:
            The generated JWT string
        """
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": phone,
            "phone_number": phone,
            "iss": self._issuer,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

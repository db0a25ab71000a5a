"""Twilio Verify OTP provider.

Uses the Verify v2 REST API:

    POST {BASE_URL}/Services/{service_sid}/Verifications       To, Channel
    POST {BASE_URL}/Services/{service_sid}/VerificationCheck   To, Code

A VerificationCheck answers 404 once the verification has expired, been
approved already, or run out of attempts; that is a denial, not a failure.
"""

import logging

import httpx

from core.exceptions import OtpProviderError
from domain.services.otp_provider import OtpChannel

logger = logging.getLogger(__name__)


class TwilioVerifyProvider:
    """OTP provider backed by Twilio Verify."""

    BASE_URL = "https://verify.twilio.com/v2"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        service_sid: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._service_sid = service_sid
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None

    async def open(self) -> None:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout_seconds,
            )
            self._owns_client = True

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def start_verification(self, phone: str, channel: OtpChannel) -> None:
        response = await self._post("Verifications", {"To": phone, "Channel": channel})
        if not response.is_success:
            logger.warning(
                "[Twilio] start failed to=%s status=%s body=%s",
                phone,
                response.status_code,
                response.text[:500],
            )
            raise OtpProviderError(f"Twilio Verify returned {response.status_code}")
        logger.info("[Twilio] Verification started to=%s channel=%s", phone, channel)

    async def check_verification(self, phone: str, code: str) -> bool:
        response = await self._post("VerificationCheck", {"To": phone, "Code": code})
        if response.status_code == 404:
            logger.info("[Twilio] No pending verification to=%s", phone)
            return False
        if not response.is_success:
            logger.warning(
                "[Twilio] check failed to=%s status=%s body=%s",
                phone,
                response.status_code,
                response.text[:500],
            )
            raise OtpProviderError(f"Twilio Verify returned {response.status_code}")

        try:
            status = response.json().get("status")
        except ValueError as exc:
            raise OtpProviderError("Twilio Verify returned a non-JSON body") from exc
        return status == "approved"

    async def _post(self, resource: str, data: dict[str, str]) -> httpx.Response:
        if self._http_client is None:
            raise OtpProviderError("Twilio provider used before open()")
        url = f"/Services/{self._service_sid}/{resource}"
        try:
            return await self._http_client.post(url, data=data)
        except httpx.HTTPError as exc:
            logger.error("[Twilio] %s request failed: %s", resource, exc)
            raise OtpProviderError(f"Twilio Verify unreachable: {type(exc).__name__}") from exc

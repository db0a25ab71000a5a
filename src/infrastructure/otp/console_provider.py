"""Console OTP provider for local development."""

import logging
import secrets

from domain.services.otp_provider import OtpChannel

logger = logging.getLogger(__name__)


class ConsoleOtpProvider:
    """Sends nothing; approves only the configured development code."""

    def __init__(self, dev_code: str) -> None:
        self._dev_code = dev_code

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def start_verification(self, phone: str, channel: OtpChannel) -> None:
        # never log the code itself
        logger.info("[OTP-Console] Verification started to=%s channel=%s", phone, channel)

    async def check_verification(self, phone: str, code: str) -> bool:
        approved = secrets.compare_digest(code, self._dev_code)
        logger.info("[OTP-Console] Verification checked to=%s approved=%s", phone, approved)
        return approved

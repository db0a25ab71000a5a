"""OTP provider protocol."""

from typing import Literal, Protocol

OtpChannel = Literal["sms", "call", "whatsapp"]


class IOtpProvider(Protocol):
    """Protocol for one-time-passcode delivery and checking."""

    async def open(self) -> None:
        """Acquire any network resources."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...

    async def start_verification(self, phone: str, channel: OtpChannel) -> None:
        """
        Send a passcode to the phone.

        Raises:
            OtpProviderError: If the provider rejected or failed the request
        """
        ...

    async def check_verification(self, phone: str, code: str) -> bool:
        """
        Check a passcode.

        Returns:
            True if approved, False if denied or no verification is pending

        Raises:
            OtpProviderError: If the provider could not be asked
        """
        ...

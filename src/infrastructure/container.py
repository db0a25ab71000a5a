"""Explicitly constructed service graph with startup and shutdown steps."""

from typing import Optional

import structlog

from core.config import Settings
from core.exceptions import ConfigurationError
from domain.services.otp_provider import IOtpProvider
from domain.services.otp_service import OtpLoginService
from domain.services.profile_service import ProfileService
from infrastructure.auth.credentials import resolve_firebase_project_id
from infrastructure.auth.identity import IdentityResolver, build_identity_resolver
from infrastructure.auth.jwt_provider import JWTTokenVerifier
from infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_schema,
)
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.otp.console_provider import ConsoleOtpProvider
from infrastructure.otp.twilio_provider import TwilioVerifyProvider

logger = structlog.get_logger()

DEFAULT_JWT_SECRET = "CHANGE-ME-IN-PRODUCTION"
OTP_PROVIDERS = ("disabled", "console", "twilio")


def build_otp_provider(settings: Settings) -> Optional[IOtpProvider]:
    """Create the configured OTP provider, or None when OTP login is disabled."""
    name = settings.otp_provider.strip().lower()
    if name not in OTP_PROVIDERS:
        raise ConfigurationError(
            f"OTP_PROVIDER must be one of {', '.join(OTP_PROVIDERS)}, got {name!r}"
        )
    if name == "disabled":
        return None
    if name == "twilio":
        return TwilioVerifyProvider(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            service_sid=settings.twilio_verify_service_sid,
            timeout_seconds=settings.otp_timeout_seconds,
        )
    return ConsoleOtpProvider(dev_code=settings.otp_dev_code)


class ServiceContainer:
    """Owns the connection pool, HTTP clients and services for one app.

    Construction does no I/O. ``startup`` validates credentials, opens
    clients and establishes the schema; any failure there aborts the
    process. ``shutdown`` releases everything.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.engine = create_engine(settings)
        self.session_factory = create_session_factory(self.engine)
        self.otp_provider = build_otp_provider(settings)

        self.token_verifier = JWTTokenVerifier(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_expire_minutes,
            issuer=settings.jwt_issuer,
            firebase_project_id=resolve_firebase_project_id(settings),
            timeout_seconds=settings.verifier_timeout_seconds,
            accept_session_tokens=self.otp_provider is not None,
        )
        self.identity_resolver: IdentityResolver = build_identity_resolver(
            settings, self.token_verifier
        )
        self.profile_service = ProfileService(
            self.uow_factory,
            timeout_seconds=settings.store_timeout_seconds,
        )

        self.otp_service: Optional[OtpLoginService] = None
        if self.otp_provider is not None:
            self.otp_service = OtpLoginService(
                self.otp_provider,
                self.profile_service,
                self.token_verifier,
                timeout_seconds=settings.otp_timeout_seconds,
            )

    def uow_factory(self) -> SQLAlchemyUnitOfWork:
        """Create a Unit of Work on the shared session factory."""
        return SQLAlchemyUnitOfWork(self.session_factory)

    def validate(self) -> None:
        """Reject configurations the service must not run with."""
        settings = self.settings

        if settings.auth_required and not self.token_verifier.firebase_project_id:
            if self.otp_provider is None:
                raise ConfigurationError(
                    "No token issuer configured: set FIREBASE_SERVICE_ACCOUNT_BASE64, "
                    "FIREBASE_SERVICE_ACCOUNT_JSON or FIREBASE_PROJECT_ID, enable OTP "
                    "login, or set AUTH_REQUIRED=false for development"
                )
            logger.warning("firebase_not_configured", accepted_tokens="session")

        if isinstance(self.otp_provider, TwilioVerifyProvider) and not (
            settings.twilio_account_sid
            and settings.twilio_auth_token
            and settings.twilio_verify_service_sid
        ):
            raise ConfigurationError(
                "OTP_PROVIDER=twilio needs TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN "
                "and TWILIO_VERIFY_SERVICE_SID"
            )

        # Session tokens from an OTP login are only as strong as the code
        # check and the signing secret behind them.
        if (
            settings.auth_required
            and self.otp_provider is not None
            and not settings.otp_allow_insecure_dev
        ):
            if isinstance(self.otp_provider, ConsoleOtpProvider):
                raise ConfigurationError(
                    "OTP_PROVIDER=console approves a fixed code; use twilio, "
                    "disable OTP login, or set OTP_ALLOW_INSECURE_DEV=true locally"
                )
            if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
                raise ConfigurationError(
                    "JWT_SECRET_KEY must be set when OTP login is enabled"
                )

        if settings.is_production:
            if settings.otp_allow_insecure_dev:
                raise ConfigurationError("OTP_ALLOW_INSECURE_DEV is not allowed in production")
            if not settings.auth_required:
                raise ConfigurationError("AUTH_REQUIRED=false is not allowed in production")
            if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
                raise ConfigurationError("JWT_SECRET_KEY must be set in production")
            if isinstance(self.otp_provider, ConsoleOtpProvider):
                raise ConfigurationError("OTP_PROVIDER=console is not allowed in production")

    async def startup(self) -> None:
        """Validate configuration, open clients and create the schema."""
        self.validate()

        await self.token_verifier.open()
        if self.otp_provider is not None:
            await self.otp_provider.open()

        try:
            await init_schema(self.engine)
        except Exception:
            logger.exception("database_init_failed")
            raise
        logger.info(
            "service_started",
            auth_required=self.settings.auth_required,
            otp_provider=self.settings.otp_provider,
        )

    async def shutdown(self) -> None:
        """Close HTTP clients and drain the connection pool."""
        if self.otp_provider is not None:
            await self.otp_provider.close()
        await self.token_verifier.close()
        await self.engine.dispose()
        logger.info("service_stopped")

"""OTP login routes."""

import structlog
from fastapi import APIRouter, Depends, Request, status

from api.dependencies.services import get_otp_service
from api.schemas.auth import (
    OtpStartRequest,
    OtpStartResponse,
    OtpVerifyRequest,
    SessionResponse,
)
from api.schemas.common import ErrorResponse
from api.schemas.profile import ProfileResponse
from core.exceptions import ErrorCode, OtpProviderError, StoreError, UpstreamError
from core.rate_limit import limiter
from domain.entities.profile import normalize_phone
from domain.services.otp_service import OtpLoginService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth/otp", tags=["auth"])


@router.post(
    "/start",
    response_model=OtpStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a passcode",
    responses={
        400: {"model": ErrorResponse, "description": "Phone malformed"},
        500: {"model": ErrorResponse, "description": "OTP provider failure"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def start_otp(
    request: Request,
    body: OtpStartRequest,
    service: OtpLoginService = Depends(get_otp_service),
) -> OtpStartResponse:
    """Start a phone verification over the chosen channel."""
    phone = normalize_phone(body.phone)
    try:
        await service.start(phone, body.channel)
    except OtpProviderError as exc:
        logger.error("otp_start_failed", error=str(exc))
        raise UpstreamError(ErrorCode.OTP_FAILED) from exc
    return OtpStartResponse()


@router.post(
    "/verify",
    response_model=SessionResponse,
    summary="Check a passcode and get a session token",
    responses={
        400: {"model": ErrorResponse, "description": "Phone malformed"},
        401: {"model": ErrorResponse, "description": "Code rejected"},
        500: {"model": ErrorResponse, "description": "Provider or store failure"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def verify_otp(
    request: Request,
    body: OtpVerifyRequest,
    service: OtpLoginService = Depends(get_otp_service),
) -> SessionResponse:
    """Check the passcode; on approval ensure the profile and issue a token."""
    phone = normalize_phone(body.phone)
    try:
        session = await service.verify(phone, body.code)
    except OtpProviderError as exc:
        logger.error("otp_verify_failed", error=str(exc))
        raise UpstreamError(ErrorCode.OTP_FAILED) from exc
    except StoreError as exc:
        logger.error("otp_login_store_failed", error=str(exc), error_type=type(exc).__name__)
        raise UpstreamError(ErrorCode.LOGIN_FAILED) from exc

    return SessionResponse(
        token=session.token,
        expires_in=session.expires_in,
        profile=ProfileResponse.model_validate(session.profile),
    )

"""Profile routes for the calling phone number."""

import structlog
from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import BearerToken, Resolver
from api.dependencies.services import get_profile_service
from api.schemas.common import ErrorResponse
from api.schemas.profile import ProfileResponse, ProfileUpdate
from core.exceptions import ErrorCode, StoreError, UpstreamError
from core.rate_limit import limiter
from domain.services.profile_service import ProfileService

logger = structlog.get_logger()

router = APIRouter(prefix="/me", tags=["profile"])

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Phone missing or malformed"},
    401: {"model": ErrorResponse, "description": "Token missing or invalid"},
    500: {"model": ErrorResponse, "description": "Profile store failure"},
}


@router.get(
    "",
    response_model=ProfileResponse | None,
    summary="Get my profile",
    responses=_ERROR_RESPONSES,
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_me(
    request: Request,
    bearer_token: BearerToken,
    resolver: Resolver,
    phone: str | None = Query(None, description="Caller phone (only when auth is disabled)"),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse | None:
    """Return the caller's profile, or null if none has been saved yet."""
    caller_phone = await resolver.resolve(bearer_token, phone)

    try:
        profile = await service.get_by_phone(caller_phone)
    except StoreError as exc:
        logger.error("profile_read_failed", error=str(exc), error_type=type(exc).__name__)
        raise UpstreamError(ErrorCode.ME_FAILED) from exc

    return ProfileResponse.model_validate(profile) if profile else None


@router.put(
    "",
    response_model=ProfileResponse,
    summary="Create or replace my profile",
    responses=_ERROR_RESPONSES,
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def put_me(
    request: Request,
    bearer_token: BearerToken,
    resolver: Resolver,
    body: ProfileUpdate | None = None,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Create the caller's profile, or replace every field of the existing one."""
    update = body or ProfileUpdate()
    caller_phone = await resolver.resolve(bearer_token, update.phone)

    try:
        profile = await service.upsert_by_phone(caller_phone, update.to_patch())
    except StoreError as exc:
        logger.error("profile_update_failed", error=str(exc), error_type=type(exc).__name__)
        raise UpstreamError(ErrorCode.UPDATE_FAILED) from exc

    logger.info("profile_upserted", profile_id=profile.id)
    return ProfileResponse.model_validate(profile)

"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from infrastructure.auth.identity import IdentityResolver

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
) -> str | None:
    """Return the bearer token from the Authorization header, if present."""
    if not credentials or not credentials.credentials:
        return None
    return credentials.credentials


def get_identity_resolver(request: Request) -> IdentityResolver:
    """Get the resolver chosen for this app at startup."""
    return request.app.state.container.identity_resolver


# Type aliases for convenience in route handlers
BearerToken = Annotated[str | None, Depends(get_bearer_token)]
Resolver = Annotated[IdentityResolver, Depends(get_identity_resolver)]

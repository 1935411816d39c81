"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fitquest.auth.jwt import verify_token
from fitquest.errors import AuthenticationRequiredError

_bearer = HTTPBearer(auto_error=False)


def resolve_user_id(token: str | None) -> str:
    """Return the user id for a bearer token, or raise AuthenticationRequiredError."""
    if not token:
        raise AuthenticationRequiredError("Authentication required")
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        raise AuthenticationRequiredError(str(e)) from e
    return str(payload["sub"])


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """Extract and verify the bearer token, returning the authenticated user id."""
    return resolve_user_id(credentials.credentials if credentials else None)

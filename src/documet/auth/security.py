"""
JWT Verification

This module is responsible for:

1. Verifying incoming bearer JWTs.
2. Producing a validated `UserContext` object to downstream routes.

Token issuance lives outside this service; only "who is the caller" is
needed here, taken from the `sub` claim.
"""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..tenants import USER_ID_PATTERN
from .models import UserContext


# ---------------------------------------------------------------------
# Security Schemes
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=True)


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _decode_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algo],
        options={"require": ["sub"]},
    )


def _user_from_token(token: str) -> UserContext:
    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired.",
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or malformed token.",
        )

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not USER_ID_PATTERN.match(user_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token 'sub' claim is not a valid user id.",
        )

    return UserContext(user_id=user_id)


# ---------------------------------------------------------------------
# Public Authentication Dependencies
# ---------------------------------------------------------------------

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(security),
) -> UserContext:
    """
    Verify the bearer token and return the caller.

    Raises
    ------
    HTTPException(401) for missing, invalid or expired tokens.
    """
    return _user_from_token(creds.credentials)

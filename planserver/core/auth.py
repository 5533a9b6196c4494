"""
Auth utilities for the plan server.

Validates bearer JWTs (HS256, AUTH_SECRET_KEY) and builds the AuthContext
(user, org, role, permissions) for the request.
Falls back to X-User-Id / X-Org-Id headers outside production (dev, tests).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
import logging
from fastapi import Header, Request

from planserver.core.config import settings
from planserver.core.errors import UnauthorizedError, PermissionError
from planserver.features.users.service import get_user, get_org_role
from planserver.models.auth import AuthContext, ROLE_PERMISSIONS

logger = logging.getLogger("planserver")

TOKEN_ALGORITHM = "HS256"


def create_access_token(user_id: str, org_id: str, *, expires_in: timedelta = timedelta(hours=12)) -> str:
    """Issue a signed token carrying `sub` and `org_id` claims."""
    if not settings.AUTH_SECRET_KEY:
        raise RuntimeError("AUTH_SECRET_KEY is not configured")
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "org_id": org_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, settings.AUTH_SECRET_KEY, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str) -> Tuple[str, str]:
    """
    Verify a bearer token and extract (user_id, org_id).

    Raises:
        UnauthorizedError: invalid, expired, or missing claims
    """
    if not settings.AUTH_SECRET_KEY:
        logger.warning("auth.no_secret", extra={"error_code": "unauthorized"})
        raise UnauthorizedError("Token authentication is not configured")

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_SECRET_KEY,
            algorithms=[TOKEN_ALGORITHM],
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("sub")
    org_id = payload.get("org_id")
    if not user_id or not org_id:
        raise UnauthorizedError("Token is missing 'sub' or 'org_id' claim")
    return user_id, org_id


def _header_auth_allowed() -> bool:
    return settings.ALLOW_HEADER_AUTH and settings.ENV.lower() != "production"


def get_auth_context(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Dev/test: caller user ID"),
    x_org_id: Optional[str] = Header(None, description="Dev/test: caller org ID"),
) -> AuthContext:
    """
    Authenticate the request and build its AuthContext.

    Priority:
    1. Bearer JWT from Authorization header
    2. X-User-Id + X-Org-Id headers (non-production only)
    3. Raise 401 Unauthorized

    Raises:
        UnauthorizedError: missing/invalid credentials or unknown user
        PermissionError: user is not a member of the org
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        user_id, org_id = verify_token(auth_header[7:])
    elif x_user_id and x_org_id and _header_auth_allowed():
        user_id, org_id = x_user_id, x_org_id
    else:
        raise UnauthorizedError("Missing Authorization (Bearer JWT) or X-User-Id/X-Org-Id headers")

    user = get_user(user_id)
    if user is None:
        raise UnauthorizedError("Unknown user")

    role = get_org_role(org_id, user_id)
    if role is None:
        logger.info("auth.not_member", extra={"user_id": user_id, "org_id": org_id})
        raise PermissionError("User is not a member of this org")

    return AuthContext(
        user=user,
        org_id=org_id,
        role=role,
        permissions=ROLE_PERMISSIONS[role],
    )

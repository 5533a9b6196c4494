"""Shared helpers for plan server tests."""

from planserver.features.users.service import get_user
from planserver.models.auth import AuthContext, OrgRole, ROLE_PERMISSIONS


def auth_headers(user_id: str, org_id: str) -> dict:
    return {"X-User-Id": user_id, "X-Org-Id": org_id}


def make_auth(user_id: str, org_id: str, role: OrgRole = OrgRole.MEMBER) -> AuthContext:
    """Build an AuthContext without going through HTTP."""
    return AuthContext(
        user=get_user(user_id),
        org_id=org_id,
        role=role,
        permissions=ROLE_PERMISSIONS[role],
    )

"""
planserver/models/auth.py

Authenticated caller context and the role -> permission mapping.
"""

from enum import Enum
from typing import FrozenSet
from pydantic import BaseModel, ConfigDict

from planserver.models.user import User


class Permission(str, Enum):
    CREATE_PLAN = "create_plan"
    DELETE_OWN_PLAN = "delete_own_plan"
    DELETE_ANY_PLAN = "delete_any_plan"
    LIST_ARCHIVED_PLANS = "list_archived_plans"


class OrgRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    READER = "reader"


ROLE_PERMISSIONS = {
    OrgRole.OWNER: frozenset(Permission),
    OrgRole.ADMIN: frozenset(Permission),
    OrgRole.MEMBER: frozenset({
        Permission.CREATE_PLAN,
        Permission.DELETE_OWN_PLAN,
        Permission.LIST_ARCHIVED_PLANS,
    }),
    OrgRole.READER: frozenset(),
}


class AuthContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: User
    org_id: str
    role: OrgRole
    permissions: FrozenSet[Permission]

    @property
    def user_id(self) -> str:
        return self.user.id

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

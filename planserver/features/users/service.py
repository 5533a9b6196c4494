"""
User and org service.
- create_org(name)
- create_user(email, name, is_trial)
- get_user(user_id)  (includes the non-draft plan count used for trial quotas)
- add_org_member(org_id, user_id, role)
- get_org_role(org_id, user_id)
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4
from sqlalchemy import select, insert, func

from planserver.core.database import get_db_session, users, orgs, org_users, plans
from planserver.models.auth import OrgRole
from planserver.models.plan import DRAFT_PLAN_NAME
from planserver.models.user import User, Org


def create_org(name: str, org_id: Optional[str] = None) -> Org:
    now = datetime.now(timezone.utc)
    org_id = org_id or str(uuid4())
    with get_db_session() as session:
        session.execute(insert(orgs).values(id=org_id, name=name, created_at=now))
    return Org(id=org_id, name=name, created_at=now)


def create_user(email: str, name: Optional[str] = None, *, is_trial: bool = False, user_id: Optional[str] = None) -> User:
    now = datetime.now(timezone.utc)
    user_id = user_id or str(uuid4())
    with get_db_session() as session:
        session.execute(
            insert(users).values(
                id=user_id,
                email=email,
                name=name,
                is_trial=is_trial,
                created_at=now,
            )
        )
    return User(id=user_id, email=email, name=name, is_trial=is_trial, num_non_draft_plans=0, created_at=now)


def count_non_draft_plans(session, user_id: str) -> int:
    return session.execute(
        select(func.count())
        .select_from(plans)
        .where(plans.c.owner_id == user_id)
        .where(plans.c.name != DRAFT_PLAN_NAME)
    ).scalar_one()


def get_user(user_id: str) -> Optional[User]:
    with get_db_session() as session:
        row = session.execute(select(users).where(users.c.id == user_id)).first()
        if not row:
            return None
        return User(
            id=row.id,
            email=row.email,
            name=row.name,
            is_trial=row.is_trial,
            num_non_draft_plans=count_non_draft_plans(session, row.id),
            created_at=row.created_at,
        )


def add_org_member(org_id: str, user_id: str, role: OrgRole = OrgRole.MEMBER) -> None:
    with get_db_session() as session:
        session.execute(
            insert(org_users).values(
                org_id=org_id,
                user_id=user_id,
                role=OrgRole(role).value,
                created_at=datetime.now(timezone.utc),
            )
        )


def get_org_role(org_id: str, user_id: str) -> Optional[OrgRole]:
    with get_db_session() as session:
        role = session.execute(
            select(org_users.c.role)
            .where(org_users.c.org_id == org_id)
            .where(org_users.c.user_id == user_id)
        ).scalar_one_or_none()
    return OrgRole(role) if role else None

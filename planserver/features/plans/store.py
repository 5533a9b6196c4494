"""
planserver/features/plans/store.py

Plan persistence. Every function runs in its own session; the unique
constraint on (project_id, owner_id, name) is the source of truth for
name uniqueness.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4
from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.exc import IntegrityError

from planserver.core.database import get_db_session, plans
from planserver.core.errors import ConflictError, InternalError
from planserver.core.logging import log_event
from planserver.features.plans.storage import create_plan_dir, delete_plan_dir
from planserver.models.plan import Plan, PlanStatus, DRAFT_PLAN_NAME

logger = logging.getLogger("planserver")


class PlanNameTakenError(ConflictError):
    """Insert hit the (project_id, owner_id, name) unique constraint."""


def _row_to_plan(row) -> Plan:
    return Plan(
        id=row.id,
        org_id=row.org_id,
        project_id=row.project_id,
        owner_id=row.owner_id,
        name=row.name,
        status=PlanStatus(row.status),
        archived_at=row.archived_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def count_plans_by_name(project_id: str, owner_id: str, name: str) -> int:
    with get_db_session() as session:
        return session.execute(
            select(func.count())
            .select_from(plans)
            .where(plans.c.project_id == project_id)
            .where(plans.c.owner_id == owner_id)
            .where(plans.c.name == name)
        ).scalar_one()


def get_plan(plan_id: str) -> Optional[Plan]:
    with get_db_session() as session:
        row = session.execute(select(plans).where(plans.c.id == plan_id)).first()
        return _row_to_plan(row) if row else None


def create_plan(org_id: str, project_id: str, owner_id: str, name: str) -> Plan:
    """
    Insert a plan row and create its directory in one transaction.

    Raises:
        PlanNameTakenError: a plan with this name already exists for (project, owner)
        InternalError: the plan directory could not be created (row is rolled back)
    """
    plan_id = str(uuid4())
    now = datetime.now(timezone.utc)
    try:
        with get_db_session() as session:
            session.execute(
                insert(plans).values(
                    id=plan_id,
                    org_id=org_id,
                    project_id=project_id,
                    owner_id=owner_id,
                    name=name,
                    status=PlanStatus.READY.value,
                    created_at=now,
                    updated_at=now,
                )
            )
            session.flush()
            create_plan_dir(org_id, plan_id)
    except IntegrityError as e:
        logger.info("plan.name_taken", extra={"project_id": project_id, "owner_id": owner_id, "plan_name": name})
        raise PlanNameTakenError(f"A plan named '{name}' already exists in this project") from e
    except OSError as e:
        raise InternalError(f"Error creating plan directory: {e}") from e

    return Plan(
        id=plan_id,
        org_id=org_id,
        project_id=project_id,
        owner_id=owner_id,
        name=name,
        status=PlanStatus.READY,
        created_at=now,
        updated_at=now,
    )


def delete_plan(plan_id: str) -> int:
    """Delete the plan row only. Returns rows affected."""
    with get_db_session() as session:
        result = session.execute(delete(plans).where(plans.c.id == plan_id))
        return result.rowcount


def _delete_where(org_id: str, *conditions) -> int:
    """
    Delete matching plan rows, then their directories.

    Rows are committed before directories go. Every directory is attempted;
    any failures are reported together as plan_dir_delete_failed.
    """
    with get_db_session() as session:
        plan_ids = session.execute(
            select(plans.c.id).where(plans.c.org_id == org_id, *conditions)
        ).scalars().all()
        if plan_ids:
            session.execute(delete(plans).where(plans.c.id.in_(plan_ids)))

    failed = []
    for plan_id in plan_ids:
        try:
            delete_plan_dir(org_id, plan_id)
        except OSError as e:
            failed.append(plan_id)
            log_event(
                "error",
                "plan.dir_delete_failed",
                org_id=org_id,
                plan_id=plan_id,
                error_code="plan_dir_delete_failed",
                extra={"error": e},
            )

    if failed:
        raise InternalError(
            f"Error deleting {len(failed)} plan dir(s): {', '.join(failed)}",
            code="plan_dir_delete_failed",
        )
    return len(plan_ids)


def delete_draft_plans(org_id: str, project_id: str, owner_id: str) -> int:
    return _delete_where(
        org_id,
        plans.c.project_id == project_id,
        plans.c.owner_id == owner_id,
        plans.c.name == DRAFT_PLAN_NAME,
    )


def delete_owner_plans(org_id: str, project_id: str, owner_id: str) -> int:
    return _delete_where(
        org_id,
        plans.c.project_id == project_id,
        plans.c.owner_id == owner_id,
    )


def list_owned_plans(
    project_id: str,
    owner_id: Optional[str] = None,
    archived: bool = False,
    status: Optional[PlanStatus] = None,
) -> List[Plan]:
    """
    List plans in a project.

    owner_id=None lists every owner's plans. archived selects archived plans
    only (True) or live plans only (False).
    """
    query = select(plans).where(plans.c.project_id == project_id)
    if owner_id:
        query = query.where(plans.c.owner_id == owner_id)
    if archived:
        query = query.where(plans.c.archived_at.is_not(None))
    else:
        query = query.where(plans.c.archived_at.is_(None))
    if status is not None:
        query = query.where(plans.c.status == PlanStatus(status).value)
    query = query.order_by(plans.c.created_at, plans.c.id)

    with get_db_session() as session:
        return [_row_to_plan(row) for row in session.execute(query)]


def archive_plan(plan_id: str) -> bool:
    now = datetime.now(timezone.utc)
    with get_db_session() as session:
        result = session.execute(
            update(plans)
            .where(plans.c.id == plan_id)
            .values(archived_at=now, updated_at=now)
        )
        return result.rowcount > 0


def set_plan_status(plan_id: str, status: PlanStatus) -> bool:
    with get_db_session() as session:
        result = session.execute(
            update(plans)
            .where(plans.c.id == plan_id)
            .values(status=PlanStatus(status).value, updated_at=datetime.now(timezone.utc))
        )
        return result.rowcount > 0

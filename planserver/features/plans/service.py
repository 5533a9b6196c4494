"""
planserver/features/plans/service.py

Plan operations behind the HTTP handlers.

Handles:
- Plan creation (permission, project access, trial quota, name resolution)
- Plan read and authorization
- Single and bulk deletion (row first, then plan directory)
- Owned / archived / running listings
"""

import logging
from typing import List

from pydantic import ValidationError as PydanticValidationError

from planserver.core.config import settings
from planserver.core.errors import (
    InternalError,
    NotFoundError,
    PermissionError,
    ValidationError,
)
from planserver.core.logging import log_event
from planserver.features.plans import store
from planserver.features.plans.naming import resolve_plan_name
from planserver.features.plans.quota import check_trial_quota
from planserver.features.plans.storage import delete_plan_dir
from planserver.features.projects.service import authorize_project
from planserver.features.users.service import get_user
from planserver.models.auth import AuthContext, Permission
from planserver.models.plan import CreatePlanRequest, Plan, PlanStatus

logger = logging.getLogger("planserver")


def parse_create_plan_request(raw_body: bytes) -> CreatePlanRequest:
    try:
        return CreatePlanRequest.model_validate_json(raw_body)
    except PydanticValidationError as e:
        logger.info("plan.create.bad_body", extra={"errors": e.error_count()})
        raise ValidationError("Error parsing request body")


def create_plan(auth: AuthContext, project_id: str, raw_body: bytes) -> Plan:
    """
    Create a plan in project_id owned by the caller.

    Steps short-circuit in order: permission, project access, trial quota
    (cloud mode only), body parsing, name resolution, insert.
    """
    if not auth.has_permission(Permission.CREATE_PLAN):
        raise PermissionError("User does not have permission to create a plan")

    authorize_project(auth, project_id)

    user = get_user(auth.user_id) if settings.IS_CLOUD else None
    if settings.IS_CLOUD and user is None:
        raise InternalError("Error getting user")
    check_trial_quota(settings.IS_CLOUD, user, settings.TRIAL_MAX_PLANS)

    body = parse_create_plan_request(raw_body)

    def name_exists(name: str) -> bool:
        return store.count_plans_by_name(project_id, auth.user_id, name) > 0

    attempts = max(settings.PLAN_CREATE_RETRIES, 0) + 1
    attempt = 0
    while True:
        attempt += 1
        resolution = resolve_plan_name(
            body.name,
            name_exists,
            max_attempts=settings.PLAN_NAME_MAX_ATTEMPTS,
        )

        if resolution.replace_drafts:
            deleted = store.delete_draft_plans(auth.org_id, project_id, auth.user_id)
            if deleted:
                log_event(
                    "info",
                    "plans.drafts_deleted",
                    user_id=auth.user_id,
                    org_id=auth.org_id,
                    project_id=project_id,
                    extra={"count": deleted},
                )

        try:
            plan = store.create_plan(auth.org_id, project_id, auth.user_id, resolution.name)
        except store.PlanNameTakenError:
            if attempt >= attempts:
                raise
            log_event(
                "warning",
                "plan.create.retry",
                user_id=auth.user_id,
                project_id=project_id,
                extra={"attempt": attempt, "plan_name": resolution.name},
            )
            continue

        log_event(
            "info",
            "plan.created",
            user_id=auth.user_id,
            org_id=auth.org_id,
            project_id=project_id,
            plan_id=plan.id,
            extra={"plan_name": plan.name},
        )
        return plan


def authorize_plan(auth: AuthContext, plan_id: str) -> Plan:
    """
    Raises:
        NotFoundError: plan does not exist
        PermissionError: plan belongs to another org
    """
    plan = store.get_plan(plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    if plan.org_id != auth.org_id:
        raise PermissionError("User does not have access to this plan")
    return plan


def authorize_plan_delete(auth: AuthContext, plan_id: str) -> Plan:
    plan = authorize_plan(auth, plan_id)
    if not (
        auth.has_permission(Permission.DELETE_ANY_PLAN)
        or auth.has_permission(Permission.DELETE_OWN_PLAN)
    ):
        raise PermissionError("User does not have permission to delete plans")
    return plan


def delete_plan(auth: AuthContext, plan_id: str) -> None:
    """
    Delete a plan owned by the caller, then its directory.

    The row is committed before the directory is removed; a directory failure
    surfaces as a 500 and the directory can be cleaned up by retrying
    delete_plan_dir.
    """
    plan = authorize_plan_delete(auth, plan_id)

    if plan.owner_id != auth.user_id:
        raise PermissionError("Only the plan owner can delete a plan")

    if store.delete_plan(plan_id) == 0:
        raise NotFoundError("Not found")

    try:
        delete_plan_dir(auth.org_id, plan_id)
    except OSError as e:
        log_event(
            "error",
            "plan.dir_delete_failed",
            user_id=auth.user_id,
            org_id=auth.org_id,
            plan_id=plan_id,
            error_code="plan_dir_delete_failed",
            extra={"error": e},
        )
        raise InternalError(f"Error deleting plan dir: {e}", code="plan_dir_delete_failed")

    log_event("info", "plan.deleted", user_id=auth.user_id, org_id=auth.org_id, plan_id=plan_id)


def delete_all_plans(auth: AuthContext, project_id: str) -> int:
    """Delete every plan the caller owns in project_id. Returns the count."""
    authorize_project(auth, project_id)
    deleted = store.delete_owner_plans(auth.org_id, project_id, auth.user_id)
    log_event(
        "info",
        "plans.deleted_all",
        user_id=auth.user_id,
        org_id=auth.org_id,
        project_id=project_id,
        extra={"count": deleted},
    )
    return deleted


def list_plans(auth: AuthContext, project_id: str) -> List[Plan]:
    authorize_project(auth, project_id)
    return store.list_owned_plans(project_id, auth.user_id, archived=False)


def list_archived_plans(auth: AuthContext, project_id: str) -> List[Plan]:
    authorize_project(auth, project_id)
    if not auth.has_permission(Permission.LIST_ARCHIVED_PLANS):
        raise PermissionError("User does not have permission to list archived plans")
    return store.list_owned_plans(project_id, None, archived=True)


def list_running_plans(auth: AuthContext, project_id: str) -> List[Plan]:
    authorize_project(auth, project_id)
    return store.list_owned_plans(project_id, auth.user_id, archived=False, status=PlanStatus.RUNNING)

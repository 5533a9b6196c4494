"""
planserver/api/plans.py
Plans API: create, read, delete and list plans within a project.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from planserver.core.auth import get_auth_context
from planserver.features.plans.service import (
    authorize_plan,
    create_plan,
    delete_all_plans,
    delete_plan,
    list_archived_plans,
    list_plans,
    list_running_plans,
)
from planserver.models.auth import AuthContext
from planserver.models.plan import CreatePlanResponse, Plan

router = APIRouter(prefix="/v1", tags=["plans"])


@router.post("/projects/{project_id}/plans", response_model=CreatePlanResponse)
async def create_plan_endpoint(
    project_id: str,
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
):
    """Create a plan; an empty name creates (and replaces) the caller's draft."""
    raw_body = await request.body()
    plan = await run_in_threadpool(create_plan, auth, project_id, raw_body)
    return CreatePlanResponse(id=plan.id, name=plan.name)


@router.get("/projects/{project_id}/plans", response_model=List[Plan])
def list_plans_endpoint(project_id: str, auth: AuthContext = Depends(get_auth_context)):
    """List the caller's live plans in a project"""
    return list_plans(auth, project_id)


@router.delete("/projects/{project_id}/plans")
def delete_all_plans_endpoint(project_id: str, auth: AuthContext = Depends(get_auth_context)):
    """Delete every plan the caller owns in a project"""
    deleted = delete_all_plans(auth, project_id)
    return {"success": True, "deleted": deleted}


@router.get("/projects/{project_id}/plans/archived", response_model=List[Plan])
def list_archived_plans_endpoint(project_id: str, auth: AuthContext = Depends(get_auth_context)):
    return list_archived_plans(auth, project_id)


@router.get("/projects/{project_id}/plans/running", response_model=List[Plan])
def list_running_plans_endpoint(project_id: str, auth: AuthContext = Depends(get_auth_context)):
    return list_running_plans(auth, project_id)


@router.get("/plans/{plan_id}", response_model=Plan)
def get_plan_endpoint(plan_id: str, auth: AuthContext = Depends(get_auth_context)):
    return authorize_plan(auth, plan_id)


@router.delete("/plans/{plan_id}")
def delete_plan_endpoint(plan_id: str, auth: AuthContext = Depends(get_auth_context)):
    """Delete a plan (owner only) and its directory"""
    delete_plan(auth, plan_id)
    return {"success": True}

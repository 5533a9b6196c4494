"""
planserver/models/plan.py

Plan models and request/response schemas.

A plan is scoped to (project_id, owner_id); its name is unique within that
scope. The reserved name "draft" marks the owner's scratch plan.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


DRAFT_PLAN_NAME = "draft"
MAX_PLAN_NAME_LENGTH = 200


class PlanStatus(str, Enum):
    READY = "ready"
    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"


class Plan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    org_id: str
    project_id: str
    owner_id: str
    name: str
    status: PlanStatus = PlanStatus.READY
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def is_draft(self) -> bool:
        return self.name == DRAFT_PLAN_NAME


class CreatePlanRequest(BaseModel):
    """Body of POST /v1/projects/{project_id}/plans. An empty or null name means draft."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", max_length=MAX_PLAN_NAME_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def null_name_is_draft(cls, v):
        return "" if v is None else v


class CreatePlanResponse(BaseModel):
    id: str
    name: str

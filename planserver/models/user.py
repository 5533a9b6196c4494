from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None
    is_trial: bool = False
    num_non_draft_plans: int = 0
    created_at: datetime


class Org(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_at: datetime

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    org_id: str
    name: str
    created_at: datetime

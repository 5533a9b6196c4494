"""
Project store and project authorization.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4
from sqlalchemy import select, insert

from planserver.core.database import get_db_session, projects
from planserver.core.errors import NotFoundError, PermissionError
from planserver.models.auth import AuthContext
from planserver.models.project import Project


def create_project(org_id: str, name: str, project_id: Optional[str] = None) -> Project:
    now = datetime.now(timezone.utc)
    project_id = project_id or str(uuid4())
    with get_db_session() as session:
        session.execute(
            insert(projects).values(id=project_id, org_id=org_id, name=name, created_at=now)
        )
    return Project(id=project_id, org_id=org_id, name=name, created_at=now)


def get_project(project_id: str) -> Optional[Project]:
    with get_db_session() as session:
        row = session.execute(select(projects).where(projects.c.id == project_id)).first()
        if not row:
            return None
        return Project(id=row.id, org_id=row.org_id, name=row.name, created_at=row.created_at)


def authorize_project(auth: AuthContext, project_id: str) -> Project:
    """
    Confirm the caller's org owns the project.

    Raises:
        NotFoundError: project does not exist
        PermissionError: project belongs to another org
    """
    project = get_project(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    if project.org_id != auth.org_id:
        raise PermissionError("User does not have access to this project")
    return project

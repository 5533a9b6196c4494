"""
On-disk plan directories: <PLANS_DIR>/<org_id>/<plan_id>.

Both operations are idempotent so they can be retried after a partial failure.
"""

import logging
import shutil
from pathlib import Path

from planserver.core.config import settings

logger = logging.getLogger("planserver")


def plan_dir(org_id: str, plan_id: str) -> Path:
    return Path(settings.PLANS_DIR) / org_id / plan_id


def create_plan_dir(org_id: str, plan_id: str) -> Path:
    path = plan_dir(org_id, plan_id)
    path.mkdir(parents=True, exist_ok=True)
    return path


def delete_plan_dir(org_id: str, plan_id: str) -> None:
    """Remove the plan directory. A missing directory counts as deleted."""
    path = plan_dir(org_id, plan_id)
    if not path.exists():
        logger.info("plan_dir.absent", extra={"org_id": org_id, "plan_id": plan_id})
        return
    shutil.rmtree(path)

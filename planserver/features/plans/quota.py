"""Trial plan quota. Read-only; runs before any plan mutation."""

from typing import Optional

from planserver.core.errors import TrialPlansExceededError
from planserver.models.user import User


def check_trial_quota(cloud_mode: bool, user: Optional[User], max_plans: int) -> None:
    """
    Raise TrialPlansExceededError if a trial user already holds max_plans
    non-draft plans. Only enforced in cloud mode; user may be None outside it.
    """
    if not cloud_mode or user is None or not user.is_trial:
        return
    if user.num_non_draft_plans >= max_plans:
        raise TrialPlansExceededError(
            "User has reached max number of free trial plans",
            max_plans=max_plans,
        )

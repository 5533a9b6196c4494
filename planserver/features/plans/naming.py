"""
Plan name resolution.

An empty requested name becomes the reserved "draft" name. Drafts replace
each other (the caller deletes existing drafts first), so they never enter
the collision loop. Any other name is tried as-is, then as name.2, name.3, ...
until an unused one is found or the attempt cap is reached.
"""

from dataclasses import dataclass
from typing import Callable, Iterator

from planserver.core.errors import PlanNameExhaustedError
from planserver.models.plan import DRAFT_PLAN_NAME


@dataclass(frozen=True)
class NameResolution:
    name: str
    replace_drafts: bool = False


def normalize_requested_name(requested: str) -> str:
    return requested or DRAFT_PLAN_NAME


def candidate_names(name: str) -> Iterator[str]:
    yield name
    suffix = 2
    while True:
        yield f"{name}.{suffix}"
        suffix += 1


def resolve_plan_name(
    requested: str,
    name_exists: Callable[[str], bool],
    *,
    max_attempts: int,
) -> NameResolution:
    """
    Pick the name a new plan will get.

    Args:
        requested: name from the request body, possibly empty
        name_exists: existence check scoped to (project_id, owner_id)
        max_attempts: number of candidates checked before giving up

    Raises:
        PlanNameExhaustedError: every candidate within max_attempts is taken
    """
    name = normalize_requested_name(requested)
    if name == DRAFT_PLAN_NAME:
        return NameResolution(name=DRAFT_PLAN_NAME, replace_drafts=True)

    for attempt, candidate in enumerate(candidate_names(name), start=1):
        if attempt > max_attempts:
            break
        if not name_exists(candidate):
            return NameResolution(name=candidate)

    raise PlanNameExhaustedError(
        f"Could not find a free plan name for '{name}' after {max_attempts} attempts",
        name=name,
        attempts=max_attempts,
    )

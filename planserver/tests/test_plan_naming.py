"""
planserver/tests/test_plan_naming.py
Tests for plan name resolution (pure, no database).
"""

import pytest

from planserver.core.errors import PlanNameExhaustedError
from planserver.features.plans.naming import (
    NameResolution,
    candidate_names,
    normalize_requested_name,
    resolve_plan_name,
)


def exists_in(taken):
    return lambda name: name in taken


class TestResolvePlanName:
    def test_free_name_is_kept(self):
        result = resolve_plan_name("refactor", exists_in(set()), max_attempts=100)
        assert result == NameResolution(name="refactor")
        assert result.replace_drafts is False

    def test_first_collision_gets_suffix_two(self):
        result = resolve_plan_name("refactor", exists_in({"refactor"}), max_attempts=100)
        assert result.name == "refactor.2"

    @pytest.mark.parametrize("k", [1, 2, 5])
    def test_contiguous_collisions_get_next_suffix(self, k):
        taken = {"refactor"} | {f"refactor.{i}" for i in range(2, k + 1)}
        result = resolve_plan_name("refactor", exists_in(taken), max_attempts=100)
        assert result.name == f"refactor.{k + 1}"

    def test_gap_in_suffixes_is_filled(self):
        taken = {"refactor", "refactor.3"}
        result = resolve_plan_name("refactor", exists_in(taken), max_attempts=100)
        assert result.name == "refactor.2"

    def test_checks_names_in_order(self):
        checked = []

        def name_exists(name):
            checked.append(name)
            return len(checked) < 3

        resolve_plan_name("x", name_exists, max_attempts=100)
        assert checked == ["x", "x.2", "x.3"]

    @pytest.mark.parametrize("requested", ["", "draft"])
    def test_draft_names_skip_collision_loop(self, requested):
        def name_exists(name):
            raise AssertionError("draft names must not be checked")

        result = resolve_plan_name(requested, name_exists, max_attempts=100)
        assert result == NameResolution(name="draft", replace_drafts=True)

    def test_exhausted_after_max_attempts(self):
        with pytest.raises(PlanNameExhaustedError) as exc_info:
            resolve_plan_name("busy", lambda name: True, max_attempts=3)

        error = exc_info.value
        assert error.status_code == 409
        assert error.code == "plan_name_exhausted"
        assert error.details() == {"plan_name_exhausted": {"name": "busy", "attempts": 3}}

    def test_last_allowed_attempt_can_succeed(self):
        taken = {"busy", "busy.2"}
        result = resolve_plan_name("busy", exists_in(taken), max_attempts=3)
        assert result.name == "busy.3"


def test_normalize_requested_name():
    assert normalize_requested_name("") == "draft"
    assert normalize_requested_name("feature") == "feature"


def test_candidate_names_sequence():
    gen = candidate_names("plan")
    assert [next(gen) for _ in range(4)] == ["plan", "plan.2", "plan.3", "plan.4"]

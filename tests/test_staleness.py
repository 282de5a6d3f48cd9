from __future__ import annotations

from datetime import timedelta

import pytest

from regscore.scoring.score import STALENESS_GRACE, calculate_score, is_stale

from conftest import SPEC, T0, integer_definition, put_definition, put_lint


@pytest.mark.parametrize(
    "dependency_offset,expected",
    [(-10, False), (-3, False), (-1, True), (0, True), (5, True)],
)
def test_is_stale_grace_window(dependency_offset: int, expected: bool) -> None:
    result_time = T0
    assert is_stale(result_time + timedelta(seconds=dependency_offset), result_time) is expected


def test_missing_timestamps_are_stale() -> None:
    assert is_stale(None, T0)
    assert is_stale(T0, None)


def test_grace_is_two_seconds() -> None:
    assert STALENESS_GRACE == timedelta(seconds=2)


def test_second_run_is_a_no_op(client, clock, spec_resource) -> None:
    definition = put_definition(client, integer_definition())
    put_lint(client)
    clock.advance(10)

    first = calculate_score(client, definition, spec_resource)
    stored = client.get_artifact(f"{SPEC}/artifacts/score-lint-errors")
    clock.advance(10)
    second = calculate_score(client, definition, spec_resource)

    assert first is not None
    assert second is None
    assert client.get_artifact(f"{SPEC}/artifacts/score-lint-errors").update_time == stored.update_time


def test_dependency_written_just_before_score_is_stale(client, clock, spec_resource) -> None:
    definition = put_definition(client, integer_definition())
    clock.advance(10)
    put_lint(client, problems=1)
    clock.advance(1)
    calculate_score(client, definition, spec_resource)

    # the lint report is within the grace window of the score
    clock.advance(10)
    again = calculate_score(client, definition, spec_resource)
    assert again is not None


def test_dependency_outside_grace_window_is_fresh(client, clock, spec_resource) -> None:
    definition = put_definition(client, integer_definition())
    clock.advance(10)
    put_lint(client, problems=1)
    clock.advance(3)
    calculate_score(client, definition, spec_resource)

    clock.advance(10)
    assert calculate_score(client, definition, spec_resource) is None


def test_updated_dependency_triggers_recompute(client, clock, spec_resource) -> None:
    definition = put_definition(client, integer_definition())
    put_lint(client, problems=1)
    clock.advance(10)
    calculate_score(client, definition, spec_resource)

    clock.advance(10)
    put_lint(client, problems=5)
    clock.advance(10)
    score = calculate_score(client, definition, spec_resource)

    assert score is not None
    assert score.value.value == 5


def test_updated_definition_triggers_recompute(client, clock, spec_resource) -> None:
    put_definition(client, integer_definition())
    put_lint(client, problems=1)
    clock.advance(10)
    calculate_score(client, client.get_artifact("projects/demo/locations/global/artifacts/lint-errors"), spec_resource)

    clock.advance(10)
    updated = put_definition(client, integer_definition(displayName="Lint errors (v2)"))
    clock.advance(10)
    score = calculate_score(client, updated, spec_resource)

    assert score is not None
    assert score.display_name == "Lint errors (v2)"


def test_take_action_forces_upload(client, clock, spec_resource) -> None:
    definition = put_definition(client, integer_definition())
    put_lint(client)
    clock.advance(10)
    calculate_score(client, definition, spec_resource)
    clock.advance(10)

    assert calculate_score(client, definition, spec_resource, take_action=True) is not None

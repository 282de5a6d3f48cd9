from __future__ import annotations

import pytest

from regscore.errors import EvaluationError
from regscore.registry.artifact import Artifact
from regscore.scoring.models import ResourcePattern, ScoreCardDefinition, Severity
from regscore.scoring.schemas import decode_message
from regscore.scoring.score import calculate_score
from regscore.scoring.scorecard import SCORE_CARD_MIME_TYPE, calculate_score_card

from conftest import LINT_MIME, SPEC, integer_definition, lint_payload, put_definition, put_lint

CARD_NAME = f"{SPEC}/artifacts/scorecard-quality"


def _card_definition(*patterns: str) -> ScoreCardDefinition:
    return ScoreCardDefinition(
        id="quality",
        display_name="Quality",
        target_resource=ResourcePattern(pattern="apis/-/versions/-/specs/-"),
        score_patterns=list(patterns),
    )


@pytest.fixture
def scored(client, clock, spec_resource):
    """Two stored scores on the openapi resource: lint-errors (1 problem) and lint-warnings (8 problems)."""
    put_lint(client, problems=1)
    put_lint(client, problems=8, artifact_id="lint-warnings")
    errors = put_definition(client, integer_definition("lint-errors"))
    warnings = put_definition(
        client,
        integer_definition(
            "lint-warnings",
            scoreFormula={
                "artifact": {"pattern": "$resource.spec/artifacts/lint-warnings"},
                "scoreExpression": "size(files[0].problems)",
            },
        ),
    )
    clock.advance(10)
    calculate_score(client, errors, spec_resource)
    calculate_score(client, warnings, spec_resource)
    clock.advance(10)
    return spec_resource


def test_scores_in_declared_order(client, scored) -> None:
    definition = put_definition(
        client,
        _card_definition("$resource.spec/artifacts/score-lint-warnings", "$resource.spec/artifacts/score-lint-errors"),
    )

    card = calculate_score_card(client, definition, scored)

    assert card is not None
    assert [s.id for s in card.scores] == ["score-lint-warnings", "score-lint-errors"]
    assert [s.severity for s in card.scores] == [Severity.ALERT, Severity.OK]
    assert card.id == "scorecard-quality"
    assert card.definition_name == "projects/demo/locations/global/artifacts/quality"


def test_stored_with_scorecard_mime_type(client, scored) -> None:
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/score-lint-errors"))
    card = calculate_score_card(client, definition, scored)

    stored = client.get_artifact(CARD_NAME)
    assert stored.mime_type == SCORE_CARD_MIME_TYPE
    message_type, data = decode_message(stored.mime_type, stored.contents)
    assert message_type.endswith(".ScoreCard")
    assert data["displayName"] == "Quality"
    assert len(data["scores"]) == len(card.scores) == 1


def test_current_scorecard_is_not_rewritten(client, clock, scored) -> None:
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/score-lint-errors"))
    clock.advance(10)
    assert calculate_score_card(client, definition, scored) is not None
    clock.advance(10)
    assert calculate_score_card(client, definition, scored) is None


def test_new_score_refreshes_card(client, clock, scored) -> None:
    errors = client.get_artifact("projects/demo/locations/global/artifacts/lint-errors")
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/score-lint-errors"))
    clock.advance(10)
    calculate_score_card(client, definition, scored)

    clock.advance(10)
    put_lint(client, problems=5)
    clock.advance(10)
    calculate_score(client, errors, scored)
    clock.advance(10)

    card = calculate_score_card(client, definition, scored)
    assert card is not None
    assert card.scores[0].severity == Severity.WARNING


def test_dry_run(client, scored) -> None:
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/score-lint-errors"))
    assert calculate_score_card(client, definition, scored, dry_run=True) is not None
    assert client.list_artifacts(CARD_NAME) == []


def test_missing_score_fails(client, scored) -> None:
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/score-missing"))
    with pytest.raises(EvaluationError, match="failed to fetch artifact"):
        calculate_score_card(client, definition, scored)
    assert client.list_artifacts(CARD_NAME) == []


def test_non_score_artifact_fails(client, scored) -> None:
    client.set_artifact(Artifact(name=f"{SPEC}/artifacts/not-a-score", mime_type=LINT_MIME, contents=lint_payload(0)))
    definition = put_definition(client, _card_definition("$resource.spec/artifacts/not-a-score"))
    with pytest.raises(EvaluationError, match="not a Score"):
        calculate_score_card(client, definition, scored)

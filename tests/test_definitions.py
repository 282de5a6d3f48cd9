from __future__ import annotations

from pathlib import Path

import pytest

from regscore.errors import PatternError
from regscore.names import parse_name, parse_resource_pattern
from regscore.scoring.definitions import (
    fetch_score_card_definitions,
    fetch_score_definitions,
    find_common_pattern,
    generate_combined_pattern,
    load_definition_file,
    match_resource_with_target,
    parse_definition,
)
from regscore.scoring.models import IntegerType, ResourcePattern, ScoreCardDefinition, ScoreDefinition, Severity

from conftest import SPEC, integer_definition, put_definition

ENVELOPE = """\
apiVersion: apigeeregistry/v1
kind: ScoreDefinition
metadata:
  name: lint-errors
data:
  display_name: Lint errors
  target_resource:
    pattern: apis/-/versions/-/specs/-
  score_formula:
    artifact:
      pattern: $resource.spec/artifacts/lint-spectral
    score_expression: size(files[0].problems)
  integer:
    min_value: 0
    max_value: 10
    thresholds:
      - severity: OK
        range: {min: 0, max: 3}
      - severity: WARNING
        range: {min: 4, max: 10}
---
apiVersion: apigeeregistry/v1
kind: ScoreCardDefinition
metadata:
  name: quality
data:
  targetResource:
    pattern: apis/-/versions/-/specs/-
  scorePatterns:
    - $resource.spec/artifacts/score-lint-errors
"""


def test_load_yaml_envelopes(tmp_path: Path) -> None:
    path = tmp_path / "definitions.yaml"
    path.write_text(ENVELOPE, encoding="utf-8")

    score_def, card_def = load_definition_file(path)

    assert isinstance(score_def, ScoreDefinition)
    assert score_def.id == "lint-errors"
    assert score_def.display_name == "Lint errors"
    assert score_def.score_formula is not None
    assert score_def.score_formula.artifact.pattern == "$resource.spec/artifacts/lint-spectral"
    assert isinstance(score_def.type, IntegerType)
    assert score_def.type.max_value == 10
    assert [t.severity for t in score_def.type.thresholds] == [Severity.OK, Severity.WARNING]

    assert isinstance(card_def, ScoreCardDefinition)
    assert card_def.id == "quality"
    assert card_def.score_patterns == ["$resource.spec/artifacts/score-lint-errors"]


def test_load_bare_json(tmp_path: Path) -> None:
    path = tmp_path / "quality.json"
    path.write_text(
        '{"kind": "ScoreCardDefinition", "id": "quality", "targetResource": {"pattern": "apis/-"}, '
        '"scorePatterns": ["$resource.api/artifacts/score-x"]}',
        encoding="utf-8",
    )
    (definition,) = load_definition_file(path)
    assert definition.target_resource == ResourcePattern(pattern="apis/-")


def test_unknown_kind(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("kind: Linter\nid: x\n", encoding="utf-8")
    with pytest.raises(ValueError, match="unknown definition kind"):
        load_definition_file(path)


def test_unknown_field(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("kind: ScoreCardDefinition\nid: x\nscorePatternz: []\n", encoding="utf-8")
    with pytest.raises(ValueError, match="document 1"):
        load_definition_file(path)


def test_both_formulas_rejected() -> None:
    document = {
        "kind": "ScoreDefinition",
        "id": "x",
        "scoreFormula": {"scoreExpression": "1"},
        "rollupFormula": {"rollupExpression": "1"},
    }
    with pytest.raises(ValueError, match="only one of"):
        parse_definition(document)


def test_missing_id_rejected() -> None:
    with pytest.raises(ValueError, match="missing an id"):
        parse_definition({"kind": "ScoreCardDefinition"})


def test_definition_artifact_round_trip(client) -> None:
    stored = put_definition(client, integer_definition())
    assert stored.name == "projects/demo/locations/global/artifacts/lint-errors"

    (fetched,) = fetch_score_definitions(client, "projects/demo")
    assert fetched.name == stored.name
    assert fetched.contents == stored.contents
    assert fetch_score_card_definitions(client, "projects/demo") == []


@pytest.mark.parametrize(
    "pattern,resource,expected",
    [
        ("apis/-/versions/-/specs/-", SPEC, True),
        ("apis/petstore/versions/-/specs/-", SPEC, True),
        ("apis/bookstore/versions/-/specs/-", SPEC, False),
        ("apis/-/versions/-", SPEC, False),
        ("apis/-", "projects/demo/locations/global/apis/petstore", True),
    ],
)
def test_match_resource_with_target(pattern: str, resource: str, expected: bool) -> None:
    assert match_resource_with_target(ResourcePattern(pattern=pattern), parse_name(resource), "projects/demo") is expected


def test_find_common_pattern() -> None:
    assert find_common_pattern("-", "petstore") == "petstore"
    assert find_common_pattern("petstore", "-") == "petstore"
    assert find_common_pattern("petstore", "petstore") == "petstore"
    with pytest.raises(PatternError):
        find_common_pattern("petstore", "bookstore")
    with pytest.raises(PatternError):
        find_common_pattern("", "-")


def test_generate_combined_pattern() -> None:
    target = ResourcePattern(pattern="apis/petstore/versions/-/specs/-", filter="mime_type.contains('openapi')")
    pattern, filter_expr = generate_combined_pattern(
        target,
        parse_resource_pattern("projects/demo/locations/global/apis/-/versions/1.0.0/specs/-"),
        "name.contains('x')",
    )
    assert pattern == "projects/demo/locations/global/apis/petstore/versions/1.0.0/specs/-"
    assert filter_expr == "(mime_type.contains('openapi')) && (name.contains('x'))"


def test_generate_combined_pattern_mismatches() -> None:
    target = ResourcePattern(pattern="apis/petstore/versions/-/specs/-")
    with pytest.raises(PatternError):
        generate_combined_pattern(target, parse_resource_pattern("projects/demo/locations/global/apis/bookstore/versions/-/specs/-"))
    with pytest.raises(PatternError):
        generate_combined_pattern(target, parse_resource_pattern("projects/demo/locations/global/apis/-/versions/-"))

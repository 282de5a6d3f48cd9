from __future__ import annotations

from regscore.registry.artifact import Artifact
from regscore.scoring import batch
from regscore.scoring.batch import compute_score_cards, compute_scores
from regscore.scoring.models import ResourcePattern, Score, ScoreCard, ScoreCardDefinition

from conftest import COMPLEXITY_MIME, LINT_MIME, VERSION, complexity_payload, integer_definition, put_definition, put_lint

SPECS = "projects/demo/locations/global/apis/-/versions/-/specs/-"
OTHER_SPEC = "projects/demo/locations/global/apis/bookstore/versions/2.0.0/specs/openapi"


def _setup(client, clock) -> None:
    client.add_resource(f"{VERSION}/specs/openapi")
    client.add_resource(OTHER_SPEC)
    client.add_resource("projects/demo/locations/global/apis/petstore")
    put_definition(client, integer_definition())
    put_lint(client, problems=2)
    put_lint(client, resource=OTHER_SPEC, problems=4)
    clock.advance(10)


def test_scores_every_matching_resource(client, clock) -> None:
    _setup(client, clock)

    report = compute_scores(client, SPECS, jobs=4)

    assert report.failures == []
    assert len(report.updated) == 2
    values = sorted(o.result.value.value for o in report.updated if isinstance(o.result, Score))
    assert values == [2, 4]


def test_second_run_reports_current(client, clock) -> None:
    _setup(client, clock)
    compute_scores(client, SPECS)
    clock.advance(10)

    report = compute_scores(client, SPECS)
    assert report.updated == []
    assert len(report.current) == 2


def test_failures_are_isolated(client, clock) -> None:
    _setup(client, clock)
    # malformed lint payload on one spec only
    client.set_artifact(Artifact(name=f"{OTHER_SPEC}/artifacts/lint-spectral", mime_type=LINT_MIME, contents=b"not json"))

    report = compute_scores(client, SPECS)

    assert len(report.updated) == 1
    assert len(report.failures) == 1
    assert report.failures[0].resource == OTHER_SPEC
    assert "failed decoding" in report.failures[0].error


def test_division_by_zero_fails_only_its_resource(client, clock) -> None:
    _setup(client, clock)
    for resource, posts in ((f"{VERSION}/specs/openapi", 1), (OTHER_SPEC, 0)):
        client.set_artifact(
            Artifact(
                name=f"{resource}/artifacts/complexity",
                mime_type=COMPLEXITY_MIME,
                contents=complexity_payload(getCount=1, postCount=posts),
            )
        )
    put_definition(
        client,
        integer_definition(
            "get-post-ratio",
            scoreFormula={
                "artifact": {"pattern": "$resource.spec/artifacts/complexity"},
                "scoreExpression": "double(getCount) / double(postCount)",
            },
        ),
    )
    clock.advance(10)

    report = compute_scores(client, SPECS)

    failures = [o for o in report.failures if o.definition.endswith("/get-post-ratio")]
    assert [o.resource for o in failures] == [OTHER_SPEC]
    assert "not a finite number" in failures[0].error
    assert len(report.updated) == 3
    assert client.list_artifacts(f"{OTHER_SPEC}/artifacts/score-get-post-ratio") == []


def test_unexpected_errors_are_isolated(client, clock, monkeypatch) -> None:
    _setup(client, clock)
    calculate = batch.calculate_score

    def flaky(client, artifact, resource, **kwargs):
        if str(resource) == OTHER_SPEC:
            raise RuntimeError("registry connection reset")
        return calculate(client, artifact, resource, **kwargs)

    monkeypatch.setattr(batch, "calculate_score", flaky)

    report = compute_scores(client, SPECS)

    assert len(report.updated) == 1
    assert [(o.resource, o.error) for o in report.failures] == [(OTHER_SPEC, "registry connection reset")]


def test_input_pattern_narrows_targets(client, clock) -> None:
    _setup(client, clock)

    report = compute_scores(client, "projects/demo/locations/global/apis/bookstore/versions/-/specs/-")

    assert [o.resource for o in report.outcomes] == [OTHER_SPEC]


def test_filter_narrows_resources(client, clock) -> None:
    _setup(client, clock)

    report = compute_scores(client, SPECS, filter="name.contains('petstore')")

    assert [o.resource for o in report.outcomes] == [f"{VERSION}/specs/openapi"]


def test_non_matching_definitions_are_skipped(client, clock) -> None:
    _setup(client, clock)

    report = compute_scores(client, "projects/demo/locations/global/apis/-")

    assert report.outcomes == []


def test_dry_run_writes_nothing(client, clock) -> None:
    _setup(client, clock)

    report = compute_scores(client, SPECS, dry_run=True)

    assert len(report.updated) == 2
    assert client.list_artifacts(f"{SPECS}/artifacts/score-lint-errors") == []


def test_score_cards(client, clock) -> None:
    _setup(client, clock)
    compute_scores(client, SPECS)
    put_definition(
        client,
        ScoreCardDefinition(
            id="quality",
            target_resource=ResourcePattern(pattern="apis/-/versions/-/specs/-"),
            score_patterns=["$resource.spec/artifacts/score-lint-errors"],
        ),
    )
    clock.advance(10)

    report = compute_score_cards(client, SPECS, jobs=2)

    assert report.failures == []
    assert len(report.updated) == 2
    assert all(isinstance(o.result, ScoreCard) and len(o.result.scores) == 1 for o in report.updated)

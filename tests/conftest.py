"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from regscore.registry.artifact import Artifact
from regscore.registry.client import MemoryArtifactClient
from regscore.scoring.definitions import definition_artifact
from regscore.scoring.models import ScoreCardDefinition, ScoreDefinition
from regscore.scoring.schemas import METRICS, STYLE

PROJECT = "projects/demo"
API = "projects/demo/locations/global/apis/petstore"
VERSION = f"{API}/versions/1.0.0"
SPEC = f"{VERSION}/specs/openapi"

LINT_MIME = f"application/octet-stream;type={STYLE}.Lint"
COMPLEXITY_MIME = f"application/octet-stream;type={METRICS}.Complexity"

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for deterministic update times."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


def lint_payload(problem_count: int) -> bytes:
    problems = [{"message": f"problem {i}", "ruleId": "operation-tags"} for i in range(problem_count)]
    return json.dumps({"name": "spectral", "files": [{"filePath": "openapi.yaml", "problems": problems}]}).encode()


def complexity_payload(**counts: int) -> bytes:
    return json.dumps(counts).encode()


def integer_definition(definition_id: str = "lint-errors", **overrides) -> ScoreDefinition:
    data = {
        "id": definition_id,
        "kind": "ScoreDefinition",
        "displayName": "Lint errors",
        "targetResource": {"pattern": "apis/-/versions/-/specs/-"},
        "scoreFormula": {
            "artifact": {"pattern": "$resource.spec/artifacts/lint-spectral"},
            "scoreExpression": "size(files[0].problems)",
        },
        "integer": {
            "minValue": 0,
            "maxValue": 10,
            "thresholds": [
                {"severity": "OK", "range": {"min": 0, "max": 3}},
                {"severity": "WARNING", "range": {"min": 4, "max": 6}},
                {"severity": "ALERT", "range": {"min": 7, "max": 10}},
            ],
        },
    }
    data.update(overrides)
    return ScoreDefinition.from_dict(data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(clock: FakeClock) -> MemoryArtifactClient:
    return MemoryArtifactClient(clock=clock)


@pytest.fixture
def spec_resource(client: MemoryArtifactClient):
    return client.add_resource(SPEC)


def put_lint(client: MemoryArtifactClient, resource: str = SPEC, problems: int = 1, artifact_id: str = "lint-spectral") -> Artifact:
    return client.set_artifact(Artifact(name=f"{resource}/artifacts/{artifact_id}", mime_type=LINT_MIME, contents=lint_payload(problems)))


def put_definition(client: MemoryArtifactClient, definition: ScoreDefinition | ScoreCardDefinition) -> Artifact:
    return client.set_artifact(definition_artifact(PROJECT, definition))

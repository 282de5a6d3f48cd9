from __future__ import annotations

import json
from pathlib import Path

import pytest

from regscore.errors import NotFoundError, PatternError
from regscore.registry.artifact import Artifact
from regscore.registry.local import LocalRegistry
from regscore.scoring.definitions import definition_artifact
from regscore.scoring.score import calculate_score

from conftest import LINT_MIME, SPEC, FakeClock, integer_definition, lint_payload


@pytest.fixture
def registry(tmp_path: Path, clock: FakeClock) -> LocalRegistry:
    return LocalRegistry(tmp_path / "registry", clock=clock)


def test_artifact_round_trip(registry: LocalRegistry, clock: FakeClock) -> None:
    name = f"{SPEC}/artifacts/lint-spectral"
    stored = registry.set_artifact(Artifact(name=name, mime_type=LINT_MIME, contents=lint_payload(2), labels={"tool": "spectral"}))

    loaded = registry.get_artifact(name)
    assert loaded == stored
    assert loaded.update_time == clock.now
    assert registry.get_artifact(name, with_contents=False).contents == b""


def test_artifact_file_layout(registry: LocalRegistry) -> None:
    name = f"{SPEC}/artifacts/lint-spectral"
    registry.set_artifact(Artifact(name=name, mime_type=LINT_MIME, contents=b"\x00\x01"))

    path = registry.root / f"{name}.artifact.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["contents"]["_type"] == "binary"
    assert data["contents"]["data"] == "AAE="
    assert not path.with_name(path.name + ".tmp").exists()


def test_missing_artifact(registry: LocalRegistry) -> None:
    with pytest.raises(NotFoundError):
        registry.get_artifact(f"{SPEC}/artifacts/nope")


def test_invalid_artifact_name(registry: LocalRegistry) -> None:
    with pytest.raises(PatternError):
        registry.set_artifact(Artifact(name="apis/petstore/artifacts/x"))


def test_list_artifacts_with_pattern_and_filter(registry: LocalRegistry) -> None:
    for api in ("petstore", "bookstore"):
        base = f"projects/demo/locations/global/apis/{api}/versions/1.0.0/specs/openapi"
        registry.set_artifact(Artifact(name=f"{base}/artifacts/lint-spectral", mime_type=LINT_MIME, contents=b"{}"))
        registry.set_artifact(Artifact(name=f"{base}/artifacts/notes", mime_type="text/plain", contents=b"hi"))

    pattern = "projects/demo/locations/global/apis/-/versions/-/specs/-/artifacts/-"
    assert len(registry.list_artifacts(pattern)) == 4

    linted = registry.list_artifacts(pattern, filter=f"mime_type == '{LINT_MIME}'")
    assert [a.name.split("/")[5] for a in linted] == ["bookstore", "petstore"]
    assert all(a.contents == b"" for a in linted)


def test_resources(registry: LocalRegistry) -> None:
    registry.add_resource(SPEC)
    registry.add_resource("projects/demo/locations/global/apis/bookstore/versions/2.0.0/specs/openapi")
    registry.add_resource("projects/demo/locations/global/apis/petstore")

    specs = registry.list_resources("projects/demo/locations/global/apis/-/versions/-/specs/-")
    assert [str(r) for r in specs] == [
        "projects/demo/locations/global/apis/bookstore/versions/2.0.0/specs/openapi",
        SPEC,
    ]
    petstore = registry.list_resources("projects/demo/locations/global/apis/-/versions/-/specs/-", filter="name.contains('petstore')")
    assert [str(r) for r in petstore] == [SPEC]

    with pytest.raises(PatternError):
        registry.add_resource(f"{SPEC}/artifacts/lint")


def test_scores_against_local_registry(registry: LocalRegistry, clock: FakeClock) -> None:
    resource = registry.add_resource(SPEC)
    definition = registry.set_artifact(definition_artifact("projects/demo", integer_definition()))
    registry.set_artifact(Artifact(name=f"{SPEC}/artifacts/lint-spectral", mime_type=LINT_MIME, contents=lint_payload(2)))
    clock.advance(10)

    score = calculate_score(registry, definition, resource)
    assert score is not None
    assert registry.get_artifact(f"{SPEC}/artifacts/score-lint-errors").update_time == clock.now

    clock.advance(10)
    assert calculate_score(registry, definition, resource) is None

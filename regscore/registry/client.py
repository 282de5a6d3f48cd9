"""
Artifact client boundary and an in-memory implementation.

The engines only ever talk to a registry through :class:`ArtifactClient`.
:class:`MemoryArtifactClient` backs the tests and short-lived runs;
:class:`~regscore.registry.local.LocalRegistry` persists to disk.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Protocol

from ..cel import matches_filter
from ..errors import NotFoundError, PatternError
from ..names import ResourceInstance, ResourceKind, name_matches, parse_name, parse_resource_pattern
from .artifact import Artifact

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactClient(Protocol):
    def get_artifact(self, name: str, with_contents: bool = True) -> Artifact: ...

    def set_artifact(self, artifact: Artifact) -> Artifact: ...

    def list_artifacts(self, pattern: str, filter: str = "", with_contents: bool = False) -> list[Artifact]: ...

    def list_resources(self, pattern: str, filter: str = "") -> list[ResourceInstance]: ...


def resource_fields(resource: ResourceInstance) -> dict[str, object]:
    """Fields exposed to resource list filters."""
    return {
        "name": str(resource.name),
        "kind": resource.name.kind.value,
        "update_time": resource.update_time,
    }


def select_artifacts(artifacts: list[Artifact], pattern: str, filter: str, with_contents: bool) -> list[Artifact]:
    """Apply a name pattern and a filter to a list of artifacts."""
    parsed = parse_resource_pattern(pattern)
    if parsed.kind != ResourceKind.ARTIFACT:
        raise PatternError(f"not an artifact pattern: {pattern}")

    out: list[Artifact] = []
    for artifact in artifacts:
        if not name_matches(parsed, parse_name(artifact.name)):
            continue
        if not matches_filter(filter, artifact.metadata()):
            continue
        out.append(artifact if with_contents else artifact.without_contents())
    out.sort(key=lambda a: a.name)
    return out


def select_resources(resources: list[ResourceInstance], pattern: str, filter: str) -> list[ResourceInstance]:
    parsed = parse_resource_pattern(pattern)
    out = [
        r for r in resources if name_matches(parsed, r.name) and matches_filter(filter, resource_fields(r))
    ]
    out.sort(key=lambda r: str(r.name))
    return out


class MemoryArtifactClient:
    """Dict-backed registry. ``clock`` stamps every write."""

    def __init__(self, clock: Clock | None = None):
        self.clock: Clock = clock or utcnow
        self._artifacts: dict[str, Artifact] = {}
        self._resources: dict[str, ResourceInstance] = {}
        self._lock = threading.Lock()

    def add_resource(self, name: str) -> ResourceInstance:
        parsed = parse_name(name)
        if parsed.kind == ResourceKind.ARTIFACT:
            raise PatternError(f"artifacts are not resources: {name}")
        instance = ResourceInstance(name=parsed, update_time=self.clock())
        with self._lock:
            self._resources[str(parsed)] = instance
        return instance

    def get_artifact(self, name: str, with_contents: bool = True) -> Artifact:
        with self._lock:
            artifact = self._artifacts.get(name)
        if artifact is None:
            raise NotFoundError(f"artifact not found: {name}")
        return artifact if with_contents else artifact.without_contents()

    def set_artifact(self, artifact: Artifact) -> Artifact:
        parse_name(artifact.name)
        stored = replace(artifact, update_time=self.clock())
        with self._lock:
            self._artifacts[artifact.name] = stored
        return stored

    def list_artifacts(self, pattern: str, filter: str = "", with_contents: bool = False) -> list[Artifact]:
        with self._lock:
            artifacts = list(self._artifacts.values())
        return select_artifacts(artifacts, pattern, filter, with_contents)

    def list_resources(self, pattern: str, filter: str = "") -> list[ResourceInstance]:
        with self._lock:
            resources = list(self._resources.values())
        return select_resources(resources, pattern, filter)

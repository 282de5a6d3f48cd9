"""
Filesystem-backed registry.

Each artifact is one JSON document stored under its own name:

    <root>/projects/demo/locations/global/apis/petstore/artifacts/score-lint.artifact.json

Resources are marked by a ``resource.json`` file in their directory.
Binary contents are wrapped as base64 so documents stay printable.
"""

from __future__ import annotations

import base64
import json
import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from ..errors import NotFoundError, PatternError
from ..names import ResourceInstance, ResourceKind, parse_name
from .artifact import Artifact
from .client import Clock, select_artifacts, select_resources, utcnow

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".artifact.json"
RESOURCE_FILE = "resource.json"


def _encode_contents(contents: bytes) -> dict[str, Any]:
    return {
        "_type": "binary",
        "_encoding": "base64",
        "data": base64.b64encode(contents).decode("ascii"),
    }


def _decode_contents(data: Any) -> bytes:
    if isinstance(data, dict) and data.get("_type") == "binary":
        return base64.b64decode(data["data"])
    if isinstance(data, str):
        return data.encode("utf-8")
    raise ValueError(f"unrecognized contents encoding: {data!r}")


def _write_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    temp_path.replace(path)


class LocalRegistry:
    """A directory tree implementing the artifact client protocol."""

    def __init__(self, root: Path, clock: Clock | None = None):
        self.root = root
        self.clock: Clock = clock or utcnow
        self._lock = threading.Lock()

    def _artifact_path(self, name: str) -> Path:
        return self.root / f"{name}{ARTIFACT_SUFFIX}"

    def _resource_path(self, name: str) -> Path:
        return self.root / name / RESOURCE_FILE

    def _read_artifact(self, path: Path) -> Artifact:
        data = json.loads(path.read_text(encoding="utf-8"))
        update_time = data.get("update_time")
        return Artifact(
            name=data["name"],
            mime_type=data.get("mime_type", ""),
            contents=_decode_contents(data.get("contents", _encode_contents(b""))),
            update_time=datetime.fromisoformat(update_time) if update_time else None,
            labels=dict(data.get("labels") or {}),
        )

    # --- resources --------------------------------------------------------

    def add_resource(self, name: str) -> ResourceInstance:
        parsed = parse_name(name)
        if parsed.kind == ResourceKind.ARTIFACT:
            raise PatternError(f"artifacts are not resources: {name}")
        instance = ResourceInstance(name=parsed, update_time=self.clock())
        with self._lock:
            _write_atomic(
                self._resource_path(str(parsed)),
                {"name": str(parsed), "update_time": instance.update_time.isoformat()},
            )
        logger.debug("registered resource %s", parsed)
        return instance

    def list_resources(self, pattern: str, filter: str = "") -> list[ResourceInstance]:
        resources: list[ResourceInstance] = []
        if self.root.exists():
            for path in self.root.rglob(RESOURCE_FILE):
                data = json.loads(path.read_text(encoding="utf-8"))
                resources.append(
                    ResourceInstance(
                        name=parse_name(data["name"]),
                        update_time=datetime.fromisoformat(data["update_time"]),
                    )
                )
        return select_resources(resources, pattern, filter)

    # --- artifacts --------------------------------------------------------

    def get_artifact(self, name: str, with_contents: bool = True) -> Artifact:
        path = self._artifact_path(name)
        if not path.exists():
            raise NotFoundError(f"artifact not found: {name}")
        artifact = self._read_artifact(path)
        return artifact if with_contents else artifact.without_contents()

    def set_artifact(self, artifact: Artifact) -> Artifact:
        parse_name(artifact.name)
        stored = replace(artifact, update_time=self.clock())
        payload = {
            "name": stored.name,
            "mime_type": stored.mime_type,
            "update_time": stored.update_time.isoformat() if stored.update_time else None,
            "labels": stored.labels,
            "contents": _encode_contents(stored.contents),
        }
        with self._lock:
            _write_atomic(self._artifact_path(stored.name), payload)
        logger.debug("stored artifact %s (%s)", stored.name, stored.mime_type)
        return stored

    def list_artifacts(self, pattern: str, filter: str = "", with_contents: bool = False) -> list[Artifact]:
        artifacts: list[Artifact] = []
        if self.root.exists():
            for path in self.root.rglob(f"*{ARTIFACT_SUFFIX}"):
                artifacts.append(self._read_artifact(path))
        return select_artifacts(artifacts, pattern, filter, with_contents)

"""
Loading, storing and selecting score and scorecard definitions.

Definitions live as project-level artifacts:

    projects/{p}/locations/global/artifacts/{definition-id}

On disk they are YAML or JSON documents, either bare camelCase mappings
with a ``kind`` field or wrapped in the registry's envelope:

    apiVersion: apigeeregistry/v1
    kind: ScoreDefinition
    metadata:
      name: lint-error
    data:
      targetResource: {pattern: apis/-/versions/-/specs/-}
      ...
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..errors import EvaluationError, PatternError
from ..names import LOCATION, WILDCARD, ResourceKind, ResourceName, parse_resource_pattern
from ..registry.artifact import Artifact, mime_type_for_message_type
from ..registry.client import ArtifactClient
from .models import ResourcePattern, ScoreCardDefinition, ScoreDefinition
from .schemas import SCORE_CARD_DEFINITION_TYPE, SCORE_DEFINITION_TYPE, decode_message, encode_message, normalize

logger = logging.getLogger(__name__)

SCORE_DEFINITION_MIME_TYPE = mime_type_for_message_type(SCORE_DEFINITION_TYPE)
SCORE_CARD_DEFINITION_MIME_TYPE = mime_type_for_message_type(SCORE_CARD_DEFINITION_TYPE)

Definition = ScoreDefinition | ScoreCardDefinition

DEFINITION_KINDS: dict[str, tuple[str, type]] = {
    "ScoreDefinition": (SCORE_DEFINITION_TYPE, ScoreDefinition),
    "ScoreCardDefinition": (SCORE_CARD_DEFINITION_TYPE, ScoreCardDefinition),
}


def _load(artifact: Artifact, expected: str) -> dict[str, Any]:
    try:
        message_type, data = decode_message(artifact.mime_type, artifact.contents)
    except ValueError as exc:
        raise EvaluationError(f"failed decoding definition {artifact.name!r}: {exc}") from exc
    if message_type != expected:
        raise EvaluationError(f"artifact {artifact.name!r} is a {message_type}, expected {expected}")
    return data


def load_score_definition(artifact: Artifact) -> ScoreDefinition:
    try:
        return ScoreDefinition.from_dict(_load(artifact, SCORE_DEFINITION_TYPE))
    except ValueError as exc:
        raise EvaluationError(f"invalid definition {artifact.name!r}: {exc}") from exc


def load_score_card_definition(artifact: Artifact) -> ScoreCardDefinition:
    return ScoreCardDefinition.from_dict(_load(artifact, SCORE_CARD_DEFINITION_TYPE))


def project_location(project: str) -> str:
    """``projects/p`` -> ``projects/p/locations/global`` (idempotent)."""
    suffix = f"/locations/{LOCATION}"
    return project if project.endswith(suffix) else f"{project}{suffix}"


def definition_artifact(project: str, definition: Definition) -> Artifact:
    """Encode ``definition`` as a project-level artifact ready to store."""
    mime_type = SCORE_DEFINITION_MIME_TYPE if isinstance(definition, ScoreDefinition) else SCORE_CARD_DEFINITION_MIME_TYPE
    return Artifact(
        name=f"{project_location(project)}/artifacts/{definition.id}",
        mime_type=mime_type,
        contents=encode_message(definition.to_dict()),
    )


def fetch_score_definitions(client: ArtifactClient, project: str) -> list[Artifact]:
    return client.list_artifacts(
        f"{project_location(project)}/artifacts/-",
        filter=f"mime_type == {json.dumps(SCORE_DEFINITION_MIME_TYPE)}",
        with_contents=True,
    )


def fetch_score_card_definitions(client: ArtifactClient, project: str) -> list[Artifact]:
    return client.list_artifacts(
        f"{project_location(project)}/artifacts/-",
        filter=f"mime_type == {json.dumps(SCORE_CARD_DEFINITION_MIME_TYPE)}",
        with_contents=True,
    )


_ID_FIELDS = ("api_id", "version_id", "spec_id", "deployment_id", "artifact_id")


def match_resource_with_target(target: ResourcePattern, resource: ResourceName, project: str) -> bool:
    """Whether ``resource`` falls under a definition's target pattern.

    Kinds must agree and every non-wildcard id in the pattern must equal
    the resource's id. Raises PatternError for a malformed pattern.
    """
    pattern = parse_resource_pattern(f"{project_location(project)}/{target.pattern}")
    if pattern.kind != resource.kind or pattern.parent_kind != resource.parent_kind:
        return False
    for name in _ID_FIELDS:
        want = getattr(pattern, name)
        if want and want != WILDCARD and want != getattr(resource, name):
            return False
    return True


def find_common_pattern(a: str, b: str) -> str:
    """Narrowest id matching both ``a`` and ``b``; a wildcard yields to a literal."""
    if not a or not b:
        raise PatternError("cannot have empty name")
    if a == b:
        return a
    if a == WILDCARD:
        return b
    if b == WILDCARD:
        return a
    raise PatternError(f"cannot find common pattern between {a!r} and {b!r}")


def generate_common_filter(a: str, b: str) -> str:
    if a == b:
        return a
    if a and b:
        return f"({a}) && ({b})"
    return a or b


def generate_combined_pattern(target: ResourcePattern, input_pattern: ResourceName, input_filter: str = "") -> tuple[str, str]:
    """Intersect a definition's target with a caller-supplied pattern.

    Returns the merged ``(pattern, filter)``; raises PatternError when the
    two cannot select any common resource.
    """
    project = input_pattern.project()
    target_name = parse_resource_pattern(f"{project_location(project)}/{target.pattern}")
    if target_name.kind == ResourceKind.PROJECT:
        raise PatternError(f"unsupported target pattern {target_name}")
    if target_name.kind != input_pattern.kind or target_name.parent_kind != input_pattern.parent_kind:
        raise PatternError(f"input pattern {input_pattern} does not match with target pattern {target_name}")

    merged: dict[str, str] = {}
    for name in _ID_FIELDS:
        a, b = getattr(target_name, name), getattr(input_pattern, name)
        if not a and not b:
            continue
        try:
            merged[name] = find_common_pattern(a, b)
        except PatternError as exc:
            raise PatternError(f"cannot find common pattern between {target_name} and {input_pattern}") from exc

    combined = replace(target_name, revision_id=input_pattern.revision_id or target_name.revision_id, **merged)
    return str(combined), generate_common_filter(target.filter, input_filter)


# --- definition files -----------------------------------------------------


def parse_definition(document: Any) -> Definition:
    """Build a definition from one parsed YAML/JSON document."""
    if not isinstance(document, dict):
        raise ValueError(f"definition must be a mapping, got {type(document).__name__}")

    if "apiVersion" in document:
        kind = document.get("kind", "")
        data = dict(document.get("data") or {})
        metadata = document.get("metadata") or {}
        data.setdefault("id", metadata.get("name", ""))
        data.setdefault("kind", kind)
    else:
        data = dict(document)
        kind = data.get("kind", "")

    if kind not in DEFINITION_KINDS:
        raise ValueError(f"unknown definition kind {kind!r}, expected one of {sorted(DEFINITION_KINDS)}")
    message_type, cls = DEFINITION_KINDS[kind]
    definition = cls.from_dict(normalize(message_type, data))
    if not definition.id:
        raise ValueError(f"{kind} is missing an id")
    return definition


def load_definition_file(path: Path) -> list[Definition]:
    """Read every definition in a ``.yaml``/``.yml``/``.json`` file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        documents = loaded if isinstance(loaded, list) else [loaded]
    else:
        import yaml

        try:
            documents = [d for d in yaml.safe_load_all(text) if d is not None]
        except yaml.YAMLError as exc:
            raise ValueError(f"{path}: {exc}") from exc

    definitions: list[Definition] = []
    for i, document in enumerate(documents):
        try:
            definitions.append(parse_definition(document))
        except ValueError as exc:
            raise ValueError(f"{path} (document {i + 1}): {exc}") from exc
    logger.debug("loaded %d definition(s) from %s", len(definitions), path)
    return definitions

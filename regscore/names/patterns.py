"""
Resource patterns and ``$resource`` back-references.

A pattern is a resource name whose ids may be ``-`` wildcards. Score and
scorecard definitions refer to artifacts relative to the resource being
scored, using a leading ``$resource.<kind>`` token:

    $resource.spec/artifacts/lint-spectral
    $resource.api/versions/-/specs/-

Substitution replaces the token with the matching ancestor of the scored
resource. A pattern with no token is project-relative.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from ..errors import PatternError
from .names import LOCATION, WILDCARD, ResourceKind, ResourceName, parse_collection, parse_name

RESOURCE_KW = "$resource"
DEFAULT_ENTITY = "default"

_ENTITY_RE = re.compile(r"^(\$resource\.(api|version|spec|artifact))(/|$)")


@dataclass(frozen=True)
class ResourceInstance:
    """A concrete resource together with its last update time."""

    name: ResourceName
    update_time: datetime

    def __str__(self) -> str:
        return str(self.name)


def parse_resource_pattern(pattern: str) -> ResourceName:
    """Parse a pattern, trying collection forms before exact names."""
    try:
        return parse_collection(pattern)
    except PatternError:
        pass
    try:
        return parse_name(pattern)
    except PatternError:
        raise PatternError(f"invalid resource pattern: {pattern}") from None


def get_reference_entity_type(pattern: str) -> tuple[str, str]:
    """Return ``(entity, entity_type)`` for the pattern's leading reference.

    ``("", "default")`` means the pattern carries no reference.

    >>> get_reference_entity_type("$resource.api/versions/-")
    ('$resource.api', 'api')
    """
    if not pattern.startswith(RESOURCE_KW):
        return "", DEFAULT_ENTITY
    m = _ENTITY_RE.match(pattern)
    if not m:
        raise PatternError(f"invalid resource pattern: {pattern}")
    return m.group(1), m.group(2)


def get_reference_entity_value(pattern: str, referred: ResourceName) -> str:
    """Return the ancestor of ``referred`` that the pattern's reference names."""
    _, entity_type = get_reference_entity_type(pattern)
    if entity_type == DEFAULT_ENTITY:
        return DEFAULT_ENTITY

    value = {
        "api": referred.api,
        "version": referred.version,
        "spec": referred.spec,
        "artifact": referred.artifact,
    }[entity_type]()
    if not value:
        raise PatternError(f"invalid combination referred: {str(referred)!r} resourcePattern: {pattern!r}")
    return value


def substitute_reference_entity(pattern: str, referred: ResourceName) -> ResourceName:
    """Expand ``$resource`` references in ``pattern`` against ``referred``.

    With ``referred`` = ``projects/demo/locations/global/apis/-/versions/-/specs/-/artifacts/-``,
    ``$resource.spec`` expands to ``projects/demo/locations/global/apis/-/versions/-/specs/-``.
    """
    entity, entity_type = get_reference_entity_type(pattern)
    if entity_type == DEFAULT_ENTITY:
        return parse_resource_pattern(f"{referred.project()}/locations/{LOCATION}/{pattern}")

    value = get_reference_entity_value(pattern, referred)
    return parse_resource_pattern(pattern.replace(entity, value, 1))


def full_resource_name_from_parent(pattern: str, parent: str) -> ResourceName:
    """Derive a concrete name by swapping the pattern's parent for ``parent``.

    ``projects/demo/locations/global/apis/-/versions/-/specs/openapi`` with parent
    ``projects/demo/locations/global/apis/petstore/versions/1.0.0`` gives
    ``projects/demo/locations/global/apis/petstore/versions/1.0.0/specs/openapi``.
    """
    try:
        parsed = parse_resource_pattern(pattern)
    except PatternError as exc:
        raise PatternError(f"invalid target pattern: {exc}") from exc

    pattern_parent = parsed.parent()
    if pattern_parent is None:
        raise PatternError(f"invalid pattern: {pattern!r} has no parent")

    if pattern_parent.kind == ResourceKind.PROJECT:
        suffix = f"/locations/{LOCATION}"
        if parent.endswith(suffix):
            parent = parent[: -len(suffix)]

    name = pattern.replace(str(pattern_parent), parent, 1)
    try:
        return parse_name(name)
    except PatternError:
        raise PatternError(f"invalid pattern: {pattern!r} cannot derive resource name from parent {parent}") from None


def name_matches(pattern: ResourceName, name: ResourceName) -> bool:
    """Whether a concrete ``name`` is selected by ``pattern``.

    Kinds (and artifact owners) must agree; every pattern id must be a
    wildcard or equal the name's id. A collection pattern selects every
    member. An empty or ``-`` revision selects any revision.
    """
    if pattern.kind != name.kind:
        return False
    if pattern.kind == ResourceKind.ARTIFACT and pattern.parent_kind != name.parent_kind:
        return False
    want, got = pattern.ids(), name.ids()
    if len(want) != len(got):
        return False
    if pattern.collection:
        want = want[:-1] + [WILDCARD]
    for w, g in zip(want, got):
        if w != WILDCARD and w != g:
            return False
    return pattern.revision_id in ("", WILDCARD) or pattern.revision_id == name.revision_id

"""Registry resource names and patterns."""

from .names import (
    LOCATION,
    WILDCARD,
    ResourceKind,
    ResourceName,
    parse_api,
    parse_api_collection,
    parse_artifact,
    parse_artifact_collection,
    parse_collection,
    parse_deployment,
    parse_deployment_collection,
    parse_name,
    parse_project,
    parse_project_collection,
    parse_spec,
    parse_spec_collection,
    parse_version,
    parse_version_collection,
)
from .patterns import (
    RESOURCE_KW,
    ResourceInstance,
    full_resource_name_from_parent,
    get_reference_entity_type,
    get_reference_entity_value,
    name_matches,
    parse_resource_pattern,
    substitute_reference_entity,
)

__all__ = [
    "LOCATION",
    "RESOURCE_KW",
    "WILDCARD",
    "ResourceInstance",
    "ResourceKind",
    "ResourceName",
    "full_resource_name_from_parent",
    "get_reference_entity_type",
    "get_reference_entity_value",
    "name_matches",
    "parse_api",
    "parse_api_collection",
    "parse_artifact",
    "parse_artifact_collection",
    "parse_collection",
    "parse_deployment",
    "parse_deployment_collection",
    "parse_name",
    "parse_project",
    "parse_project_collection",
    "parse_resource_pattern",
    "parse_spec",
    "parse_spec_collection",
    "parse_version",
    "parse_version_collection",
    "substitute_reference_entity",
]

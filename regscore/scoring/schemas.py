"""
Payload schemas for typed artifacts.

Artifacts carry JSON (or YAML) documents using camelCase field names. Each
known message type is described here so payloads can be checked and turned
into the generic map that score expressions see:

- unknown fields are rejected
- every number becomes a float, as in a JSON round trip
- unset scalar and repeated fields are filled with their defaults
- unset message fields stay absent

Add an entry to :data:`MESSAGE_SCHEMAS` to support a new artifact type.
"""

from __future__ import annotations

import gzip
import json
import zlib
from dataclasses import dataclass
from typing import Any

from ..errors import EvaluationError
from ..registry.artifact import is_gzip, is_yaml, message_type_for_mime_type

SCORING = "google.cloud.apigeeregistry.v1.scoring"
STYLE = "google.cloud.apigeeregistry.v1.style"
APIHUB = "google.cloud.apigeeregistry.v1.apihub"
CONTROLLER = "google.cloud.apigeeregistry.v1.controller"
METRICS = "gnostic.metrics"

SCORE_TYPE = f"{SCORING}.Score"
SCORE_CARD_TYPE = f"{SCORING}.ScoreCard"
SCORE_DEFINITION_TYPE = f"{SCORING}.ScoreDefinition"
SCORE_CARD_DEFINITION_TYPE = f"{SCORING}.ScoreCardDefinition"


@dataclass(frozen=True)
class Field:
    kind: str  # string | number | bool | enum | message | any
    repeated: bool = False
    message: str = ""


S = Field("string")
N = Field("number")
B = Field("bool")
E = Field("enum")


def M(message: str, repeated: bool = False) -> Field:
    return Field("message", repeated=repeated, message=message)


def R(kind: Field) -> Field:
    return Field(kind.kind, repeated=True, message=kind.message)


_POSITION = f"{STYLE}.LintPosition"
_LOCATION = f"{STYLE}.LintLocation"

MESSAGE_SCHEMAS: dict[str, dict[str, Field]] = {
    # --- style ------------------------------------------------------------
    f"{STYLE}.Lint": {"name": S, "files": M(f"{STYLE}.LintFile", repeated=True)},
    f"{STYLE}.LintFile": {"filePath": S, "problems": M(f"{STYLE}.LintProblem", repeated=True)},
    f"{STYLE}.LintProblem": {
        "message": S,
        "ruleId": S,
        "ruleDocUri": S,
        "suggestion": S,
        "location": M(_LOCATION),
    },
    _LOCATION: {"startPosition": M(_POSITION), "endPosition": M(_POSITION)},
    _POSITION: {"lineNumber": N, "columnNumber": N},
    f"{STYLE}.ConformanceReport": {
        "id": S,
        "kind": S,
        "styleguideName": S,
        "guidelineReportGroups": M(f"{STYLE}.GuidelineReportGroup", repeated=True),
    },
    f"{STYLE}.GuidelineReportGroup": {
        "state": E,
        "guidelineReports": M(f"{STYLE}.GuidelineReport", repeated=True),
    },
    f"{STYLE}.GuidelineReport": {
        "guidelineId": S,
        "ruleReportGroups": M(f"{STYLE}.RuleReportGroup", repeated=True),
    },
    f"{STYLE}.RuleReportGroup": {"severity": E, "ruleReports": M(f"{STYLE}.RuleReport", repeated=True)},
    f"{STYLE}.RuleReport": {
        "ruleId": S,
        "spec": S,
        "fileName": S,
        "suggestion": S,
        "location": M(_LOCATION),
        "displayName": S,
        "description": S,
        "docUri": S,
    },
    f"{STYLE}.Index": {
        "operations": M(f"{STYLE}.Operation", repeated=True),
        "schemas": M(f"{STYLE}.Schema", repeated=True),
        "fields": M(f"{STYLE}.IndexField", repeated=True),
    },
    f"{STYLE}.Operation": {"name": S, "service": S, "verb": S, "path": S, "file": S},
    f"{STYLE}.Schema": {"name": S, "resource": S, "file": S},
    f"{STYLE}.IndexField": {"schema": S, "name": S, "type": S, "file": S},
    f"{STYLE}.References": {"externalReferences": R(S), "internalReferences": R(S)},
    # --- metrics ----------------------------------------------------------
    f"{METRICS}.Complexity": {
        "pathCount": N,
        "getCount": N,
        "postCount": N,
        "putCount": N,
        "deleteCount": N,
        "schemaCount": N,
        "schemaPropertyCount": N,
    },
    f"{METRICS}.Vocabulary": {
        "name": S,
        "schemas": M(f"{METRICS}.WordCount", repeated=True),
        "properties": M(f"{METRICS}.WordCount", repeated=True),
        "operations": M(f"{METRICS}.WordCount", repeated=True),
        "parameters": M(f"{METRICS}.WordCount", repeated=True),
    },
    f"{METRICS}.WordCount": {"word": S, "count": N},
    # --- apihub / controller ---------------------------------------------
    f"{APIHUB}.ReferenceList": {
        "displayName": S,
        "description": S,
        "references": M(f"{APIHUB}.Reference", repeated=True),
    },
    f"{APIHUB}.Reference": {"id": S, "displayName": S, "category": S, "resource": S, "uri": S},
    f"{CONTROLLER}.Receipt": {"action": S},
    # --- scoring ----------------------------------------------------------
    SCORE_TYPE: {
        "id": S,
        "kind": S,
        "displayName": S,
        "description": S,
        "uri": S,
        "uriDisplayName": S,
        "definitionName": S,
        "severity": E,
        "integerValue": M(f"{SCORING}.IntegerValue"),
        "percentValue": M(f"{SCORING}.PercentValue"),
        "booleanValue": M(f"{SCORING}.BooleanValue"),
    },
    f"{SCORING}.IntegerValue": {"value": N, "minValue": N, "maxValue": N},
    f"{SCORING}.PercentValue": {"value": N},
    f"{SCORING}.BooleanValue": {"value": B, "displayValue": S},
    SCORE_CARD_TYPE: {
        "id": S,
        "kind": S,
        "displayName": S,
        "description": S,
        "definitionName": S,
        "scores": M(SCORE_TYPE, repeated=True),
    },
    SCORE_DEFINITION_TYPE: {
        "id": S,
        "kind": S,
        "displayName": S,
        "description": S,
        "uri": S,
        "uriDisplayName": S,
        "targetResource": M(f"{SCORING}.ResourcePattern"),
        "scoreFormula": M(f"{SCORING}.ScoreFormula"),
        "rollupFormula": M(f"{SCORING}.RollUpFormula"),
        "integer": M(f"{SCORING}.IntegerType"),
        "percent": M(f"{SCORING}.PercentType"),
        "boolean": M(f"{SCORING}.BooleanType"),
    },
    f"{SCORING}.ResourcePattern": {"pattern": S, "filter": S},
    f"{SCORING}.ScoreFormula": {
        "artifact": M(f"{SCORING}.ResourcePattern"),
        "scoreExpression": S,
        "referenceId": S,
    },
    f"{SCORING}.RollUpFormula": {
        "scoreFormulas": M(f"{SCORING}.ScoreFormula", repeated=True),
        "rollupExpression": S,
    },
    f"{SCORING}.IntegerType": {"minValue": N, "maxValue": N, "thresholds": M(f"{SCORING}.NumberThreshold", repeated=True)},
    f"{SCORING}.PercentType": {"thresholds": M(f"{SCORING}.NumberThreshold", repeated=True)},
    f"{SCORING}.BooleanType": {
        "displayTrue": S,
        "displayFalse": S,
        "thresholds": M(f"{SCORING}.BooleanThreshold", repeated=True),
    },
    f"{SCORING}.NumberThreshold": {"severity": E, "range": M(f"{SCORING}.NumberRange")},
    f"{SCORING}.NumberRange": {"min": N, "max": N},
    f"{SCORING}.BooleanThreshold": {"severity": E, "value": B},
    SCORE_CARD_DEFINITION_TYPE: {
        "id": S,
        "kind": S,
        "displayName": S,
        "description": S,
        "targetResource": M(f"{SCORING}.ResourcePattern"),
        "scorePatterns": R(S),
    },
}

# Short names accepted by the registry's older tooling.
MESSAGE_ALIASES: dict[str, str] = {
    "google.cloud.apigeeregistry.applications.v1alpha1.Lint": f"{STYLE}.Lint",
    "google.cloud.apigeeregistry.applications.v1alpha1.ConformanceReport": f"{STYLE}.ConformanceReport",
    "google.cloud.apigeeregistry.applications.v1alpha1.Index": f"{STYLE}.Index",
    "google.cloud.apigeeregistry.applications.v1alpha1.References": f"{STYLE}.References",
}

# Types a score expression may read.
EXPRESSION_TYPES = frozenset(
    {
        f"{METRICS}.Complexity",
        f"{METRICS}.Vocabulary",
        f"{STYLE}.ConformanceReport",
        f"{STYLE}.Index",
        f"{STYLE}.Lint",
        f"{STYLE}.References",
        f"{APIHUB}.ReferenceList",
        f"{CONTROLLER}.Receipt",
        SCORE_TYPE,
        SCORE_CARD_TYPE,
    }
)

_DEFAULTS = {"string": "", "number": 0.0, "bool": False, "enum": ""}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def resolve_message_type(message_type: str) -> str:
    return MESSAGE_ALIASES.get(message_type, message_type)


def unwrap_envelope(document: Any) -> Any:
    """Strip an ``apiVersion/kind/metadata/data`` wrapper if present."""
    if isinstance(document, dict) and "apiVersion" in document and "data" in document:
        return document["data"]
    return document


def _check_scalar(field: Field, value: Any, path: str) -> Any:
    if field.kind == "any":
        return value
    if field.kind in ("string", "enum"):
        if not isinstance(value, str):
            raise ValueError(f"{path}: expected string, got {type(value).__name__}")
        return value
    if field.kind == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"{path}: expected bool, got {type(value).__name__}")
        return value
    # number; bool is an int subclass and is not a number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{path}: expected number, got {type(value).__name__}")
    return float(value)


def normalize(message_type: str, data: Any, path: str = "") -> dict[str, Any]:
    """Check ``data`` against a schema and return the generic map form."""
    schema = MESSAGE_SCHEMAS[message_type]
    if not isinstance(data, dict):
        raise ValueError(f"{path or message_type}: expected object, got {type(data).__name__}")

    # protojson accepts the original snake_case names too
    data = {_camel(str(k)): v for k, v in data.items()}
    unknown = sorted(set(data) - set(schema))
    if unknown:
        raise ValueError(f"{path or message_type}: unknown fields {unknown}")

    out: dict[str, Any] = {}
    for name, field in schema.items():
        where = f"{path}.{name}" if path else name
        value = data.get(name)
        if value is None:
            if field.repeated:
                out[name] = []
            elif field.kind in _DEFAULTS:
                out[name] = _DEFAULTS[field.kind]
            continue

        if field.repeated:
            if not isinstance(value, list):
                raise ValueError(f"{where}: expected list, got {type(value).__name__}")
            if field.kind == "message":
                out[name] = [normalize(field.message, v, f"{where}[{i}]") for i, v in enumerate(value)]
            else:
                out[name] = [_check_scalar(field, v, f"{where}[{i}]") for i, v in enumerate(value)]
        elif field.kind == "message":
            out[name] = normalize(field.message, value, where)
        else:
            out[name] = _check_scalar(field, value, where)
    return out


def load_document(mime_type: str, contents: bytes) -> Any:
    """Parse raw payload bytes as JSON, or YAML for ``application/yaml`` types."""
    text = contents.decode("utf-8")
    if is_yaml(mime_type):
        import yaml

        try:
            return unwrap_envelope(yaml.safe_load(text))
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid YAML payload: {exc}") from exc
    return json.loads(text)


def decode_message(mime_type: str, contents: bytes) -> tuple[str, dict[str, Any]]:
    """Decode typed payload bytes into ``(message_type, map)``.

    Raises ValueError for unknown types and malformed payloads.
    """
    message_type = resolve_message_type(message_type_for_mime_type(mime_type))
    if message_type not in MESSAGE_SCHEMAS:
        raise ValueError(f"unsupported artifact type: {message_type}")
    try:
        if is_gzip(mime_type):
            contents = gzip.decompress(contents)
        document = load_document(mime_type, contents)
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"failed decoding {message_type}: {exc}") from exc
    return message_type, normalize(message_type, document)


def decode_for_expression(mime_type: str, contents: bytes) -> dict[str, Any]:
    """Map form of an artifact payload for score expressions."""
    try:
        message_type = resolve_message_type(message_type_for_mime_type(mime_type))
    except ValueError as exc:
        raise EvaluationError(f"failed extracting message type from {mime_type!r}") from exc
    if message_type not in EXPRESSION_TYPES:
        raise EvaluationError(f"unsupported artifact type: {message_type}")
    try:
        _, data = decode_message(mime_type, contents)
    except ValueError as exc:
        raise EvaluationError(str(exc)) from exc
    return data


def encode_message(data: dict[str, Any]) -> bytes:
    """Serialize a camelCase message map as artifact contents."""
    return json.dumps(data, indent=2, sort_keys=True).encode("utf-8")

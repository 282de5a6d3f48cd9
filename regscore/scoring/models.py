"""
Score definitions and computed results.

Field names follow Python conventions; ``to_dict``/``from_dict`` use the
camelCase names stored in artifact payloads. Exactly-one-of groups
(formula, score type, score value) are checked in ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    SEVERITY_UNSPECIFIED = "SEVERITY_UNSPECIFIED"
    OK = "OK"
    WARNING = "WARNING"
    ALERT = "ALERT"

    @classmethod
    def parse(cls, value: Any) -> Severity:
        if not value:
            return cls.SEVERITY_UNSPECIFIED
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"unknown severity: {value!r}") from None


def _int(value: Any) -> int:
    return int(value or 0)


def _one_of(data: dict[str, Any], keys: tuple[str, ...], what: str) -> str | None:
    present = [k for k in keys if data.get(k) is not None]
    if len(present) > 1:
        raise ValueError(f"{what}: only one of {', '.join(keys)} may be set, got {', '.join(present)}")
    return present[0] if present else None


@dataclass(frozen=True)
class ResourcePattern:
    pattern: str = ""
    filter: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"pattern": self.pattern}
        if self.filter:
            d["filter"] = self.filter
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ResourcePattern:
        data = data or {}
        return cls(pattern=data.get("pattern", ""), filter=data.get("filter", ""))


@dataclass(frozen=True)
class ScoreFormula:
    artifact: ResourcePattern | None = None
    score_expression: str = ""
    reference_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"scoreExpression": self.score_expression}
        if self.artifact is not None:
            d["artifact"] = self.artifact.to_dict()
        if self.reference_id:
            d["referenceId"] = self.reference_id
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreFormula:
        artifact = data.get("artifact")
        return cls(
            artifact=ResourcePattern.from_dict(artifact) if artifact is not None else None,
            score_expression=data.get("scoreExpression", ""),
            reference_id=data.get("referenceId", ""),
        )


@dataclass(frozen=True)
class RollupFormula:
    score_formulas: list[ScoreFormula] = field(default_factory=list)
    rollup_expression: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "scoreFormulas": [f.to_dict() for f in self.score_formulas],
            "rollupExpression": self.rollup_expression,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RollupFormula:
        return cls(
            score_formulas=[ScoreFormula.from_dict(f) for f in data.get("scoreFormulas") or []],
            rollup_expression=data.get("rollupExpression", ""),
        )


@dataclass(frozen=True)
class NumberRange:
    min: int = 0
    max: int = 0


@dataclass(frozen=True)
class NumberThreshold:
    severity: Severity = Severity.SEVERITY_UNSPECIFIED
    range: NumberRange | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"severity": self.severity.value}
        if self.range is not None:
            d["range"] = {"min": self.range.min, "max": self.range.max}
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NumberThreshold:
        r = data.get("range")
        return cls(
            severity=Severity.parse(data.get("severity")),
            range=NumberRange(min=_int(r.get("min")), max=_int(r.get("max"))) if r is not None else None,
        )


@dataclass(frozen=True)
class BooleanThreshold:
    severity: Severity = Severity.SEVERITY_UNSPECIFIED
    value: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"severity": self.severity.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BooleanThreshold:
        return cls(severity=Severity.parse(data.get("severity")), value=bool(data.get("value", False)))


@dataclass(frozen=True)
class IntegerType:
    min_value: int = 0
    max_value: int = 0
    thresholds: list[NumberThreshold] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "thresholds": [t.to_dict() for t in self.thresholds],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IntegerType:
        return cls(
            min_value=_int(data.get("minValue")),
            max_value=_int(data.get("maxValue")),
            thresholds=[NumberThreshold.from_dict(t) for t in data.get("thresholds") or []],
        )


@dataclass(frozen=True)
class PercentType:
    """Percent scores always range over [0, 100]."""

    thresholds: list[NumberThreshold] = field(default_factory=list)

    min_value = 0
    max_value = 100

    def to_dict(self) -> dict[str, Any]:
        return {"thresholds": [t.to_dict() for t in self.thresholds]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PercentType:
        return cls(thresholds=[NumberThreshold.from_dict(t) for t in data.get("thresholds") or []])


@dataclass(frozen=True)
class BooleanType:
    display_true: str = ""
    display_false: str = ""
    thresholds: list[BooleanThreshold] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"thresholds": [t.to_dict() for t in self.thresholds]}
        if self.display_true:
            d["displayTrue"] = self.display_true
        if self.display_false:
            d["displayFalse"] = self.display_false
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BooleanType:
        return cls(
            display_true=data.get("displayTrue", ""),
            display_false=data.get("displayFalse", ""),
            thresholds=[BooleanThreshold.from_dict(t) for t in data.get("thresholds") or []],
        )


ScoreType = IntegerType | PercentType | BooleanType

_TYPE_KEYS = ("integer", "percent", "boolean")
_TYPE_CLASSES: dict[str, Any] = {"integer": IntegerType, "percent": PercentType, "boolean": BooleanType}


@dataclass(frozen=True)
class ScoreDefinition:
    id: str
    kind: str = "ScoreDefinition"
    display_name: str = ""
    description: str = ""
    uri: str = ""
    uri_display_name: str = ""
    target_resource: ResourcePattern = field(default_factory=ResourcePattern)
    score_formula: ScoreFormula | None = None
    rollup_formula: RollupFormula | None = None
    type: ScoreType | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "displayName": self.display_name,
            "description": self.description,
            "uri": self.uri,
            "uriDisplayName": self.uri_display_name,
            "targetResource": self.target_resource.to_dict(),
        }
        if self.score_formula is not None:
            d["scoreFormula"] = self.score_formula.to_dict()
        if self.rollup_formula is not None:
            d["rollupFormula"] = self.rollup_formula.to_dict()
        for key, cls in _TYPE_CLASSES.items():
            if isinstance(self.type, cls):
                d[key] = self.type.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreDefinition:
        _one_of(data, ("scoreFormula", "rollupFormula"), "formula")
        type_key = _one_of(data, _TYPE_KEYS, "type")
        score_formula = data.get("scoreFormula")
        rollup_formula = data.get("rollupFormula")
        return cls(
            id=data.get("id", ""),
            kind=data.get("kind") or "ScoreDefinition",
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            uri=data.get("uri", ""),
            uri_display_name=data.get("uriDisplayName", ""),
            target_resource=ResourcePattern.from_dict(data.get("targetResource")),
            score_formula=ScoreFormula.from_dict(score_formula) if score_formula is not None else None,
            rollup_formula=RollupFormula.from_dict(rollup_formula) if rollup_formula is not None else None,
            type=_TYPE_CLASSES[type_key].from_dict(data[type_key]) if type_key else None,
        )


@dataclass(frozen=True)
class ScoreCardDefinition:
    id: str
    kind: str = "ScoreCardDefinition"
    display_name: str = ""
    description: str = ""
    target_resource: ResourcePattern = field(default_factory=ResourcePattern)
    score_patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "displayName": self.display_name,
            "description": self.description,
            "targetResource": self.target_resource.to_dict(),
            "scorePatterns": list(self.score_patterns),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreCardDefinition:
        return cls(
            id=data.get("id", ""),
            kind=data.get("kind") or "ScoreCardDefinition",
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            target_resource=ResourcePattern.from_dict(data.get("targetResource")),
            score_patterns=list(data.get("scorePatterns") or []),
        )


# --- results --------------------------------------------------------------


@dataclass(frozen=True)
class IntegerValue:
    value: int
    min_value: int
    max_value: int

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "minValue": self.min_value, "maxValue": self.max_value}


@dataclass(frozen=True)
class PercentValue:
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True)
class BooleanValue:
    value: bool
    display_value: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "displayValue": self.display_value}


ScoreValue = IntegerValue | PercentValue | BooleanValue

_VALUE_KEYS = {IntegerValue: "integerValue", PercentValue: "percentValue", BooleanValue: "booleanValue"}


@dataclass(frozen=True)
class Score:
    id: str
    kind: str = "Score"
    display_name: str = ""
    description: str = ""
    uri: str = ""
    uri_display_name: str = ""
    definition_name: str = ""
    severity: Severity = Severity.SEVERITY_UNSPECIFIED
    value: ScoreValue | None = None

    def display(self) -> str:
        if isinstance(self.value, BooleanValue):
            return self.value.display_value
        if isinstance(self.value, IntegerValue):
            return f"{self.value.value} [{self.value.min_value}, {self.value.max_value}]"
        if isinstance(self.value, PercentValue):
            return f"{self.value.value:g}%"
        return ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "displayName": self.display_name,
            "description": self.description,
            "uri": self.uri,
            "uriDisplayName": self.uri_display_name,
            "definitionName": self.definition_name,
            "severity": self.severity.value,
        }
        if self.value is not None:
            d[_VALUE_KEYS[type(self.value)]] = self.value.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Score:
        key = _one_of(data, tuple(_VALUE_KEYS.values()), "value")
        value: ScoreValue | None = None
        if key == "integerValue":
            v = data[key]
            value = IntegerValue(_int(v.get("value")), _int(v.get("minValue")), _int(v.get("maxValue")))
        elif key == "percentValue":
            value = PercentValue(float(data[key].get("value") or 0.0))
        elif key == "booleanValue":
            v = data[key]
            value = BooleanValue(bool(v.get("value", False)), v.get("displayValue", ""))
        return cls(
            id=data.get("id", ""),
            kind=data.get("kind") or "Score",
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            uri=data.get("uri", ""),
            uri_display_name=data.get("uriDisplayName", ""),
            definition_name=data.get("definitionName", ""),
            severity=Severity.parse(data.get("severity")),
            value=value,
        )


@dataclass(frozen=True)
class ScoreCard:
    id: str
    kind: str = "ScoreCard"
    display_name: str = ""
    description: str = ""
    definition_name: str = ""
    scores: list[Score] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "displayName": self.display_name,
            "description": self.description,
            "definitionName": self.definition_name,
            "scores": [s.to_dict() for s in self.scores],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreCard:
        return cls(
            id=data.get("id", ""),
            kind=data.get("kind") or "ScoreCard",
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            definition_name=data.get("definitionName", ""),
            scores=[Score.from_dict(s) for s in data.get("scores") or []],
        )

"""
Static checks for score and scorecard definitions.

Validators never raise for a bad definition; they return every finding so a
single run reports all configuration problems at once.
"""

from __future__ import annotations

from ..errors import DefinitionError, PatternError
from ..names import ResourceName, get_reference_entity_type, get_reference_entity_value, parse_resource_pattern
from ..names.patterns import DEFAULT_ENTITY
from .models import (
    BooleanThreshold,
    BooleanType,
    IntegerType,
    NumberRange,
    NumberThreshold,
    PercentType,
    ScoreCardDefinition,
    ScoreDefinition,
    ScoreFormula,
)


def _parse_target(parent: str, pattern: str) -> tuple[ResourceName | None, list[DefinitionError]]:
    try:
        return parse_resource_pattern(f"{parent}/{pattern}"), []
    except PatternError as exc:
        return None, [DefinitionError(str(exc), field="target_resource.pattern")]


def validate_references_in_pattern(target: ResourceName, pattern: str, field: str) -> list[DefinitionError]:
    """The pattern must open with a ``$resource`` token that ``target`` can resolve."""
    try:
        _, entity_type = get_reference_entity_type(pattern)
    except PatternError as exc:
        return [DefinitionError(f"invalid pattern: {pattern!r}, {exc}", field=field)]

    if entity_type == DEFAULT_ENTITY:
        return [
            DefinitionError(
                f"invalid pattern: {pattern!r}, must always start with '$resource.(api|version|spec|artifact)'",
                field=field,
            )
        ]
    try:
        get_reference_entity_value(pattern, target)
    except PatternError as exc:
        return [DefinitionError(f"invalid pattern: {pattern!r}, invalid $resource reference in pattern: {exc}", field=field)]
    return []


def validate_score_formula(target: ResourceName, formula: ScoreFormula, prefix: str, *, in_rollup: bool = False) -> list[DefinitionError]:
    errors: list[DefinitionError] = []
    pattern = formula.artifact.pattern if formula.artifact else ""
    field = f"{prefix}.artifact.pattern"

    errors.extend(validate_references_in_pattern(target, pattern, field))
    if pattern.endswith("/-"):
        errors.append(DefinitionError(f"invalid pattern: {pattern!r}, it should end with a resourceID and not a \"-\"", field=field))
    if not formula.score_expression:
        errors.append(DefinitionError("missing score_expression", field=prefix))
    if "-" in formula.reference_id:
        errors.append(
            DefinitionError(f"invalid reference_id: {formula.reference_id}, it should not contain hyphens '-'", field=prefix)
        )
    if in_rollup and not formula.reference_id:
        errors.append(DefinitionError("missing reference_id, required inside rollup_formula", field=prefix))
    return errors


def validate_number_thresholds(thresholds: list[NumberThreshold], min_value: int, max_value: int, prefix: str) -> list[DefinitionError]:
    """Thresholds must tile ``[min_value, max_value]`` with no gaps or overlaps."""
    errors: list[DefinitionError] = []
    field = f"{prefix}.thresholds"

    ranges = sorted((t.range or NumberRange() for t in thresholds), key=lambda r: r.min)
    filled = min_value - 1
    for r in ranges:
        if r.min > r.max:
            errors.append(DefinitionError(f"invalid range [{r.min}, {r.max}]: range.min cannot be greater than range.max", field=field))
            continue
        if r.min > filled + 1:
            errors.append(DefinitionError(f"incomplete coverage: missing coverage between {filled + 1} and {r.min - 1}", field=field))
        elif r.min < min_value:
            errors.append(
                DefinitionError(
                    f"invalid range [{r.min}, {r.max}]: range.min({r.min}) should be within min_value({min_value}) and max_value({max_value}) limits",
                    field=field,
                )
            )
        elif r.min < filled + 1:
            errors.append(DefinitionError(f"invalid range [{r.min}, {r.max}]: thresholds must not overlap (covered up to {filled})", field=field))
        if r.max > max_value:
            errors.append(
                DefinitionError(
                    f"invalid range [{r.min}, {r.max}]: range.max({r.max}) should be within min_value({min_value}) and max_value({max_value}) limits",
                    field=field,
                )
            )
        filled = max(filled, r.max)

    if filled < max_value:
        errors.append(DefinitionError(f"incomplete coverage: missing coverage between {filled + 1} and {max_value}", field=field))
    return errors


def validate_boolean_thresholds(thresholds: list[BooleanThreshold], prefix: str) -> list[DefinitionError]:
    errors: list[DefinitionError] = []
    field = f"{prefix}.thresholds"
    seen: set[bool] = set()
    for t in thresholds:
        if t.value in seen:
            errors.append(DefinitionError(f"duplicate entries for '{str(t.value).lower()}' value", field=field))
        seen.add(t.value)
    if seen != {True, False}:
        errors.append(DefinitionError("missing coverage for one or both of the boolean values", field=field))
    return errors


def validate_score_definition(parent: str, definition: ScoreDefinition) -> list[DefinitionError]:
    """Collect every problem with ``definition``.

    ``parent`` is the project location the target pattern is relative to,
    e.g. ``projects/demo/locations/global``.
    """
    target, errors = _parse_target(parent, definition.target_resource.pattern)

    # formula references can only be resolved against a valid target
    if target is not None:
        if definition.score_formula is not None:
            errors.extend(validate_score_formula(target, definition.score_formula, "score_formula"))
        elif definition.rollup_formula is not None:
            rollup = definition.rollup_formula
            if not rollup.score_formulas:
                errors.append(DefinitionError("missing score_formulas", field="rollup_formula"))
            for i, formula in enumerate(rollup.score_formulas):
                errors.extend(validate_score_formula(target, formula, f"rollup_formula.score_formulas[{i}]", in_rollup=True))
            if not rollup.rollup_expression:
                errors.append(DefinitionError("missing rollup_expression", field="rollup_formula"))
        else:
            errors.append(DefinitionError("missing formula, either 'score_formula' or 'rollup_formula' should be set"))

    score_type = definition.type
    if isinstance(score_type, IntegerType):
        if score_type.min_value >= score_type.max_value:
            errors.append(
                DefinitionError(
                    f"invalid min_value({score_type.min_value}) and max_value({score_type.max_value}), "
                    "min_value should be less than max_value",
                    field="integer",
                )
            )
        else:
            errors.extend(validate_number_thresholds(score_type.thresholds, score_type.min_value, score_type.max_value, "integer"))
    elif isinstance(score_type, PercentType):
        errors.extend(validate_number_thresholds(score_type.thresholds, PercentType.min_value, PercentType.max_value, "percent"))
    elif isinstance(score_type, BooleanType):
        errors.extend(validate_boolean_thresholds(score_type.thresholds, "boolean"))
    else:
        errors.append(DefinitionError("missing type, either of 'percent', 'integer' or 'boolean' should be set"))

    return errors


def validate_score_card_definition(parent: str, definition: ScoreCardDefinition) -> list[DefinitionError]:
    target, errors = _parse_target(parent, definition.target_resource.pattern)

    if not definition.score_patterns:
        errors.append(DefinitionError("missing score_patterns"))
        return errors

    if target is not None:
        for i, pattern in enumerate(definition.score_patterns):
            field = f"score_patterns[{i}]"
            errors.extend(validate_references_in_pattern(target, pattern, field))
            if pattern.endswith("/-"):
                errors.append(DefinitionError(f"invalid pattern: {pattern!r}, it should end with a resourceID and not a \"-\"", field=field))
    return errors

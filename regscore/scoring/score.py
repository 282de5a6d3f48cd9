"""
Score computation for one definition against one resource.

A score is recomputed only when something it depends on may have changed
since the stored score was written: the score does not exist yet, or the
definition or a dependency artifact was updated within ``STALENESS_GRACE``
of (or after) the score's own update time. The value is always evaluated;
the freshness check only decides whether it is uploaded.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ..cel import ExpressionEngine
from ..errors import EvaluationError, NotFoundError, PatternError
from ..names import LOCATION, ResourceInstance, ResourceKind, substitute_reference_entity
from ..registry.artifact import Artifact, mime_type_for_message_type
from ..registry.client import ArtifactClient
from .definitions import load_score_definition
from .expression import evaluate_expression, evaluate_score_expression
from .models import (
    BooleanType,
    BooleanValue,
    IntegerType,
    IntegerValue,
    PercentType,
    PercentValue,
    RollupFormula,
    Score,
    ScoreDefinition,
    ScoreFormula,
    Severity,
)
from .schemas import SCORE_TYPE, encode_message

logger = logging.getLogger(__name__)

# Writes landing this close together are treated as possibly out of order.
STALENESS_GRACE = timedelta(seconds=2)

SCORE_MIME_TYPE = mime_type_for_message_type(SCORE_TYPE)


@dataclass(frozen=True)
class ScoreResult:
    value: Any
    needs_update: bool


def is_stale(dependency_time: datetime | None, result_time: datetime | None) -> bool:
    """True if a result written at ``result_time`` may predate ``dependency_time``."""
    if result_time is None or dependency_time is None:
        return True
    return dependency_time + STALENESS_GRACE > result_time


def score_id(definition_id: str) -> str:
    return f"score-{definition_id}"


def definition_name(project: str, definition_id: str) -> str:
    return f"{project}/locations/{LOCATION}/artifacts/{definition_id}"


def calculate_score(
    client: ArtifactClient,
    definition_artifact: Artifact,
    resource: ResourceInstance,
    take_action: bool = False,
    dry_run: bool = False,
    engine: ExpressionEngine | None = None,
) -> Score | None:
    """Compute the score ``definition_artifact`` describes for ``resource``.

    Returns the new Score when it needed writing (written unless
    ``dry_run``), or None when the stored score is still current.
    Raises EvaluationError on any runtime failure; nothing is written then.
    """
    definition = load_score_definition(definition_artifact)
    name = f"{resource.name}/artifacts/{score_id(definition.id)}"

    score_time: datetime | None = None
    try:
        existing = client.get_artifact(name, with_contents=False)
        score_time = existing.update_time
    except NotFoundError:
        take_action = True
    if is_stale(definition_artifact.update_time, score_time):
        take_action = True

    result = process_formula(client, definition, resource, score_time, take_action, engine)
    if not result.needs_update:
        logger.debug("%s is already up-to-date", name)
        return None

    score = process_score_type(definition, result.value, resource.name.project())
    if dry_run:
        logger.info("dry run: would upload %s", name)
    else:
        upload_score(client, resource, score)
    return score


def process_formula(
    client: ArtifactClient,
    definition: ScoreDefinition,
    resource: ResourceInstance,
    score_time: datetime | None,
    take_action: bool,
    engine: ExpressionEngine | None = None,
) -> ScoreResult:
    if definition.score_formula is not None:
        return process_score_formula(client, definition.score_formula, resource, score_time, take_action, engine)
    if definition.rollup_formula is not None:
        return process_rollup_formula(client, definition.rollup_formula, resource, score_time, take_action, engine)
    raise EvaluationError(f"invalid formula in ScoreDefinition {definition.id!r}: none set")


def process_score_formula(
    client: ArtifactClient,
    formula: ScoreFormula,
    resource: ResourceInstance,
    score_time: datetime | None,
    take_action: bool,
    engine: ExpressionEngine | None = None,
) -> ScoreResult:
    pattern = formula.artifact.pattern if formula.artifact else ""
    try:
        dependency = substitute_reference_entity(pattern, resource.name)
    except PatternError as exc:
        raise EvaluationError(f"invalid score_formula.artifact.pattern: {pattern}: {exc}") from exc
    if dependency.kind != ResourceKind.ARTIFACT or dependency.is_pattern():
        raise EvaluationError(f"invalid score_formula.artifact.pattern: {pattern}: does not name a single artifact")
    if not formula.score_expression:
        raise EvaluationError(f"missing score_formula.score_expression for {pattern}")

    try:
        artifact = client.get_artifact(str(dependency), with_contents=True)
    except NotFoundError as exc:
        raise EvaluationError(f"failed to fetch artifact {dependency}: {exc}") from exc

    needs_update = take_action or is_stale(artifact.update_time, score_time)
    value = evaluate_score_expression(formula.score_expression, artifact.mime_type, artifact.contents, engine)
    return ScoreResult(value=value, needs_update=needs_update)


def process_rollup_formula(
    client: ArtifactClient,
    formula: RollupFormula,
    resource: ResourceInstance,
    score_time: datetime | None,
    take_action: bool,
    engine: ExpressionEngine | None = None,
) -> ScoreResult:
    if not formula.score_formulas:
        raise EvaluationError("missing rollup_formula.score_formulas")
    if not formula.rollup_expression:
        raise EvaluationError("missing rollup_formula.rollup_expression")

    values: dict[str, Any] = {}
    needs_update = take_action
    for f in formula.score_formulas:
        if not f.reference_id:
            raise EvaluationError(f"missing reference_id for score_formula {f.score_expression!r}")
        if "-" in f.reference_id:
            raise EvaluationError(f"invalid reference_id {f.reference_id!r}: cannot contain '-'")
        try:
            result = process_score_formula(client, f, resource, score_time, take_action, engine)
        except EvaluationError as exc:
            raise EvaluationError(f"error processing rollup_formula.score_formulas: {exc}") from exc
        values[f.reference_id] = result.value
        needs_update = needs_update or result.needs_update

    value = evaluate_expression(formula.rollup_expression, values, engine)
    return ScoreResult(value=value, needs_update=needs_update)


def _number(value: Any) -> int | float:
    if type(value) not in (int, float):
        raise EvaluationError(f"failed typecheck for output: expected either int or double, got {value!r} ({type(value).__name__})")
    if not math.isfinite(value):
        raise EvaluationError(f"evaluated score value({value}) is not a finite number")
    return value


def process_score_type(definition: ScoreDefinition, value: Any, project: str) -> Score:
    """Convert an evaluated scalar into a Score for ``definition``."""
    score_type = definition.type
    severity = Severity.SEVERITY_UNSPECIFIED

    if isinstance(score_type, IntegerType):
        # float results are truncated toward zero
        number = int(_number(value))
        if number < score_type.min_value:
            raise EvaluationError(f"evaluated score value({number}) cannot be less than the configured min_value ({score_type.min_value})")
        if number > score_type.max_value:
            raise EvaluationError(f"evaluated score value({number}) cannot be greater than the configured max_value ({score_type.max_value})")
        score_value: IntegerValue | PercentValue | BooleanValue = IntegerValue(number, score_type.min_value, score_type.max_value)
        for t in score_type.thresholds:
            if t.range is not None and t.range.min <= number <= t.range.max:
                severity = t.severity
                break
    elif isinstance(score_type, PercentType):
        percent = float(_number(value))
        if percent < PercentType.min_value:
            raise EvaluationError(f"evaluated score value({percent:g}) cannot be less than 0")
        if percent > PercentType.max_value:
            raise EvaluationError(f"evaluated score value({percent:g}) cannot be greater than 100")
        score_value = PercentValue(percent)
        for t in score_type.thresholds:
            if t.range is not None and t.range.min <= percent <= t.range.max:
                severity = t.severity
                break
    elif isinstance(score_type, BooleanType):
        if type(value) is not bool:
            raise EvaluationError(f"failed typecheck for output: expected bool, got {value!r} ({type(value).__name__})")
        if value and score_type.display_true:
            display = score_type.display_true
        elif not value and score_type.display_false:
            display = score_type.display_false
        else:
            display = str(value).lower()
        score_value = BooleanValue(value, display)
        for bt in score_type.thresholds:
            if bt.value == value:
                severity = bt.severity
                break
    else:
        raise EvaluationError(f"missing type in ScoreDefinition {definition.id!r}")

    return Score(
        id=score_id(definition.id),
        display_name=definition.display_name,
        description=definition.description,
        uri=definition.uri,
        uri_display_name=definition.uri_display_name,
        definition_name=definition_name(project, definition.id),
        severity=severity,
        value=score_value,
    )


def upload_score(client: ArtifactClient, resource: ResourceInstance, score: Score) -> Artifact:
    artifact = Artifact(
        name=f"{resource.name}/artifacts/{score.id}",
        mime_type=SCORE_MIME_TYPE,
        contents=encode_message(score.to_dict()),
    )
    logger.debug("uploading %s", artifact.name)
    return client.set_artifact(artifact)

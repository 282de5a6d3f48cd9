"""Score expression evaluation against artifact payloads."""

from __future__ import annotations

from typing import Any

from ..cel import ExpressionEngine, default_engine
from ..errors import EvaluationError
from .schemas import decode_for_expression

ScalarResult = int | float | bool


def _check_result(expression: str, value: Any) -> ScalarResult:
    # exact type checks: bool is an int subclass, CEL uint is too
    if type(value) in (bool, int, float):
        return value
    raise EvaluationError(
        f"evaluating expression {expression!r} generated an unexpected output type "
        f"{type(value).__name__}: should be one of [int, double, bool]"
    )


def evaluate_expression(expression: str, env: dict[str, Any], engine: ExpressionEngine | None = None) -> ScalarResult:
    """Evaluate ``expression`` against named values; the result must be a scalar."""
    value = (engine or default_engine()).evaluate(expression, env)
    return _check_result(expression, value)


def evaluate_score_expression(
    expression: str,
    mime_type: str,
    contents: bytes,
    engine: ExpressionEngine | None = None,
) -> ScalarResult:
    """Decode a typed artifact payload and evaluate ``expression`` over its fields.

    Top-level message fields become variables, so a Lint payload supports
    ``size(files[0].problems)``.
    """
    data = decode_for_expression(mime_type, contents)
    return evaluate_expression(expression, data, engine)

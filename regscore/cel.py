"""
Sandboxed expression evaluation.

Score formulas and list filters are CEL expressions. The engine is behind
a small protocol so a different expression language can be plugged in.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

import celpy
from celpy import celtypes
from celpy.celparser import CELParseError
from celpy.evaluation import CELEvalError

from .errors import EvaluationError

logger = logging.getLogger(__name__)


class ExpressionEngine(Protocol):
    """Evaluates one expression against named values.

    Implementations return plain Python ``bool``, ``int``, ``float``, ``str``,
    ``list`` or ``dict`` values and raise :class:`EvaluationError` on failure.
    """

    def evaluate(self, expression: str, env: dict[str, Any]) -> Any: ...


def to_cel(value: Any) -> Any:
    if isinstance(value, datetime):
        return celtypes.TimestampType(value)
    if isinstance(value, dict):
        return celtypes.MapType({celtypes.StringType(k): to_cel(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return celtypes.ListType([to_cel(v) for v in value])
    return celpy.json_to_cel(value)


def from_cel(value: Any) -> Any:
    """Convert a CEL result back to plain Python values."""
    # BoolType subclasses int, so it must be checked first.
    if isinstance(value, celtypes.BoolType):
        return bool(value)
    if isinstance(value, celtypes.UintType):
        return value
    if isinstance(value, celtypes.IntType):
        return int(value)
    if isinstance(value, celtypes.DoubleType):
        return float(value)
    if isinstance(value, celtypes.StringType):
        return str(value)
    if isinstance(value, celtypes.MapType):
        return {from_cel(k): from_cel(v) for k, v in value.items()}
    if isinstance(value, celtypes.ListType):
        return [from_cel(v) for v in value]
    return value


class CelExpressionEngine:
    """CEL via cel-python. Programs are compiled per call and never cached."""

    def __init__(self) -> None:
        self._env = celpy.Environment()

    def evaluate(self, expression: str, env: dict[str, Any]) -> Any:
        try:
            ast = self._env.compile(expression)
        except CELParseError as exc:
            raise EvaluationError(f"error parsing expression {expression!r}: {exc}") from exc

        program = self._env.program(ast)
        activation = {name: to_cel(value) for name, value in env.items()}
        try:
            result = program.evaluate(activation)
        except CELEvalError as exc:
            raise EvaluationError(f"error evaluating expression {expression!r}: {exc}") from exc

        if isinstance(result, CELEvalError):
            raise EvaluationError(f"error evaluating expression {expression!r}: {result}")
        return from_cel(result)


_default_engine: ExpressionEngine | None = None


def default_engine() -> ExpressionEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = CelExpressionEngine()
    return _default_engine


def matches_filter(filter_expr: str, fields: dict[str, Any], engine: ExpressionEngine | None = None) -> bool:
    """Evaluate a boolean list filter; an empty filter matches everything."""
    if not filter_expr:
        return True
    result = (engine or default_engine()).evaluate(filter_expr, fields)
    if not isinstance(result, bool):
        raise EvaluationError(f"filter {filter_expr!r} must evaluate to a bool, got {type(result).__name__}")
    return result

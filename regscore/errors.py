"""Exception types shared across regscore."""

from __future__ import annotations


class PatternError(ValueError):
    """A resource name or pattern could not be parsed or resolved."""


class DefinitionError(ValueError):
    """A single static finding against a score or scorecard definition."""

    def __init__(self, message: str, *, field: str = ""):
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class EvaluationError(ValueError):
    """Runtime failure while computing a score or scorecard."""


class NotFoundError(LookupError):
    """The requested artifact or resource does not exist."""

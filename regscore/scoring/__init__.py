"""Score and scorecard computation."""

from .batch import BatchReport, compute_score_cards, compute_scores
from .definitions import (
    fetch_score_card_definitions,
    fetch_score_definitions,
    generate_combined_pattern,
    load_definition_file,
    match_resource_with_target,
)
from .expression import evaluate_expression, evaluate_score_expression
from .models import Score, ScoreCard, ScoreCardDefinition, ScoreDefinition, Severity
from .score import STALENESS_GRACE, calculate_score, is_stale
from .scorecard import calculate_score_card
from .validate import validate_score_card_definition, validate_score_definition

__all__ = [
    "STALENESS_GRACE",
    "BatchReport",
    "Score",
    "ScoreCard",
    "ScoreCardDefinition",
    "ScoreDefinition",
    "Severity",
    "calculate_score",
    "calculate_score_card",
    "compute_score_cards",
    "compute_scores",
    "evaluate_expression",
    "evaluate_score_expression",
    "fetch_score_card_definitions",
    "fetch_score_definitions",
    "generate_combined_pattern",
    "is_stale",
    "load_definition_file",
    "match_resource_with_target",
    "validate_score_card_definition",
    "validate_score_definition",
]

"""
Rollout eligibility, completion normalization, grouping and scoring.
"""

from rolloutscorer.rollouts.completion import (
    CompletionDecision,
    NormalizationResult,
    evaluate,
    normalize,
)
from rolloutscorer.rollouts.driver import (
    GroupOutcome,
    GroupResult,
    ScoringDriver,
    ScoringReport,
)
from rolloutscorer.rollouts.eligibility import SCORING_BUFFER, select_eligible
from rolloutscorer.rollouts.grouping import RolloutGroup, group_by_service
from rolloutscorer.rollouts.scorer import ScoringClients, ScoringFunction, load_scorer

__all__ = [
    "SCORING_BUFFER",
    "select_eligible",
    "CompletionDecision",
    "NormalizationResult",
    "evaluate",
    "normalize",
    "RolloutGroup",
    "group_by_service",
    "GroupOutcome",
    "GroupResult",
    "ScoringDriver",
    "ScoringReport",
    "ScoringClients",
    "ScoringFunction",
    "load_scorer",
]

"""Regulatory rule matching for business profiles.

This package intentionally contains only domain logic:
- Inputs are a validated business profile and a rule store.
- No database, HTTP, or file-format concerns live here beyond the catalog helpers.
"""

from .candidates import CandidateCache, RetrievalFailure, RuleStore
from .conditions import MalformedCondition
from .context import EvaluationContext, build_context
from .evaluator import ConditionOutcome, evaluate_conditions
from .matcher import RuleMatcher, match
from .models import (
    BusinessProfile,
    GroupedMatches,
    MatchReport,
    MatchResult,
    RuleLevel,
    RuleRecord,
)

__all__ = [
    "BusinessProfile",
    "CandidateCache",
    "ConditionOutcome",
    "EvaluationContext",
    "GroupedMatches",
    "MalformedCondition",
    "MatchReport",
    "MatchResult",
    "RetrievalFailure",
    "RuleLevel",
    "RuleMatcher",
    "RuleRecord",
    "RuleStore",
    "build_context",
    "evaluate_conditions",
    "match",
]

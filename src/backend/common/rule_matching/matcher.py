from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

from .assembler import assemble
from .candidates import DEFAULT_CACHE_TTL_SECONDS, CandidateCache, RuleStore
from .context import build_context
from .evaluator import evaluate_conditions
from .models import BusinessProfile, MatchReport

log = logging.getLogger(__name__)


class RuleMatcher:
    def __init__(
        self,
        store: RuleStore,
        *,
        cache: Optional[CandidateCache] = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        debug_timing: bool = False,
    ):
        self._cache = cache if cache is not None else CandidateCache(store, ttl_seconds=cache_ttl_seconds)
        self._timing_level = logging.INFO if debug_timing else logging.DEBUG

    @property
    def cache(self) -> CandidateCache:
        return self._cache

    def match(self, profile: Union[BusinessProfile, Mapping[str, Any]]) -> MatchReport:
        if not isinstance(profile, BusinessProfile):
            profile = BusinessProfile.model_validate(profile)
        ctx = build_context(profile)

        t0 = time.perf_counter()
        candidates = self._cache.fetch_candidates(ctx.states, ctx.cities)
        log.log(
            self._timing_level,
            "candidates=%d in %.1fms",
            len(candidates),
            (time.perf_counter() - t0) * 1000,
        )

        t1 = time.perf_counter()
        matched = []
        for rule in candidates:
            outcome = evaluate_conditions(rule.conditions, ctx, rule_id=rule.id)
            if outcome.matched:
                matched.append((rule, outcome.reasons))
        log.log(
            self._timing_level,
            "eval matched=%d in %.1fms",
            len(matched),
            (time.perf_counter() - t1) * 1000,
        )

        return assemble(matched, profile)


def match(profile: Union[BusinessProfile, Mapping[str, Any]], store: RuleStore) -> MatchReport:
    """One-shot match without a shared cache."""
    return RuleMatcher(store, cache_ttl_seconds=0).match(profile)

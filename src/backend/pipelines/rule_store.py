from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence

from common.rule_matching.candidates import RuleStore, filter_candidates
from common.rule_matching.catalog import load_rule_file
from common.rule_matching.config import MatcherConfig, get_matcher_config
from common.rule_matching.matcher import RuleMatcher
from common.rule_matching.models import RuleRecord


class InMemoryRuleStore:
    def __init__(self, rules: Iterable[RuleRecord]) -> None:
        self._rules = tuple(rules)

    def fetch_candidates(self, states: Sequence[str], cities: Sequence[str]) -> list[RuleRecord]:
        return filter_candidates(self._rules, states, cities)


class JsonFileRuleStore:
    """Rule catalog read once from a JSON/YAML seed file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._delegate: InMemoryRuleStore | None = None

    @property
    def path(self) -> Path:
        return self._path

    def fetch_candidates(self, states: Sequence[str], cities: Sequence[str]) -> list[RuleRecord]:
        if self._delegate is None:
            self._delegate = InMemoryRuleStore(load_rule_file(self._path))
        return self._delegate.fetch_candidates(states, cities)


def get_rule_store(
    name: str,
    *,
    rules_path: str | Path | None = None,
    rules: Optional[Iterable[RuleRecord]] = None,
) -> RuleStore:
    """Resolve a rule store implementation by name (json|memory)."""
    source = (name or "").strip().lower()
    if source in ("json", ""):
        if not rules_path:
            raise ValueError("The json rule store requires a rules path (set RULES_PATH).")
        return JsonFileRuleStore(Path(rules_path))
    if source == "memory":
        return InMemoryRuleStore(rules or ())
    raise ValueError(f"Unknown rule store '{name}' (expected 'json' or 'memory').")


def build_matcher(config: MatcherConfig | None = None, **store_kwargs) -> RuleMatcher:
    cfg = config or get_matcher_config()
    store_kwargs.setdefault("rules_path", cfg.rules_path)
    store = get_rule_store(cfg.rule_store, **store_kwargs)
    return RuleMatcher(store, cache_ttl_seconds=cfg.cache_ttl_seconds, debug_timing=cfg.debug_match)

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Protocol, Sequence

from .context import normalize_city, normalize_state
from .models import LEVEL_ORDER, RuleLevel, RuleRecord

log = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60.0


class RuleStore(Protocol):
    def fetch_candidates(self, states: Sequence[str], cities: Sequence[str]) -> list[RuleRecord]:
        """Return federal rules plus state/city rules inside the footprint.

        Ordered federal, state, city; ascending title within a level.
        Must not evaluate rule conditions.
        """
        ...


class RetrievalFailure(RuntimeError):
    def __init__(self, key: str, message: str):
        super().__init__(f"Candidate retrieval failed for jurisdiction '{key}': {message}")
        self.key = key


def cache_key(states: Iterable[str], cities: Iterable[str]) -> str:
    return f"{','.join(sorted(set(states)))}|{','.join(sorted(set(cities)))}"


def rule_in_footprint(rule: RuleRecord, states: Iterable[str], cities: Iterable[str]) -> bool:
    if rule.level == RuleLevel.FEDERAL:
        return True
    state_set = set(states)
    if normalize_state(rule.state) not in state_set:
        return False
    if rule.level == RuleLevel.STATE:
        return True
    return normalize_city(rule.city) in set(cities)


def order_candidates(rules: Iterable[RuleRecord]) -> list[RuleRecord]:
    return sorted(rules, key=lambda r: (LEVEL_ORDER[r.level], r.title))


def filter_candidates(
    rules: Iterable[RuleRecord],
    states: Sequence[str],
    cities: Sequence[str],
) -> list[RuleRecord]:
    return order_candidates(r for r in rules if rule_in_footprint(r, states, cities))


@dataclass(frozen=True)
class CacheEntry:
    rules: tuple[RuleRecord, ...]
    expires_at: float


class CandidateCache:
    """Time-bounded memo of candidate rules keyed by jurisdiction footprint.

    Entries are immutable snapshots and are replaced on miss, never mutated.
    The lock guards the dict only; store I/O happens outside it, so two
    concurrent misses for one key may both query the store (last write wins).
    """

    def __init__(
        self,
        store: RuleStore,
        *,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def fetch_candidates(self, states: Sequence[str], cities: Sequence[str]) -> list[RuleRecord]:
        key = cache_key(states, cities)
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
        if entry is not None and entry.expires_at > now:
            log.debug("Candidate cache hit for %s (%d rules)", key, len(entry.rules))
            return list(entry.rules)

        log.debug("Candidate cache miss for %s", key)
        rules = self._load(key, states, cities)
        if self._ttl > 0:
            with self._lock:
                self._entries[key] = CacheEntry(rules=tuple(rules), expires_at=now + self._ttl)
        return list(rules)

    def _load(self, key: str, states: Sequence[str], cities: Sequence[str]) -> list[RuleRecord]:
        try:
            return list(self._store.fetch_candidates(sorted(set(states)), sorted(set(cities))))
        except RetrievalFailure:
            raise
        except Exception as exc:
            raise RetrievalFailure(key, str(exc)) from exc

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

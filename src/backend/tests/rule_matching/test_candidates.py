import threading
from unittest.mock import Mock

import pytest

from common.rule_matching.candidates import (
    CandidateCache,
    RetrievalFailure,
    cache_key,
    filter_candidates,
)


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_cache_key_is_sorted_and_deduplicated():
    assert cache_key(["NY", "CA", "NY"], ["los angeles"]) == "CA,NY|los angeles"
    assert cache_key(["CA"], []) == "CA|"


def test_filter_candidates_applies_footprint(catalog_rules):
    rules = filter_candidates(catalog_rules, ["CA"], ["los angeles"])
    ids = [r.id for r in rules]
    assert "fed-ein" in ids
    assert "ca-abc-offsale" in ids
    assert "la-btrc" in ids
    assert "ny-sales-tax" not in ids
    assert "sf-hcso" not in ids
    assert "nyc-esst" not in ids


def test_city_rule_requires_matching_state(make_rule):
    rule = make_rule("springfield", level="city", state="OH", city="Springfield")
    assert filter_candidates([rule], ["IL"], ["springfield"]) == []
    assert filter_candidates([rule], ["OH"], ["springfield"]) == [rule]


def test_candidates_ordered_by_level_then_title(make_rule):
    rules = [
        make_rule("c", title="Alpha city", level="city", state="CA", city="Los Angeles"),
        make_rule("s2", title="Zeta state", level="state", state="CA"),
        make_rule("f", title="Zulu federal"),
        make_rule("s1", title="Beta state", level="state", state="CA"),
        make_rule("f2", title="Able federal"),
    ]
    ordered = filter_candidates(rules, ["CA"], ["los angeles"])
    assert [r.id for r in ordered] == ["f2", "f", "s1", "s2", "c"]


def test_cache_hit_within_ttl_skips_store(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    clock = _Clock()
    cache = CandidateCache(store, ttl_seconds=60, clock=clock)

    first = cache.fetch_candidates(["NY", "CA"], ["los angeles"])
    clock.now += 59
    second = cache.fetch_candidates(["CA", "NY"], ["los angeles"])

    assert first == second
    store.fetch_candidates.assert_called_once_with(["CA", "NY"], ["los angeles"])
    assert len(cache) == 1


def test_cache_refreshes_after_expiry(make_rule):
    store = Mock()
    store.fetch_candidates.side_effect = [[make_rule("old")], [make_rule("new")]]
    clock = _Clock()
    cache = CandidateCache(store, ttl_seconds=60, clock=clock)

    assert [r.id for r in cache.fetch_candidates(["CA"], [])] == ["old"]
    clock.now += 60
    assert [r.id for r in cache.fetch_candidates(["CA"], [])] == ["new"]
    assert store.fetch_candidates.call_count == 2


def test_distinct_footprints_use_distinct_entries(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    cache = CandidateCache(store, clock=_Clock())
    cache.fetch_candidates(["CA"], [])
    cache.fetch_candidates(["CA"], ["los angeles"])
    assert store.fetch_candidates.call_count == 2
    assert len(cache) == 2


def test_zero_ttl_disables_caching(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    cache = CandidateCache(store, ttl_seconds=0, clock=_Clock())
    cache.fetch_candidates(["CA"], [])
    cache.fetch_candidates(["CA"], [])
    assert store.fetch_candidates.call_count == 2
    assert len(cache) == 0


def test_cached_list_is_not_shared_with_callers(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    cache = CandidateCache(store, clock=_Clock())
    cache.fetch_candidates(["CA"], []).clear()
    assert len(cache.fetch_candidates(["CA"], [])) == 1


def test_store_errors_become_retrieval_failure():
    store = Mock()
    store.fetch_candidates.side_effect = TimeoutError("statement timeout")
    cache = CandidateCache(store, clock=_Clock())

    with pytest.raises(RetrievalFailure) as excinfo:
        cache.fetch_candidates(["NY"], ["buffalo"])

    assert excinfo.value.key == "NY|buffalo"
    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert len(cache) == 0


def test_clear_empties_cache(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    cache = CandidateCache(store, clock=_Clock())
    cache.fetch_candidates(["CA"], [])
    cache.clear()
    assert len(cache) == 0


def test_concurrent_requests_share_one_entry(make_rule):
    store = Mock()
    store.fetch_candidates.return_value = [make_rule("fed")]
    cache = CandidateCache(store)
    results = []

    def _worker():
        results.append(cache.fetch_candidates(["CA"], ["los angeles"]))

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all([r.id for r in res] == ["fed"] for res in results)
    assert len(cache) == 1

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

from .candidates import DEFAULT_CACHE_TTL_SECONDS


load_dotenv()


class MatcherConfig(BaseModel):
    rule_store: str = "json"
    rules_path: str = ""
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    # Emit candidate/evaluation timings at INFO instead of DEBUG.
    debug_match: bool = False


def get_matcher_config() -> MatcherConfig:
    """
    Load matcher configuration from environment variables.

    Reads RULE_STORE, RULES_PATH, CANDIDATE_CACHE_TTL_SECONDS, DEBUG_MATCH.
    """
    ttl_raw = os.getenv("CANDIDATE_CACHE_TTL_SECONDS", "").strip()
    try:
        ttl = float(ttl_raw) if ttl_raw else DEFAULT_CACHE_TTL_SECONDS
    except ValueError as exc:
        raise ValueError(f"CANDIDATE_CACHE_TTL_SECONDS must be a number, got '{ttl_raw}'.") from exc

    return MatcherConfig(
        rule_store=os.getenv("RULE_STORE", "json").strip().lower() or "json",
        rules_path=os.getenv("RULES_PATH", "").strip(),
        cache_ttl_seconds=ttl,
        # Any non-empty value turns timing logs on.
        debug_match=bool(os.getenv("DEBUG_MATCH", "").strip()),
    )

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from .due_dates import compute_due_date
from .models import (
    BusinessProfile,
    GroupedMatches,
    Jurisdiction,
    MatchReport,
    MatchResult,
    RuleLevel,
    RuleRecord,
)


def _side_channel(conditions: Dict[str, Any], key: str) -> str:
    value = conditions.get(key)
    return "" if value is None else str(value)


def to_match_result(rule: RuleRecord, reasons: Sequence[str], profile: BusinessProfile) -> MatchResult:
    conditions = rule.conditions or {}
    return MatchResult(
        id=rule.id,
        title=rule.title,
        summary=rule.summary or "",
        source=rule.source or "",
        level=rule.level,
        jurisdiction=Jurisdiction(state=rule.state, city=rule.city),
        applies_because=list(reasons),
        action=_side_channel(conditions, "action"),
        owner=_side_channel(conditions, "owner"),
        effort=_side_channel(conditions, "effort"),
        due_date=compute_due_date(conditions, profile),
    )


def assemble(
    matches: Iterable[tuple[RuleRecord, Sequence[str]]],
    profile: BusinessProfile,
) -> MatchReport:
    """Group matched rules by level, keeping candidate order inside each group."""
    grouped = GroupedMatches()
    for rule, reasons in matches:
        grouped.bucket(rule.level).append(to_match_result(rule, reasons, profile))

    count = sum(len(grouped.bucket(level)) for level in RuleLevel)
    return MatchReport(grouped=grouped, count=count)


def build_response(
    report: MatchReport,
    profile: BusinessProfile,
    *,
    levels: Optional[Iterable[str]] = None,
    include_reasons: bool = True,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Shape a report for API/CLI output.

    Buckets outside ``levels`` are emptied, reasons are dropped when
    ``include_reasons`` is false and each bucket is capped at ``limit``.
    ``count`` stays the unfiltered total.
    """
    wanted = {lvl.strip().lower() for lvl in levels} if levels is not None else {lvl.value for lvl in RuleLevel}
    cap = max(0, limit) if limit is not None else None

    grouped: Dict[str, list[Dict[str, Any]]] = {}
    for level in RuleLevel:
        items = report.grouped.bucket(level) if level.value in wanted else []
        dumped = [
            item.model_dump(mode="json", by_alias=True, exclude=None if include_reasons else {"applies_because"})
            for item in items
        ]
        grouped[level.value] = dumped[:cap] if cap is not None else dumped

    return {
        "business": {
            "name": profile.business_name or "Business",
            "industry": profile.industry,
            "location": f"{profile.city}, {profile.state}",
        },
        "grouped": grouped,
        "count": report.count,
        "meta": {
            "countsByBucket": {level.value: len(report.grouped.bucket(level)) for level in RuleLevel},
            "includeReasons": include_reasons,
            "levelsReturned": {level.value: level.value in wanted for level in RuleLevel},
            "perBucketLimit": cap,
        },
    }

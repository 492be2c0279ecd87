from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .conditions import (
    AllowList,
    BooleanGate,
    Condition,
    ExactBoolean,
    LocationAllowList,
    MalformedCondition,
    NumericBound,
    SetMembership,
    parse_conditions,
)
from .context import EvaluationContext

log = logging.getLogger(__name__)

APPLIES_GENERALLY = "Applies generally (no extra conditions)."
MEETS_CONDITIONS = "Meets rule conditions."


@dataclass(frozen=True)
class ConditionOutcome:
    matched: bool
    reasons: tuple[str, ...] = ()


NO_MATCH = ConditionOutcome(matched=False)


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _check_numeric_bound(cond: NumericBound, ctx: EvaluationContext) -> Optional[str]:
    have = getattr(ctx, cond.spec.attr) or 0
    if cond.spec.upper_bound:
        if have > cond.bound:
            return None
    elif have < cond.bound:
        return None
    return cond.spec.reason.format(have=have, bound=_format_number(cond.bound))


def _check_set_membership(cond: SetMembership, ctx: EvaluationContext) -> Optional[str]:
    if getattr(ctx, cond.spec.attr) not in cond.allowed:
        return None
    return cond.spec.reason.format(industry=ctx.industry)


def _check_boolean_gate(cond: BooleanGate, ctx: EvaluationContext) -> Optional[str]:
    if not getattr(ctx, cond.spec.attr):
        return None
    return cond.spec.reason


def _check_allow_list(cond: AllowList, ctx: EvaluationContext) -> Optional[str]:
    have = getattr(ctx, cond.spec.attr)
    if isinstance(have, tuple):
        # Array-valued context fields match on any intersection.
        if not any(v in cond.allowed for v in have):
            return None
        return cond.spec.reason
    if not have or have not in cond.allowed:
        return None
    return cond.spec.reason.format(value=have)


def _check_location(cond: LocationAllowList, ctx: EvaluationContext) -> Optional[str]:
    if not any(city in cond.allowed for city in getattr(ctx, cond.spec.attr)):
        return None
    return cond.spec.reason


def _check_exact_boolean(cond: ExactBoolean, ctx: EvaluationContext) -> Optional[str]:
    if bool(getattr(ctx, cond.spec.attr)) != cond.expected:
        return None
    return cond.spec.reason if cond.expected else cond.spec.reason_false


_CHECKS: Dict[type, Callable[[Any, EvaluationContext], Optional[str]]] = {
    NumericBound: _check_numeric_bound,
    SetMembership: _check_set_membership,
    BooleanGate: _check_boolean_gate,
    AllowList: _check_allow_list,
    LocationAllowList: _check_location,
    ExactBoolean: _check_exact_boolean,
}


def check_condition(cond: Condition, ctx: EvaluationContext) -> Optional[str]:
    """Return the reason the condition passed, or None when it fails."""
    return _CHECKS[type(cond)](cond, ctx)


def evaluate_conditions(
    conditions: Optional[Mapping[str, Any]],
    ctx: EvaluationContext,
    *,
    rule_id: Optional[str] = None,
) -> ConditionOutcome:
    """Evaluate a condition document as an implicit AND over recognized keys.

    The first failing key rejects the rule and discards any reasons gathered
    so far. A recognized key with a malformed value rejects only this rule.
    """
    if not conditions:
        return ConditionOutcome(matched=True, reasons=(APPLIES_GENERALLY,))

    try:
        parsed, _ = parse_conditions(conditions)
    except MalformedCondition as exc:
        log.warning("Rule %s has malformed condition '%s': %s", rule_id or "<unknown>", exc.key, exc)
        return NO_MATCH

    reasons: list[str] = []
    for cond in parsed:
        reason = check_condition(cond, ctx)
        if reason is None:
            return NO_MATCH
        reasons.append(reason)

    return ConditionOutcome(matched=True, reasons=tuple(reasons) or (MEETS_CONDITIONS,))

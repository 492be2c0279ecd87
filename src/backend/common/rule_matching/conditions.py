"""Typed view over a rule's condition document.

A condition document is an open JSON object authored outside this codebase.
Each recognized key maps to one variant (numeric bound, set membership,
boolean gate, allow-list, location allow-list, exact boolean); keys that are
not recognized become ``Unrecognized`` and are ignored by the evaluator.
Parsing raises ``MalformedCondition`` when a recognized key carries a value of
the wrong shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .context import normalize_city, normalize_state


class ConditionKind(str, Enum):
    NUMERIC_BOUND = "numeric_bound"
    SET_MEMBERSHIP = "set_membership"
    BOOLEAN_GATE = "boolean_gate"
    ALLOW_LIST = "allow_list"
    LOCATION = "location"
    EXACT_BOOLEAN = "exact_boolean"
    UNRECOGNIZED = "unrecognized"


# Keys read by the due-date calculator and result assembler, never predicates.
SIDE_CHANNEL_KEYS = frozenset({"action", "owner", "effort", "dueFrom", "dueInDays"})


class MalformedCondition(ValueError):
    def __init__(self, key: str, value: Any, expected: str):
        super().__init__(f"Condition '{key}' expects {expected}, got {type(value).__name__}: {value!r}")
        self.key = key
        self.value = value
        self.expected = expected


def _identity(value: str) -> str:
    return value


def _lower(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class ConditionSpec:
    key: str
    kind: ConditionKind
    # EvaluationContext attribute the condition is checked against.
    attr: str
    normalize: Callable[[str], str] = _identity
    reason: str = ""
    # Exact booleans only: reason used when the condition value is False.
    reason_false: str = ""
    upper_bound: bool = False


def _exact(key: str, attr: str, true_word: str, false_word: str = "No") -> ConditionSpec:
    return ConditionSpec(
        key=key,
        kind=ConditionKind.EXACT_BOOLEAN,
        attr=attr,
        reason=f"{true_word} {key}.",
        reason_false=f"{false_word} {key}.",
    )


def _structure(key: str, attr: str) -> ConditionSpec:
    return ConditionSpec(key=key, kind=ConditionKind.ALLOW_LIST, attr=attr, reason=f"{key} matches.")


# Evaluation order is the order of this tuple.
CONDITION_SPECS: tuple[ConditionSpec, ...] = (
    # employees
    ConditionSpec(
        key="employeesMin",
        kind=ConditionKind.NUMERIC_BOUND,
        attr="employees_total",
        reason="Meets minimum employees threshold (have {have} ≥ {bound}).",
    ),
    ConditionSpec(
        key="employeesMax",
        kind=ConditionKind.NUMERIC_BOUND,
        attr="employees_total",
        reason="Within maximum employees threshold (have {have} ≤ {bound}).",
        upper_bound=True,
    ),
    # industry
    ConditionSpec(
        key="industry",
        kind=ConditionKind.SET_MEMBERSHIP,
        attr="industry_lc",
        normalize=_lower,
        reason="Industry matches ({industry}).",
    ),
    # derived operational flags
    ConditionSpec(
        key="requiresFood",
        kind=ConditionKind.BOOLEAN_GATE,
        attr="requires_food",
        reason="Handles food / on-site prep.",
    ),
    ConditionSpec(
        key="requiresAlcohol",
        kind=ConditionKind.BOOLEAN_GATE,
        attr="requires_alcohol",
        reason="Sells alcohol.",
    ),
    # alcohol nuance
    ConditionSpec(
        key="alcoholType",
        kind=ConditionKind.ALLOW_LIST,
        attr="alcohol_type",
        reason="Alcohol type allowed ({value}).",
    ),
    ConditionSpec(
        key="alcoholSalesContext",
        kind=ConditionKind.ALLOW_LIST,
        attr="alcohol_sales_context",
        reason="Alcohol sales context matches ({value}).",
    ),
    # location limits
    ConditionSpec(
        key="cities",
        kind=ConditionKind.LOCATION,
        attr="cities",
        normalize=normalize_city,
        reason="City explicitly included.",
    ),
    # minors / tipped
    ConditionSpec(
        key="employsMinors",
        kind=ConditionKind.EXACT_BOOLEAN,
        attr="employs_minors",
        reason="Employs minors.",
        reason_false="Does not employ minors.",
    ),
    ConditionSpec(
        key="minorsAges",
        kind=ConditionKind.ALLOW_LIST,
        attr="minors_ages",
        reason="Minor age range matches.",
    ),
    ConditionSpec(
        key="tippedWorkers",
        kind=ConditionKind.EXACT_BOOLEAN,
        attr="tipped_workers",
        reason="Has tipped workers.",
        reason_false="No tipped workers.",
    ),
    ConditionSpec(
        key="tippedPercentBand",
        kind=ConditionKind.ALLOW_LIST,
        attr="tipped_percent_band",
        reason="Tipped share matches ({value}).",
    ),
    # transport / safety
    _exact("commercialVehicles", "commercial_vehicles", "Requires"),
    _exact("hasCDLDrivers", "has_cdl_drivers", "Requires"),
    _exact("trucksOver10kInterstate", "trucks_over_10k_interstate", "Requires"),
    _exact("usesForklifts", "uses_forklifts", "Requires"),
    _exact("hazardousMaterials", "hazardous_materials", "Requires"),
    # privacy / data
    _exact("collectsCustomerData", "collects_customer_data", "Has"),
    _exact("handlesPHI", "handles_phi", "Has"),
    _exact("childrenUnder13", "children_under_13", "Has"),
    _exact("collectsFromCA", "collects_from_ca", "Has"),
    _exact("sellsOrSharesData", "sells_or_shares_data", "Has"),
    _exact("usesBiometrics", "uses_biometrics", "Has"),
    ConditionSpec(
        key="collectsFromOtherStates",
        kind=ConditionKind.ALLOW_LIST,
        attr="collects_from_other_states",
        normalize=normalize_state,
        reason="Collects data from specified states.",
    ),
    ConditionSpec(
        key="dataVolumeBand",
        kind=ConditionKind.ALLOW_LIST,
        attr="data_volume_band",
        reason="Data volume band matches ({value}).",
    ),
    # structure / payroll
    _structure("revenueBand", "revenue_band"),
    _structure("legalStructure", "legal_structure"),
    _structure("payrollFrequency", "payroll_frequency"),
    _structure("numLocations", "num_locations"),
    # facility nuance
    _exact("onSitePrep", "on_site_prep", "Has"),
    _exact("seatingOnPrem", "seating_on_prem", "Has"),
    _exact("meatDairy", "meat_dairy", "Has"),
    _exact("publicFacingSite", "public_facing_site", "Has"),
    _exact("hasWebsiteOrApp", "has_website_or_app", "Has"),
    _exact("acceptsCardPayments", "accepts_card_payments", "Has"),
)

SPECS_BY_KEY: Dict[str, ConditionSpec] = {spec.key: spec for spec in CONDITION_SPECS}


@dataclass(frozen=True)
class NumericBound:
    spec: ConditionSpec
    bound: float


@dataclass(frozen=True)
class SetMembership:
    spec: ConditionSpec
    allowed: frozenset[str]


@dataclass(frozen=True)
class BooleanGate:
    spec: ConditionSpec


@dataclass(frozen=True)
class AllowList:
    spec: ConditionSpec
    allowed: frozenset[str]


@dataclass(frozen=True)
class LocationAllowList:
    spec: ConditionSpec
    allowed: frozenset[str]


@dataclass(frozen=True)
class ExactBoolean:
    spec: ConditionSpec
    expected: bool


@dataclass(frozen=True)
class Unrecognized:
    key: str
    value: Any


Condition = Union[NumericBound, SetMembership, BooleanGate, AllowList, LocationAllowList, ExactBoolean]


def _as_number(key: str, value: Any) -> float:
    # bool is an int subclass; a boolean bound is a shape error.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedCondition(key, value, "a number")
    return value


def _as_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise MalformedCondition(key, value, "a boolean")
    return value


def _as_string_set(key: str, value: Any, normalize: Callable[[str], str]) -> frozenset[str]:
    if not isinstance(value, list):
        raise MalformedCondition(key, value, "an array")
    out = set()
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            raise MalformedCondition(key, value, "an array of strings")
        out.add(normalize(str(item)))
    return frozenset(out)


def parse_condition(spec: ConditionSpec, value: Any) -> Optional[Condition]:
    """Build the variant for one recognized key.

    Returns None when the key imposes no constraint (a ``false`` boolean gate
    or an empty array).
    """
    if spec.kind == ConditionKind.NUMERIC_BOUND:
        return NumericBound(spec=spec, bound=_as_number(spec.key, value))
    if spec.kind == ConditionKind.BOOLEAN_GATE:
        return BooleanGate(spec=spec) if _as_bool(spec.key, value) else None
    if spec.kind == ConditionKind.EXACT_BOOLEAN:
        return ExactBoolean(spec=spec, expected=_as_bool(spec.key, value))

    allowed = _as_string_set(spec.key, value, spec.normalize)
    if not allowed:
        return None
    if spec.kind == ConditionKind.SET_MEMBERSHIP:
        return SetMembership(spec=spec, allowed=allowed)
    if spec.kind == ConditionKind.LOCATION:
        return LocationAllowList(spec=spec, allowed=allowed)
    return AllowList(spec=spec, allowed=allowed)


def parse_conditions(document: Optional[Mapping[str, Any]]) -> tuple[tuple[Condition, ...], tuple[Unrecognized, ...]]:
    """Split a condition document into ordered recognized conditions and ignored keys.

    ``null`` values are treated as absent keys.
    """
    if not document:
        return (), ()

    conditions: list[Condition] = []
    for spec in CONDITION_SPECS:
        if spec.key not in document or document[spec.key] is None:
            continue
        condition = parse_condition(spec, document[spec.key])
        if condition is not None:
            conditions.append(condition)

    unrecognized = tuple(
        Unrecognized(key=key, value=value)
        for key, value in document.items()
        if key not in SPECS_BY_KEY and key not in SIDE_CHANNEL_KEYS
    )
    return tuple(conditions), unrecognized

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .models import BusinessProfile


CA_STATE_CODE = "CA"


@dataclass(frozen=True)
class EvaluationContext:
    """Per-request view over a BusinessProfile used by the condition evaluator.

    Rebuilt for every match request; never cached across requests.
    """

    profile: BusinessProfile

    state: str
    city: str
    # Jurisdiction footprint: sorted, deduplicated state codes.
    states: tuple[str, ...]
    cities: tuple[str, ...]

    industry: str
    industry_lc: str
    employees_total: int

    # Food & alcohol
    requires_food: bool
    requires_alcohol: bool
    alcohol_type: Optional[str]
    alcohol_sales_context: Optional[str]
    on_site_prep: bool
    seating_on_prem: bool
    meat_dairy: bool

    # Workforce
    employs_minors: bool
    minors_ages: tuple[str, ...]
    tipped_workers: bool
    tipped_percent_band: Optional[str]
    uses_contractors_1099: bool

    # Transport / safety
    commercial_vehicles: bool
    has_cdl_drivers: bool
    trucks_over_10k_interstate: bool
    uses_forklifts: bool
    hazardous_materials: bool

    # Privacy / data
    collects_customer_data: bool
    handles_phi: bool
    children_under_13: bool
    collects_from_ca: bool
    collects_from_other_states: tuple[str, ...]
    data_volume_band: Optional[str]
    sells_or_shares_data: bool
    uses_biometrics: bool

    # Structure / operations
    revenue_band: Optional[str]
    legal_structure: Optional[str]
    payroll_frequency: Optional[str]
    num_locations: Optional[str]
    public_facing_site: bool
    has_website_or_app: bool
    accepts_card_payments: bool


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip()


def normalize_state(value: Optional[str]) -> str:
    return normalize_text(value).upper()


def normalize_city(value: Optional[str]) -> str:
    return normalize_text(value).lower()


def _enum_value(value: Optional[Enum | str]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def jurisdiction_states(profile: BusinessProfile) -> tuple[str, ...]:
    states = {normalize_state(profile.state)}
    for group in (
        profile.other_states,
        profile.remote_employee_states,
        profile.sales_states,
        profile.collects_from_other_states,
    ):
        states.update(normalize_state(s) for s in group)
    if profile.collects_from_ca:
        states.add(CA_STATE_CODE)
    states.discard("")
    return tuple(sorted(states))


def _states_tuple(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(s for s in (normalize_state(v) for v in values) if s)


def build_context(profile: BusinessProfile) -> EvaluationContext:
    city = normalize_city(profile.city)
    industry = normalize_text(profile.industry)

    return EvaluationContext(
        profile=profile,
        state=normalize_state(profile.state),
        city=city,
        states=jurisdiction_states(profile),
        cities=(city,) if city else (),
        industry=industry,
        industry_lc=industry.lower(),
        employees_total=profile.employees_total or 0,
        requires_food=bool(profile.handles_food or profile.on_site_prep or profile.meat_dairy),
        requires_alcohol=bool(profile.sells_alcohol or profile.alcohol_type),
        alcohol_type=_enum_value(profile.alcohol_type),
        alcohol_sales_context=_enum_value(profile.alcohol_sales_context),
        on_site_prep=bool(profile.on_site_prep),
        seating_on_prem=bool(profile.seating_on_prem),
        meat_dairy=bool(profile.meat_dairy),
        employs_minors=bool(profile.employs_minors),
        minors_ages=tuple(_enum_value(a) or "" for a in profile.minors_ages),
        tipped_workers=bool(profile.tipped_workers),
        tipped_percent_band=_enum_value(profile.tipped_percent_band),
        uses_contractors_1099=bool(profile.uses_contractors_1099),
        commercial_vehicles=bool(profile.commercial_vehicles),
        has_cdl_drivers=bool(profile.has_cdl_drivers),
        trucks_over_10k_interstate=bool(profile.trucks_over_10k_interstate),
        uses_forklifts=bool(profile.uses_forklifts),
        hazardous_materials=bool(profile.hazardous_materials),
        collects_customer_data=bool(profile.collects_customer_data),
        handles_phi=bool(profile.handles_phi),
        children_under_13=bool(profile.children_under_13),
        collects_from_ca=bool(profile.collects_from_ca),
        collects_from_other_states=_states_tuple(profile.collects_from_other_states),
        data_volume_band=_enum_value(profile.data_volume_band),
        sells_or_shares_data=bool(profile.sells_or_shares_data),
        uses_biometrics=bool(profile.uses_biometrics),
        revenue_band=_enum_value(profile.revenue_band),
        legal_structure=_enum_value(profile.legal_structure),
        payroll_frequency=_enum_value(profile.payroll_frequency),
        num_locations=_enum_value(profile.num_locations),
        public_facing_site=bool(profile.public_facing_site),
        has_website_or_app=bool(profile.has_website_or_app),
        accepts_card_payments=bool(profile.accepts_card_payments),
    )

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RuleLevel(str, Enum):
    FEDERAL = "federal"
    STATE = "state"
    CITY = "city"


LEVEL_ORDER: Dict[RuleLevel, int] = {
    RuleLevel.FEDERAL: 1,
    RuleLevel.STATE: 2,
    RuleLevel.CITY: 3,
}


class LocationType(str, Enum):
    STORE = "store"
    OFFICE = "office"
    WAREHOUSE = "warehouse"
    HOME = "home"


class RevenueBand(str, Enum):
    UNDER_100K = "<100k"
    FROM_100K_TO_1M = "100k-1M"
    FROM_1M_TO_5M = "1M-5M"
    OVER_5M = ">=5M"


class LegalStructure(str, Enum):
    LLC = "LLC"
    CORP = "Corp"
    S_CORP = "S-Corp"
    SOLE_PROP = "SoleProp"
    NONPROFIT = "Nonprofit"


class AlcoholType(str, Enum):
    BEER = "beer"
    WINE = "wine"
    SPIRITS = "spirits"


class AlcoholSalesContext(str, Enum):
    ON_PREMISE = "on-premise"
    OFF_PREMISE = "off-premise"
    BOTH = "both"


class PayrollFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"


class DataVolumeBand(str, Enum):
    UNDER_50K = "<50k"
    FROM_50K_TO_100K = "50k-100k"
    OVER_100K = ">=100k"


class MinorsAge(str, Enum):
    UNDER_16 = "<16"
    SIXTEEN_SEVENTEEN = "16-17"


class TippedPercentBand(str, Enum):
    UNDER_20 = "<20%"
    FROM_20_TO_50 = "20-50%"
    OVER_50 = ">50%"


class NumLocations(str, Enum):
    ONE = "1"
    TWO_TO_FOUR = "2-4"
    FIVE_PLUS = "5+"


class BusinessProfile(BaseModel):
    """Validated business intake record.

    Field names are snake_case; the camelCase names used by the intake form
    (``employeesTotal``, ``collectsFromCA``, ...) are accepted as aliases.
    Cross-field form rules (e.g. multi-state requires ``otherStates``) are
    enforced upstream and not re-checked here.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    # Basics
    business_name: str = Field("", alias="businessName")
    industry: str = ""
    state: str = ""
    city: str = ""
    county: Optional[str] = None
    zip: Optional[str] = None
    naics_code: Optional[str] = Field(None, alias="naicsCode")
    naics_title: Optional[str] = Field(None, alias="naicsTitle")
    employees_total: int = Field(0, alias="employeesTotal", ge=0)
    num_locations: Optional[NumLocations] = Field(None, alias="numLocations")
    business_start_date: Optional[date] = Field(None, alias="businessStartDate")
    first_employee_hire_date: Optional[date] = Field(None, alias="firstEmployeeHireDate")

    # Footprint & location
    has_physical_location: bool = Field(False, alias="hasPhysicalLocation")
    public_facing_premises: bool = Field(False, alias="publicFacingPremises")
    location_type: Optional[LocationType] = Field(None, alias="locationType")
    multi_state: bool = Field(False, alias="multiState")
    other_states: List[str] = Field(default_factory=list, alias="otherStates")
    has_remote_employees: bool = Field(False, alias="hasRemoteEmployees")
    remote_employee_states: List[str] = Field(default_factory=list, alias="remoteEmployeeStates")

    # Operations & workforce
    handles_food: bool = Field(False, alias="handlesFood")
    sells_alcohol: bool = Field(False, alias="sellsAlcohol")
    hazardous_materials: bool = Field(False, alias="hazardousMaterials")
    commercial_vehicles: bool = Field(False, alias="commercialVehicles")
    has_cdl_drivers: bool = Field(False, alias="hasCDLDrivers")
    accepts_card_payments: bool = Field(False, alias="acceptsCardPayments")
    collects_customer_data: bool = Field(False, alias="collectsCustomerData")
    tipped_workers: bool = Field(False, alias="tippedWorkers")
    tipped_percent_band: Optional[TippedPercentBand] = Field(None, alias="tippedPercentBand")
    employs_minors: bool = Field(False, alias="employsMinors")
    minors_ages: List[MinorsAge] = Field(default_factory=list, alias="minorsAges")
    uses_contractors_1099: bool = Field(False, alias="usesContractors1099")

    # Licensing & taxes
    sells_taxable: bool = Field(False, alias="sellsTaxable")
    sales_states: List[str] = Field(default_factory=list, alias="salesStates")
    online_only: bool = Field(False, alias="onlineOnly")
    online_marketplace: bool = Field(False, alias="onlineMarketplace")
    revenue_band: Optional[RevenueBand] = Field(None, alias="revenueBand")
    legal_structure: Optional[LegalStructure] = Field(None, alias="legalStructure")
    has_ein: bool = Field(False, alias="hasEIN")

    # Food & alcohol nuance
    on_site_prep: bool = Field(False, alias="onSitePrep")
    seating_on_prem: bool = Field(False, alias="seatingOnPrem")
    meat_dairy: bool = Field(False, alias="meatDairy")
    alcohol_type: Optional[AlcoholType] = Field(None, alias="alcoholType")
    alcohol_sales_context: Optional[AlcoholSalesContext] = Field(None, alias="alcoholSalesContext")
    server_training_planned: bool = Field(False, alias="serverTrainingPlanned")

    # Privacy
    handles_phi: bool = Field(False, alias="handlesPHI")
    children_under_13: bool = Field(False, alias="childrenUnder13")
    collects_from_ca: bool = Field(False, alias="collectsFromCA")
    collects_from_other_states: List[str] = Field(default_factory=list, alias="collectsFromOtherStates")
    data_volume_band: Optional[DataVolumeBand] = Field(None, alias="dataVolumeBand")
    sells_or_shares_data: bool = Field(False, alias="sellsOrSharesData")
    uses_biometrics: bool = Field(False, alias="usesBiometrics")

    # Safety & environment
    uses_refrigerants: bool = Field(False, alias="usesRefrigerants")
    uses_solvents: bool = Field(False, alias="usesSolvents")
    trucks_over_10k_interstate: bool = Field(False, alias="trucksOver10kInterstate")
    uses_forklifts: bool = Field(False, alias="usesForklifts")

    # Facilities & digital
    public_facing_site: bool = Field(False, alias="publicFacingSite")
    has_website_or_app: bool = Field(False, alias="hasWebsiteOrApp")

    # HR & benefits
    payroll_frequency: Optional[PayrollFrequency] = Field(None, alias="payrollFrequency")
    offers_health: bool = Field(False, alias="offersHealth")
    offers_401k: bool = Field(False, alias="offers401k")
    uses_peo: bool = Field(False, alias="usesPEO")

    # Trigger dates
    first_sale_date: Optional[date] = Field(None, alias="firstSaleDate")
    first_payroll_date: Optional[date] = Field(None, alias="firstPayrollDate")
    lease_date: Optional[date] = Field(None, alias="leaseDate")

    @field_validator(
        "county",
        "zip",
        "naics_code",
        "naics_title",
        "num_locations",
        "location_type",
        "tipped_percent_band",
        "revenue_band",
        "legal_structure",
        "alcohol_type",
        "alcohol_sales_context",
        "data_volume_band",
        "payroll_frequency",
        "business_start_date",
        "first_employee_hire_date",
        "first_sale_date",
        "first_payroll_date",
        "lease_date",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(
        "other_states",
        "remote_employee_states",
        "sales_states",
        "collects_from_other_states",
        "minors_ages",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def resolve_field(cls, name: str) -> Optional[str]:
        """Map a snake_case field name or its camelCase alias to the field name."""
        if name in cls.model_fields:
            return name
        for field_name, info in cls.model_fields.items():
            if info.alias == name:
                return field_name
        return None


class RuleRecord(BaseModel):
    """Read-only catalog rule.

    Accepts the seed-file shape (``jurisdiction: {state, city}``) and the
    flat row shape (``state``/``city`` or ``jurisdiction_state``/``jurisdiction_city``).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    summary: str = ""
    source: str = ""
    level: RuleLevel
    state: Optional[str] = None
    city: Optional[str] = None
    conditions: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _flatten_jurisdiction(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        jurisdiction = out.pop("jurisdiction", None)
        if not isinstance(jurisdiction, dict):
            jurisdiction = {}
        for key in ("state", "city"):
            fallbacks = (jurisdiction.get(key), out.pop(f"jurisdiction_{key}", None))
            for value in fallbacks:
                if out.get(key) is None and value is not None:
                    out[key] = value
        for key in ("summary", "source"):
            if out.get(key) is None:
                out.pop(key, None)
        if out.get("conditions") is None:
            out["conditions"] = {}
        return out


class Jurisdiction(BaseModel):
    state: Optional[str] = None
    city: Optional[str] = None


class MatchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    summary: str = ""
    source: str = ""
    level: RuleLevel
    jurisdiction: Jurisdiction = Field(default_factory=Jurisdiction)
    applies_because: List[str] = Field(default_factory=list, alias="appliesBecause")
    action: str = ""
    owner: str = ""
    effort: str = ""
    due_date: Optional[str] = Field(None, alias="dueDate")


class GroupedMatches(BaseModel):
    federal: List[MatchResult] = Field(default_factory=list)
    state: List[MatchResult] = Field(default_factory=list)
    city: List[MatchResult] = Field(default_factory=list)

    def bucket(self, level: RuleLevel) -> List[MatchResult]:
        return getattr(self, level.value)


class MatchReport(BaseModel):
    grouped: GroupedMatches = Field(default_factory=GroupedMatches)
    count: int = 0

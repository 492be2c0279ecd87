from common.rule_matching.context import build_context, jurisdiction_states


def test_state_upper_and_city_lower(make_profile):
    ctx = build_context(make_profile(state=" ca ", city="  Los Angeles "))
    assert ctx.state == "CA"
    assert ctx.city == "los angeles"
    assert ctx.cities == ("los angeles",)


def test_blank_city_yields_no_cities(make_ctx):
    ctx = make_ctx(city="   ")
    assert ctx.city == ""
    assert ctx.cities == ()


def test_footprint_unions_all_state_fields(make_profile):
    profile = make_profile(
        state="NY",
        otherStates=["oh"],
        remoteEmployeeStates=["NY"],
        salesStates=["CA", "NY"],
        collectsFromOtherStates=["OH"],
    )
    assert jurisdiction_states(profile) == ("CA", "NY", "OH")


def test_collects_from_ca_adds_ca(make_profile):
    profile = make_profile(state="NY", collectsFromCA=True)
    assert "CA" in build_context(profile).states


def test_footprint_is_sorted_and_deduplicated(make_profile):
    profile = make_profile(state="OH", otherStates=["NY", "CA", "NY"])
    assert build_context(profile).states == ("CA", "NY", "OH")


def test_requires_food_is_or_of_raw_flags(make_ctx):
    assert make_ctx().requires_food is False
    assert make_ctx(handlesFood=True).requires_food is True
    assert make_ctx(onSitePrep=True).requires_food is True
    assert make_ctx(meatDairy=True).requires_food is True


def test_requires_alcohol_from_sales_or_type(make_ctx):
    assert make_ctx().requires_alcohol is False
    assert make_ctx(sellsAlcohol=True).requires_alcohol is True
    assert make_ctx(alcoholType="beer").requires_alcohol is True


def test_enum_fields_pass_through_as_strings(make_ctx):
    ctx = make_ctx(
        alcoholSalesContext="off-premise",
        minorsAges=["16-17"],
        numLocations="2-4",
        revenueBand="<100k",
    )
    assert ctx.alcohol_sales_context == "off-premise"
    assert ctx.minors_ages == ("16-17",)
    assert ctx.num_locations == "2-4"
    assert ctx.revenue_band == "<100k"


def test_blank_optional_values_normalize_to_none(make_ctx):
    ctx = make_ctx(alcoholType="", firstPayrollDate="")
    assert ctx.alcohol_type is None
    assert ctx.requires_alcohol is False
    assert ctx.profile.first_payroll_date is None


def test_industry_trimmed_and_lowercased_copy(make_ctx):
    ctx = make_ctx(industry="  Restaurant ")
    assert ctx.industry == "Restaurant"
    assert ctx.industry_lc == "restaurant"


def test_context_is_rebuilt_per_profile(make_profile):
    base = make_profile()
    food = base.model_copy(update={"handles_food": True})
    assert build_context(base).requires_food is False
    assert build_context(food).requires_food is True

import pytest

from common.rule_matching.conditions import (
    AllowList,
    BooleanGate,
    ExactBoolean,
    LocationAllowList,
    MalformedCondition,
    NumericBound,
    SetMembership,
    parse_conditions,
)


def test_parse_returns_variants_in_evaluation_order():
    parsed, unrecognized = parse_conditions(
        {
            "acceptsCardPayments": True,
            "cities": ["Los Angeles"],
            "industry": ["Retail"],
            "employeesMax": 10,
            "requiresFood": True,
            "revenueBand": ["<100k"],
        }
    )
    assert [type(c) for c in parsed] == [
        NumericBound,
        SetMembership,
        BooleanGate,
        LocationAllowList,
        AllowList,
        ExactBoolean,
    ]
    assert unrecognized == ()


def test_allow_list_values_are_normalized():
    parsed, _ = parse_conditions(
        {"industry": [" Retail "], "cities": ["Los Angeles"], "collectsFromOtherStates": ["ny"]}
    )
    by_key = {c.spec.key: c for c in parsed}
    assert by_key["industry"].allowed == frozenset({"retail"})
    assert by_key["cities"].allowed == frozenset({"los angeles"})
    assert by_key["collectsFromOtherStates"].allowed == frozenset({"NY"})


def test_numeric_allow_list_items_are_stringified():
    parsed, _ = parse_conditions({"numLocations": [1, "2-4"]})
    assert parsed[0].allowed == frozenset({"1", "2-4"})


def test_false_gate_and_empty_arrays_impose_no_constraint():
    parsed, _ = parse_conditions({"requiresFood": False, "industry": [], "alcoholType": []})
    assert parsed == ()


def test_null_values_are_treated_as_absent():
    parsed, _ = parse_conditions({"employeesMin": None, "tippedWorkers": None})
    assert parsed == ()


def test_unknown_keys_are_reported_and_side_channel_keys_are_not():
    _, unrecognized = parse_conditions(
        {"futureFlag": True, "action": "File", "dueFrom": "leaseDate", "dueInDays": 5}
    )
    assert [u.key for u in unrecognized] == ["futureFlag"]


@pytest.mark.parametrize(
    "document, key",
    [
        ({"industry": "Retail"}, "industry"),
        ({"employeesMin": "10"}, "employeesMin"),
        ({"employeesMax": True}, "employeesMax"),
        ({"employsMinors": "yes"}, "employsMinors"),
        ({"requiresAlcohol": 1}, "requiresAlcohol"),
        ({"minorsAges": [{"age": 16}]}, "minorsAges"),
    ],
)
def test_wrong_shapes_raise_malformed_condition(document, key):
    with pytest.raises(MalformedCondition) as excinfo:
        parse_conditions(document)
    assert excinfo.value.key == key

"""Unit tests for rule evaluator."""

import pytest

from persona_engine.engine.evaluator import InvalidRuleError, evaluate, validate_condition
from persona_engine.engine.rules import (
    FEMALE_LEADER_PERSONA,
    GENERIC_PERSONA,
    NAT_MILL_PERSONA,
)
from persona_engine.engine.snapshot import ConfigSnapshot
from persona_engine.errors import ValidationError


def profile(**overrides):
    base = {"nationality": "SA", "age": 30, "income": 25000, "gender": "Female", "consent": True}
    base.update(overrides)
    return base


def test_scenario_a_matches_both_reference_rules():
    """Millennial national and female leader both fire, in rule order."""
    result = evaluate(profile(), ConfigSnapshot())
    assert result == [NAT_MILL_PERSONA, FEMALE_LEADER_PERSONA]


def test_scenario_b_falls_back_to_generic():
    result = evaluate(
        profile(nationality="US", age=50, income=5000, gender="Male"), ConfigSnapshot()
    )
    assert result == [GENERIC_PERSONA]


def test_consent_false_rejected():
    with pytest.raises(ValidationError) as exc_info:
        evaluate(profile(consent=False), ConfigSnapshot())
    assert exc_info.value.details["field"] == "consent"


def test_consent_missing_rejected():
    attrs = profile()
    del attrs["consent"]
    with pytest.raises(ValidationError):
        evaluate(attrs, ConfigSnapshot())


@pytest.mark.parametrize("field", ["nationality", "age", "income"])
def test_mandatory_fields(field):
    with pytest.raises(ValidationError) as exc_info:
        evaluate(profile(**{field: None}), ConfigSnapshot())
    assert field in exc_info.value.message


def test_gender_is_optional():
    result = evaluate(profile(gender=None), ConfigSnapshot())
    assert result == [NAT_MILL_PERSONA]


def test_age_bounds_inclusive():
    snapshot = ConfigSnapshot()
    assert NAT_MILL_PERSONA in evaluate(profile(age=25), snapshot)
    assert NAT_MILL_PERSONA in evaluate(profile(age=40), snapshot)
    assert NAT_MILL_PERSONA not in evaluate(profile(age=24), snapshot)
    assert NAT_MILL_PERSONA not in evaluate(profile(age=41), snapshot)


def test_income_threshold_is_strict():
    snapshot = ConfigSnapshot()
    assert FEMALE_LEADER_PERSONA not in evaluate(profile(income=20000), snapshot)
    assert FEMALE_LEADER_PERSONA in evaluate(profile(income=20000.01), snapshot)


def test_fallback_never_combined():
    """Only the female leader rule fires - no generic persona alongside it."""
    result = evaluate(profile(nationality="US"), ConfigSnapshot())
    assert result == [FEMALE_LEADER_PERSONA]


def test_thresholds_come_from_snapshot():
    """Retuning parameters and lists changes the outcome without code changes."""
    snapshot = ConfigSnapshot.build(
        parameters=[("AGE_MIN_MILL", "35", "number"), ("AGE_MAX_MILL", "45", "number")],
        lists=[("COUNTRIES_NAT_MILL", ["KW", "QA"])],
    )
    assert evaluate(profile(nationality="KW", age=42, gender="Male"), snapshot) == [NAT_MILL_PERSONA]
    assert evaluate(profile(nationality="SA", age=42, gender="Male"), snapshot) == [GENERIC_PERSONA]
    assert evaluate(profile(nationality="KW", age=30, gender="Male"), snapshot) == [GENERIC_PERSONA]


def test_deterministic():
    snapshot = ConfigSnapshot()
    results = {tuple(evaluate(profile(), snapshot)) for _ in range(20)}
    assert len(results) == 1


def test_stored_rules_replace_reference_rules():
    rules = [
        {
            "rule_id": "R_RIYADH",
            "persona_id": "CITY_RIYADH_02",
            "name": "Riyadh residents",
            "priority": 5,
            "when": {"eq": ["city", "Riyadh"]},
        }
    ]
    snapshot = ConfigSnapshot.build(rules=rules)
    assert evaluate(profile(city="Riyadh"), snapshot) == ["CITY_RIYADH_02"]
    assert evaluate(profile(city="Jeddah"), snapshot) == [GENERIC_PERSONA]


def test_priority_orders_output():
    rules = [
        {"rule_id": "LOW", "persona_id": "P_LOW", "name": "Low", "priority": 1,
         "when": {"exists": "nationality"}},
        {"rule_id": "HIGH", "persona_id": "P_HIGH", "name": "High", "priority": 9,
         "when": {"exists": "nationality"}},
    ]
    assert evaluate(profile(), ConfigSnapshot.build(rules=rules)) == ["P_HIGH", "P_LOW"]


def test_disabled_rule_skipped():
    rules = [
        {"rule_id": "OFF", "persona_id": "P_OFF", "name": "Off", "priority": 1,
         "when": {"exists": "nationality"}, "enabled": False},
    ]
    assert evaluate(profile(), ConfigSnapshot.build(rules=rules)) == [GENERIC_PERSONA]


def test_map_reference_with_field_lookup():
    """Map operands resolve the lookup key from the profile."""
    rules = [
        {
            "rule_id": "R_GCC_REGION",
            "persona_id": "GULF_01",
            "name": "Gulf region",
            "priority": 1,
            "when": {"eq": ["region", {"map": ["NATIONALITY_REGION", {"field": "nationality"}]}]},
        }
    ]
    snapshot = ConfigSnapshot.build(
        maps=[("NATIONALITY_REGION", "SA", "GULF"), ("NATIONALITY_REGION", "EG", "NORTH_AFRICA")],
        rules=rules,
    )
    assert evaluate(profile(region="GULF"), snapshot) == ["GULF_01"]
    assert evaluate(profile(region="GULF", nationality="EG"), snapshot) == [GENERIC_PERSONA]


def test_not_in_and_any():
    rules = [
        {
            "rule_id": "R_EXPAT",
            "persona_id": "EXPAT_03",
            "name": "Expat high earner or senior",
            "priority": 1,
            "when": {
                "all": [
                    {"not_in": ["nationality", {"list": "COUNTRIES_NAT_MILL"}]},
                    {"any": [{"gte": ["income", 50000]}, {"gte": ["age", 60]}]},
                ]
            },
        }
    ]
    snapshot = ConfigSnapshot.build(rules=rules)
    assert evaluate(profile(nationality="IN", income=60000), snapshot) == ["EXPAT_03"]
    assert evaluate(profile(nationality="IN", age=65, income=1000), snapshot) == ["EXPAT_03"]
    assert evaluate(profile(nationality="SA", income=60000), snapshot) == [GENERIC_PERSONA]


def test_membership_is_exact_string_match():
    assert NAT_MILL_PERSONA not in evaluate(profile(nationality="sa"), ConfigSnapshot())


def test_numeric_strings_compare_as_numbers():
    assert evaluate(profile(age="30", income="25000"), ConfigSnapshot()) == [
        NAT_MILL_PERSONA,
        FEMALE_LEADER_PERSONA,
    ]


def test_validate_condition_accepts_reference_rules():
    from persona_engine.engine.rules import DEFAULT_RULES

    for rule in DEFAULT_RULES:
        validate_condition(rule["when"])


@pytest.mark.parametrize(
    "when",
    [
        {"between": ["age", [1, 2]]},
        {"eq": ["age"]},
        {"all": []},
        {"exists": ["age"]},
        {"gt": ["income", {"setting": "X"}]},
        {"eq": ["region", {"map": "NATIONALITY_REGION"}]},
        {"eq": ["a", 1], "neq": ["b", 2]},
    ],
)
def test_validate_condition_rejects_malformed(when):
    with pytest.raises(InvalidRuleError):
        validate_condition(when)


MALFORMED_REFERENCES = [
    {"gte": ["age", {"param": ["AGE_MIN_MILL"]}]},
    {"in": ["nationality", {"list": {"key": "COUNTRIES_NAT_MILL"}}]},
    {"eq": ["city", {"field": 5}]},
    {"eq": ["region", {"map": [["NATIONALITY_REGION"], {"field": "nationality"}]}]},
    {"eq": ["region", {"map": ["NATIONALITY_REGION", {"param": "X", "field": "y"}]}]},
    {"eq": ["region", {"map": ["NATIONALITY_REGION", ["SA"]]}]},
    {"in": ["nationality", [{"list": "COUNTRIES_NAT_MILL"}]]},
]


@pytest.mark.parametrize("when", MALFORMED_REFERENCES)
def test_validate_condition_rejects_bad_reference_arguments(when):
    with pytest.raises(InvalidRuleError):
        validate_condition(when)
    with pytest.raises(InvalidRuleError):
        validate_condition({"all": [{"exists": "age"}, when]})


@pytest.mark.parametrize(
    "when",
    MALFORMED_REFERENCES
    + [
        {"neq": ["city", {"field": 5}]},
        {"not_in": ["nationality", {"list": ["SA"]}]},
        {"eq": [7, "SA"]},
        {"exists": 3},
        {"all": {"eq": ["age", 30]}},
    ],
)
def test_stored_malformed_rule_never_matches(when):
    """A bad row already in the store must not break evaluation for everyone."""
    rules = [
        {"rule_id": "BROKEN", "persona_id": "P_BROKEN", "name": "Broken", "priority": 50, "when": when},
        {"rule_id": "OK", "persona_id": "P_OK", "name": "Ok", "priority": 1, "when": {"exists": "age"}},
    ]
    assert evaluate(profile(), ConfigSnapshot.build(rules=rules)) == ["P_OK"]


def test_map_reference_with_literal_lookup_is_valid():
    when = {"eq": ["region", {"map": ["NATIONALITY_REGION", "SA"]}]}
    validate_condition(when)
    rules = [{"rule_id": "R", "persona_id": "GULF_01", "name": "Gulf", "priority": 1, "when": when}]
    snapshot = ConfigSnapshot.build(maps=[("NATIONALITY_REGION", "SA", "GULF")], rules=rules)
    assert evaluate(profile(region="GULF"), snapshot) == ["GULF_01"]

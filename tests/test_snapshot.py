"""Unit tests for configuration snapshots and parameter typing."""

import pytest

from persona_engine.engine.rules import DEFAULT_RULES
from persona_engine.engine.snapshot import (
    ConfigSnapshot,
    coerce_parameter,
    infer_data_type,
    to_stored_text,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (25, "number"),
        ("25", "number"),
        ("2.5", "number"),
        (True, "boolean"),
        ("false", "boolean"),
        (["SA"], "json"),
        ("Riyadh", "string"),
    ],
)
def test_infer_data_type(value, expected):
    assert infer_data_type(value) == expected


def test_coerce_parameter():
    assert coerce_parameter("25", "number") == 25
    assert isinstance(coerce_parameter("25", "number"), int)
    assert coerce_parameter("2.5", "number") == 2.5
    assert coerce_parameter("TRUE", "boolean") is True
    assert coerce_parameter('{"a": 1}', "json") == {"a": 1}
    assert coerce_parameter("SA", "string") == "SA"


@pytest.mark.parametrize("value,data_type", [("abc", "number"), ("maybe", "boolean"), ("x", "blob")])
def test_coerce_parameter_rejects(value, data_type):
    with pytest.raises(ValueError):
        coerce_parameter(value, data_type)


def test_to_stored_text():
    assert to_stored_text(True, "boolean") == "true"
    assert to_stored_text({"a": 1}, "json") == '{"a": 1}'
    assert to_stored_text(25, "number") == "25"


def test_defaults_apply_when_store_is_empty():
    snapshot = ConfigSnapshot()
    assert snapshot.parameter("AGE_MIN_MILL") == 25
    assert snapshot.parameter("AGE_MAX_MILL") == 40
    assert snapshot.list_values("COUNTRIES_NAT_MILL") == ("SA", "AE")
    assert snapshot.parameter("UNKNOWN") is None
    assert snapshot.list_values("UNKNOWN") == ()
    assert [r["rule_id"] for r in snapshot.active_rules()] == [r["rule_id"] for r in DEFAULT_RULES]


def test_stored_values_override_defaults():
    snapshot = ConfigSnapshot.build(
        parameters=[("AGE_MIN_MILL", "30", "number")],
        lists=[("COUNTRIES_NAT_MILL", ["KW"])],
        maps=[("REGION", "SA", "GULF")],
    )
    assert snapshot.parameter("AGE_MIN_MILL") == 30
    assert snapshot.parameter("AGE_MAX_MILL") == 40
    assert snapshot.list_values("COUNTRIES_NAT_MILL") == ("KW",)
    assert snapshot.map_value("REGION", "SA") == "GULF"
    assert snapshot.map_value("REGION", "EG") is None
    assert snapshot.map_value("MISSING", "SA") is None


def test_unparseable_parameter_kept_as_text():
    snapshot = ConfigSnapshot.build(parameters=[("AGE_MIN_MILL", "twenty", "number")])
    assert snapshot.parameter("AGE_MIN_MILL") == "twenty"


def test_snapshot_is_read_only():
    snapshot = ConfigSnapshot.build(parameters=[("AGE_MIN_MILL", "30", "number")])
    with pytest.raises(TypeError):
        snapshot.parameters["AGE_MIN_MILL"] = 99


def test_fingerprint_tracks_configuration():
    base = ConfigSnapshot()
    same = ConfigSnapshot.build()
    retuned = ConfigSnapshot.build(parameters=[("AGE_MIN_MILL", "26", "number")])
    assert base.fingerprint == same.fingerprint
    assert base.fingerprint != retuned.fingerprint

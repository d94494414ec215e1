"""Reference persona rules and the configuration they read.

The migration seeds the same rows; these constants are the values the
evaluator falls back to when the store has no row for a key.
"""

GENERIC_PERSONA = "GCC_GENERIC_00"
NAT_MILL_PERSONA = "GCC_NAT_MILL_01"
FEMALE_LEADER_PERSONA = "GCC_FEMALE_LEADER_05"

# key -> (stored text value, data_type)
DEFAULT_PARAMETERS: dict[str, tuple[str, str]] = {
    "AGE_MIN_MILL": ("25", "number"),
    "AGE_MAX_MILL": ("40", "number"),
    "INCOME_MIN_FEMALE_LEADER": ("20000", "number"),
}

DEFAULT_LISTS: dict[str, list[str]] = {
    "COUNTRIES_NAT_MILL": ["SA", "AE"],
}

DEFAULT_RULES: list[dict] = [
    {
        "rule_id": "RULE_NAT_MILL",
        "persona_id": NAT_MILL_PERSONA,
        "name": "GCC national millennial",
        "priority": 20,
        "when": {
            "all": [
                {"gte": ["age", {"param": "AGE_MIN_MILL"}]},
                {"lte": ["age", {"param": "AGE_MAX_MILL"}]},
                {"in": ["nationality", {"list": "COUNTRIES_NAT_MILL"}]},
            ]
        },
    },
    {
        "rule_id": "RULE_FEMALE_LEADER",
        "persona_id": FEMALE_LEADER_PERSONA,
        "name": "Female leader",
        "priority": 10,
        "when": {
            "all": [
                {"eq": ["gender", "Female"]},
                {"gt": ["income", {"param": "INCOME_MIN_FEMALE_LEADER"}]},
            ]
        },
    },
]

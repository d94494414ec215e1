#!/usr/bin/env python3
"""
Evaluate sample profiles against the reference configuration in memory (no DB/API needed).
Usage: python scripts/simulate_personas.py [profiles.json]

profiles.json is a list of {"profile_id": ..., "consent": ..., "data": {...}}.
"""

import json
import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from persona_engine.engine.evaluator import evaluate
from persona_engine.engine.snapshot import ConfigSnapshot
from persona_engine.errors import ValidationError

SAMPLE_PROFILES = [
    {
        "profile_id": "SIM_A",
        "consent": True,
        "data": {"nationality": "SA", "age": 30, "income": 25000, "gender": "Female"},
    },
    {
        "profile_id": "SIM_B",
        "consent": True,
        "data": {"nationality": "US", "age": 50, "income": 5000, "gender": "Male"},
    },
    {
        "profile_id": "SIM_C",
        "consent": False,
        "data": {"nationality": "SA", "age": 30, "income": 25000, "gender": "Female"},
    },
]


def main():
    if len(sys.argv) > 1:
        with open(sys.argv[1]) as f:
            profiles = json.load(f)
    else:
        profiles = SAMPLE_PROFILES

    snapshot = ConfigSnapshot()
    print(f"Reference configuration fingerprint: {snapshot.fingerprint}")

    for entry in profiles:
        attrs = {**entry.get("data", {}), "consent": entry.get("consent")}
        try:
            personas = evaluate(attrs, snapshot)
        except ValidationError as exc:
            print(f"{entry.get('profile_id')}: rejected ({exc.message})")
            continue
        print(f"{entry.get('profile_id')}: {', '.join(personas)}")


if __name__ == "__main__":
    main()

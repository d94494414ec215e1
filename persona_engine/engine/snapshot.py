"""Immutable configuration snapshot read once per evaluation."""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from persona_engine.engine.rules import DEFAULT_LISTS, DEFAULT_PARAMETERS, DEFAULT_RULES
from persona_engine.utils.canonical import fingerprint

logger = logging.getLogger(__name__)

DATA_TYPES = ("string", "number", "boolean", "json")


def infer_data_type(value: Any) -> str:
    """Guess a parameter type when the caller did not declare one."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (dict, list)):
        return "json"
    text = str(value).strip()
    if text.lower() in ("true", "false"):
        return "boolean"
    try:
        float(text)
    except ValueError:
        return "string"
    return "number"


def to_stored_text(value: Any, data_type: str) -> str:
    """Render a parameter value as the text stored in the value column."""
    if data_type == "json" and not isinstance(value, str):
        return json.dumps(value)
    if data_type == "boolean" and isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_parameter(value: str, data_type: str) -> Any:
    """Interpret stored text per its declared type. Raises ValueError if it does not parse."""
    if data_type == "number":
        number = float(value)
        return int(number) if number.is_integer() else number
    if data_type == "boolean":
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    if data_type == "json":
        return json.loads(value)
    if data_type == "string":
        return value
    raise ValueError(f"unknown data_type: {data_type!r}")


@dataclass(frozen=True)
class ConfigSnapshot:
    """Parameters (typed), lists, maps and rules as of one read.

    Lookups fall back to the built-in defaults for keys the store does not
    hold, and to the reference rules when no rule rows exist at all.
    """

    parameters: Mapping[str, Any] = field(default_factory=dict)
    lists: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    maps: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    rules: tuple[dict, ...] = ()

    @classmethod
    def build(
        cls,
        parameters: Iterable[tuple[str, str, str]] = (),
        lists: Iterable[tuple[str, Iterable[str]]] = (),
        maps: Iterable[tuple[str, str, str]] = (),
        rules: Iterable[dict] = (),
    ) -> "ConfigSnapshot":
        """Assemble a snapshot from raw row tuples.

        Args:
            parameters: (key, value text, data_type) rows.
            lists: (key, values) rows.
            maps: (map_key, lookup_key, value) rows.
            rules: rule dicts with rule_id, persona_id, priority and when.
        """
        typed: dict[str, Any] = {}
        for key, value, data_type in parameters:
            try:
                typed[key] = coerce_parameter(value, data_type)
            except (ValueError, TypeError):
                logger.warning("Parameter %s does not parse as %s; using raw text", key, data_type)
                typed[key] = value
        nested: dict[str, dict[str, str]] = {}
        for map_key, lookup_key, value in maps:
            nested.setdefault(map_key, {})[lookup_key] = value
        return cls(
            parameters=MappingProxyType(typed),
            lists=MappingProxyType({key: tuple(str(v) for v in values) for key, values in lists}),
            maps=MappingProxyType({k: MappingProxyType(v) for k, v in nested.items()}),
            rules=tuple(rules),
        )

    def parameter(self, key: str) -> Any:
        if key in self.parameters:
            return self.parameters[key]
        if key in DEFAULT_PARAMETERS:
            value, data_type = DEFAULT_PARAMETERS[key]
            return coerce_parameter(value, data_type)
        return None

    def list_values(self, key: str) -> tuple[str, ...]:
        if key in self.lists:
            return self.lists[key]
        return tuple(DEFAULT_LISTS.get(key, ()))

    def map_value(self, map_key: str, lookup_key: str) -> str | None:
        return self.maps.get(map_key, {}).get(lookup_key)

    def active_rules(self) -> list[dict]:
        """Rules in evaluation order: priority descending, then rule_id."""
        rules = list(self.rules) if self.rules else DEFAULT_RULES
        return sorted(rules, key=lambda r: (-int(r.get("priority", 0)), str(r.get("rule_id", ""))))

    @property
    def fingerprint(self) -> str:
        """Hash of the effective configuration; identifies what produced an assignment."""
        return fingerprint(
            {
                "parameters": dict(self.parameters),
                "lists": {k: list(v) for k, v in self.lists.items()},
                "maps": {k: dict(v) for k, v in self.maps.items()},
                "rules": self.active_rules(),
            }
        )

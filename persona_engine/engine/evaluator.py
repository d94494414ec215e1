"""Rule evaluator - classifies a profile into personas from a configuration snapshot."""

from collections.abc import Mapping
from typing import Any

from persona_engine.engine.rules import GENERIC_PERSONA
from persona_engine.engine.snapshot import ConfigSnapshot
from persona_engine.errors import ValidationError

MANDATORY_FIELDS = ("nationality", "age", "income")

COMPARISON_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte"}
MEMBERSHIP_OPERATORS = {"in", "not_in"}
ALLOWED_OPERATORS = COMPARISON_OPERATORS | MEMBERSHIP_OPERATORS | {"exists", "all", "any", "not"}
REFERENCE_KINDS = {"param", "list", "map", "field"}


class InvalidRuleError(ValueError):
    """A rule condition tree is malformed."""


def _get_path(obj: Mapping, path: str) -> Any:
    """Get nested value by dot path (e.g. address.city)."""
    if not isinstance(path, str):
        return None
    current: Any = obj
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return None
    return current


def _resolve(operand: Any, profile: Mapping, snapshot: ConfigSnapshot) -> Any:
    """Turn a {"param"|"list"|"map"|"field": ...} reference into a value; literals pass through."""
    if not (isinstance(operand, dict) and len(operand) == 1):
        return operand
    kind, arg = next(iter(operand.items()))
    if kind in ("param", "list", "field") and not isinstance(arg, str):
        return None
    if kind == "param":
        return snapshot.parameter(arg)
    if kind == "list":
        return snapshot.list_values(arg)
    if kind == "field":
        return _get_path(profile, arg)
    if kind == "map":
        if not (isinstance(arg, (list, tuple)) and len(arg) == 2 and isinstance(arg[0], str)):
            return None
        map_key, lookup = arg
        lookup_value = _resolve(lookup, profile, snapshot)
        if lookup_value is None or isinstance(lookup_value, (dict, list, tuple)):
            return None
        return snapshot.map_value(map_key, str(lookup_value))
    return operand


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _comparable(left: Any, right: Any) -> tuple[Any, Any] | None:
    """Line up operand types; numbers win over numeric strings."""
    if left is None or right is None:
        return None
    if _is_number(left) or _is_number(right):
        try:
            return float(left), float(right)
        except (TypeError, ValueError):
            return None
    return left, right


def _compare(op: str, left: Any, right: Any) -> bool:
    pair = _comparable(left, right)
    if op == "eq":
        return pair is not None and pair[0] == pair[1]
    if op == "neq":
        return pair is None or pair[0] != pair[1]
    if pair is None:
        return False
    try:
        if op == "gt":
            return pair[0] > pair[1]
        if op == "gte":
            return pair[0] >= pair[1]
        if op == "lt":
            return pair[0] < pair[1]
        if op == "lte":
            return pair[0] <= pair[1]
    except TypeError:
        return False
    return False


def _is_member(value: Any, allowed: Any) -> bool:
    """Exact string equality against every entry of the list."""
    if value is None or not isinstance(allowed, (list, tuple)):
        return False
    return str(value) in {str(item) for item in allowed}


def _eval_condition(profile: Mapping, cond: dict, snapshot: ConfigSnapshot) -> bool:
    """Evaluate a single condition (or combinator) against the profile."""
    if not isinstance(cond, dict) or len(cond) != 1:
        return False
    op, arg = next(iter(cond.items()))
    if op in COMPARISON_OPERATORS | MEMBERSHIP_OPERATORS:
        # stored rows may predate write validation; a bad operand never matches
        if not (isinstance(arg, (list, tuple)) and len(arg) == 2 and isinstance(arg[0], str)):
            return False
        try:
            _validate_operand(arg[1])
        except InvalidRuleError:
            return False
    elif op in ("all", "any") and not isinstance(arg, list):
        return False
    elif op == "not" and not isinstance(arg, dict):
        return False
    if op in COMPARISON_OPERATORS:
        path, expected = arg
        return _compare(op, _get_path(profile, path), _resolve(expected, profile, snapshot))
    if op in MEMBERSHIP_OPERATORS:
        path, allowed = arg
        member = _is_member(_get_path(profile, path), _resolve(allowed, profile, snapshot))
        return member if op == "in" else not member
    if op == "exists":
        val = _get_path(profile, arg)
        return val is not None and val != ""
    if op == "all":
        return all(_eval_condition(profile, c, snapshot) for c in arg)
    if op == "any":
        return any(_eval_condition(profile, c, snapshot) for c in arg)
    if op == "not":
        return not _eval_condition(profile, arg, snapshot)
    return False


def validate_condition(when: Any) -> None:
    """Reject malformed condition trees before they are stored.

    Raises:
        InvalidRuleError: unknown operator or wrong operand shape.
    """
    if not isinstance(when, dict) or len(when) != 1:
        raise InvalidRuleError("Each condition must be an object with exactly one operator")
    op, arg = next(iter(when.items()))
    if op not in ALLOWED_OPERATORS:
        raise InvalidRuleError(f"Invalid operator: {op}. Allowed: {sorted(ALLOWED_OPERATORS)}")
    if op in ("all", "any"):
        if not isinstance(arg, list) or not arg:
            raise InvalidRuleError(f"'{op}' requires a non-empty list of conditions")
        for cond in arg:
            validate_condition(cond)
    elif op == "not":
        validate_condition(arg)
    elif op == "exists":
        if not isinstance(arg, str):
            raise InvalidRuleError("'exists' requires a field path string")
    else:
        if not isinstance(arg, (list, tuple)) or len(arg) != 2 or not isinstance(arg[0], str):
            raise InvalidRuleError(f"'{op}' requires [path, operand]")
        _validate_operand(arg[1])


def _validate_operand(operand: Any) -> None:
    if isinstance(operand, list):
        if any(isinstance(item, (dict, list)) for item in operand):
            raise InvalidRuleError("Literal list operands may only hold scalars")
        return
    if not isinstance(operand, dict):
        return
    kind = next(iter(operand), None)
    if len(operand) != 1 or kind not in REFERENCE_KINDS:
        raise InvalidRuleError(f"Operand references must be one of {sorted(REFERENCE_KINDS)}")
    arg = operand[kind]
    if kind != "map":
        if not isinstance(arg, str) or not arg:
            raise InvalidRuleError(f"'{kind}' reference requires a non-empty string")
        return
    if not (isinstance(arg, list) and len(arg) == 2 and isinstance(arg[0], str) and arg[0]):
        raise InvalidRuleError("'map' reference requires [map_key, lookup]")
    lookup = arg[1]
    if isinstance(lookup, dict):
        if set(lookup) != {"field"} or not isinstance(lookup["field"], str) or not lookup["field"]:
            raise InvalidRuleError("'map' lookup must be a literal or {\"field\": path}")
    elif isinstance(lookup, list):
        raise InvalidRuleError("'map' lookup must be a literal or {\"field\": path}")


def check_profile(profile: Mapping) -> None:
    """Consent gate and mandatory fields. Raises ValidationError."""
    if profile.get("consent") is not True:
        raise ValidationError("Consent is required before personas can be assigned", field="consent")
    missing = [name for name in MANDATORY_FIELDS if profile.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing mandatory fields: {', '.join(missing)}", field=missing[0])


def evaluate(profile: Mapping, snapshot: ConfigSnapshot) -> list[str]:
    """
    Evaluate every active rule against the profile. Rules are not exclusive:
    all matching personas are returned in rule order. When nothing matches the
    result is exactly [GENERIC_PERSONA].

    Raises:
        ValidationError: consent not given or a mandatory field is missing.
    """
    check_profile(profile)

    matched: list[str] = []
    for rule in snapshot.active_rules():
        if not rule.get("enabled", True):
            continue
        if not _eval_condition(profile, rule.get("when") or {}, snapshot):
            continue
        persona_id = rule.get("persona_id")
        if persona_id and persona_id not in matched:
            matched.append(persona_id)

    return matched or [GENERIC_PERSONA]

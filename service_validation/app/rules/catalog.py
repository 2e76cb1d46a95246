"""
Rule kind catalog.

Each rule kind maps to a pure predicate ``(subject, value) -> bool``. A
predicate returns ``None`` when the rule's configured value cannot be used,
which the evaluator reports as a misconfigured rule.
"""

import functools
import math
import re
from typing import Any, Callable, Dict, Mapping, Optional, Pattern

from .resolver import MISSING

Predicate = Callable[[Any, Any], Optional[bool]]

_DELIMITED_PATTERN = re.compile(r"^/(.+)/([a-z]*)$", re.DOTALL)
_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_NON_DIGITS = re.compile(r"\D")

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

WHITELIST_TYPES = (list, tuple, set, frozenset, Mapping)


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern:
    match = _DELIMITED_PATTERN.match(pattern)
    if not match:
        return re.compile(pattern)

    flags = 0
    for flag in match.group(2):
        # Flags without a Python equivalent ("g", "u") are ignored
        flags |= _REGEX_FLAGS.get(flag, 0)
    return re.compile(match.group(1), flags)


def compile_pattern(pattern: Any) -> Pattern:
    """Compile a rule pattern given as ``/body/flags``, a raw string or a compiled pattern."""
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise TypeError(f"regex pattern must be a string, got {type(pattern).__name__}")
    return _compile(pattern)


def pattern_to_string(pattern: Pattern) -> str:
    """Render a compiled pattern in the ``/body/flags`` form :func:`compile_pattern` reads."""
    flags = "".join(flag for flag, bit in _REGEX_FLAGS.items() if pattern.flags & bit)
    return f"/{pattern.pattern}/{flags}"


def is_present(subject: Any) -> bool:
    """True unless the subject is missing, None or an empty string."""
    return subject is not MISSING and subject is not None and subject != ""


def is_numeric(subject: Any) -> bool:
    if isinstance(subject, bool):
        return False
    if isinstance(subject, (int, float)):
        return True
    return isinstance(subject, str) and bool(_NUMERIC_STRING.match(subject))


def stringify(subject: Any) -> str:
    if subject is MISSING or subject is None:
        return ""
    if isinstance(subject, float) and subject.is_integer():
        return str(int(subject))
    return str(subject)


def _number(value: Any) -> Optional[float]:
    if is_numeric(value):
        return float(value)
    return None


def _count(value: Any) -> Optional[int]:
    number = _number(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


def evaluate_required(subject: Any, value: Any) -> bool:
    if not value:
        return True
    if subject is MISSING or subject is None:
        return False
    return subject != "" or value == ""


def evaluate_regex(subject: Any, value: Any) -> bool:
    if is_numeric(subject) and not isinstance(subject, str):
        subject = stringify(subject)
    return isinstance(subject, str) and compile_pattern(value).search(subject) is not None


def evaluate_min_length(subject: Any, value: Any) -> Optional[bool]:
    limit = _number(value)
    if limit is None:
        return None
    return is_present(subject) and limit > 0 and len(stringify(subject)) >= limit


def evaluate_max_length(subject: Any, value: Any) -> Optional[bool]:
    limit = _number(value)
    if limit is None:
        return None
    return not subject or len(stringify(subject)) <= limit


def evaluate_exact_length(subject: Any, value: Any) -> Optional[bool]:
    limit = _number(value)
    if limit is None:
        return None
    return is_present(subject) and len(stringify(subject)) == limit


def evaluate_min_value(subject: Any, value: Any) -> Optional[bool]:
    limit = _number(value)
    if limit is None:
        return None
    return is_numeric(subject) and float(subject) >= limit


def evaluate_max_value(subject: Any, value: Any) -> Optional[bool]:
    limit = _number(value)
    if limit is None:
        return None
    return not subject or (is_numeric(subject) and float(subject) <= limit)


def evaluate_one_of(subject: Any, value: Any) -> Optional[bool]:
    if not isinstance(value, WHITELIST_TYPES):
        return None
    # list() of a mapping yields its keys
    return subject in list(value)


def evaluate_luhn(subject: Any, value: Any) -> bool:
    if not is_present(subject):
        return False

    digits = _NON_DIGITS.sub("", stringify(subject))
    if not digits:
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
        if digit > 9:
            digit -= 9
        total += digit

    return total % 10 == 0


def _coerce(subject: Any, target: Any) -> Any:
    """Cast ``subject`` to the type of ``target``; MISSING if that is impossible."""
    if target is None:
        return subject
    if subject is MISSING or subject is None:
        return MISSING
    if isinstance(target, bool):
        return bool(subject)
    if isinstance(target, float):
        return float(subject) if is_numeric(subject) else MISSING
    if isinstance(target, str):
        return stringify(subject)
    return subject


def evaluate_equals(subject: Any, value: Any) -> bool:
    if isinstance(value, int) and not isinstance(value, bool):
        value = float(value)

    if not isinstance(subject, bool):
        subject = _coerce(subject, value)
        if subject is MISSING:
            return False

    return type(subject) is type(value) and subject == value


def _counter(compare: Callable[[int, int], bool]) -> Predicate:
    def evaluate_count(subject: Any, value: Any) -> Optional[bool]:
        expected = _count(value)
        if expected is None:
            return None
        return isinstance(subject, (list, tuple)) and compare(len(subject), expected)
    return evaluate_count


RULE_CATALOG: Dict[str, Predicate] = {
    "required": evaluate_required,
    "regex": evaluate_regex,
    "minLength": evaluate_min_length,
    "maxLength": evaluate_max_length,
    "exactLength": evaluate_exact_length,
    "minValue": evaluate_min_value,
    "maxValue": evaluate_max_value,
    "oneOf": evaluate_one_of,
    "luhn": evaluate_luhn,
    "equals": evaluate_equals,
    "exactCount": _counter(lambda actual, expected: actual == expected),
    "minCount": _counter(lambda actual, expected: actual >= expected),
    "maxCount": _counter(lambda actual, expected: actual <= expected),
}

DEFAULT_MESSAGES: Dict[str, str] = {
    "regex": "{{field}} must match pattern: {{value}}",
    "minLength": "{{field}} must be at least {{value}} characters.",
    "maxLength": "{{field}} must not exceed {{value}} characters.",
    "exactLength": "{{field}} must be exactly {{value}} characters.",
    "required": "{{field}} is required.",
    "minValue": "{{field}} must be at least {{value}}.",
    "maxValue": "{{field}} must not exceed {{value}}.",
    "oneOf": "{{field}} must be one of: {{value}}",
    "equals": "{{field}} must be {{value}}.",
    "exactCount": "There should be exactly {{value}} {{field}}.",
    "minCount": "There should be at least {{value}} {{field}}.",
    "maxCount": "There should be no more than {{value}} {{field}}.",
}

GENERIC_MESSAGE = "{{field}} is invalid."


def is_known_kind(kind: str) -> bool:
    return kind in RULE_CATALOG


def get_predicate(kind: str) -> Optional[Predicate]:
    """Return the predicate for ``kind``, or None for unknown kinds."""
    return RULE_CATALOG.get(kind)


def default_message(kind: str) -> str:
    return DEFAULT_MESSAGES.get(kind, GENERIC_MESSAGE)

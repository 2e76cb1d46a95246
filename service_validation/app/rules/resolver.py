"""
Field path resolution for rule subjects.

A field path is either a plain key (``"name"``) or bracket notation for
nested structures (``"customer[address][zip]"``). A trailing ``[]`` marker
(``"tags[]"``) is stripped; list handling belongs to the predicates.
"""

import re
from typing import Any, List, Mapping, Sequence

_BRACKET_GROUP = re.compile(r"\[([^\]]+)\]")
_EMPTY_BRACKETS = re.compile(r"\[\]")
_BRACKET_TAIL = re.compile(r"(\[[^\]]+\])*")


class _Missing:
    """Sentinel for a field path that does not resolve to anything."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


def split_field_path(field_path: str) -> List[str]:
    """Split a field path into the keys to descend through.

    >>> split_field_path("customer[address][zip]")
    ['customer', 'address', 'zip']
    """
    path = _EMPTY_BRACKETS.sub("", field_path)
    head, bracket, rest = path.partition("[")
    tail = bracket + rest
    if not _BRACKET_TAIL.fullmatch(tail):
        # Malformed brackets only match as a literal key
        return [field_path]
    return [head] + _BRACKET_GROUP.findall(tail)


def _descend(target: Any, key: str) -> Any:
    if isinstance(target, Mapping):
        return target[key] if key in target else MISSING

    if isinstance(target, Sequence) and not isinstance(target, (str, bytes)):
        if key.isdigit() and int(key) < len(target):
            return target[int(key)]

    return MISSING


def resolve_subject(data: Any, field_path: str) -> Any:
    """Return the value addressed by ``field_path`` in ``data``, or MISSING.

    A present ``None`` or empty string is returned as-is; only an absent key
    or a non-container along the way yields MISSING.
    """
    if isinstance(data, Mapping) and field_path in data:
        return data[field_path]

    target = data
    for crumb in split_field_path(field_path):
        target = _descend(target, crumb)
        if target is MISSING:
            return MISSING

    return target

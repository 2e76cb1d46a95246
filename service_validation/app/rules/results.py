"""
Result sets produced by rule evaluation.
"""

from collections.abc import Sequence
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from .models import ResultEntry


def _as_names(names: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(names, str):
        return [names]
    return list(names)


class ResultSet(Sequence):
    """Ordered, queryable collection of result entries for one evaluation call.

    Query methods never modify the set; each returns a new ResultSet over the
    matching entries, in evaluation order.
    """

    def __init__(self, entries: Optional[Iterable[ResultEntry]] = None):
        self._entries: List[ResultEntry] = list(entries or [])

    def append(self, entry: ResultEntry):
        """Add an entry. Only used by the evaluator while building the set."""
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ResultSet(self._entries[index])
        return self._entries[index]

    def __iter__(self) -> Iterator[ResultEntry]:
        return iter(self._entries)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ResultSet):
            return self._entries == other._entries
        return NotImplemented

    def __add__(self, other: "ResultSet") -> "ResultSet":
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self.concat(other)

    def __repr__(self) -> str:
        return f"ResultSet({self._entries!r})"

    def filter(self, predicate: Callable[[ResultEntry], bool]) -> "ResultSet":
        return ResultSet(entry for entry in self._entries if predicate(entry))

    def concat(self, other: Optional["ResultSet"]) -> "ResultSet":
        if other is None:
            return ResultSet(self._entries)
        return ResultSet(self._entries + list(other))

    def by_field(self, names: Union[str, Iterable[str]]) -> "ResultSet":
        """Entries for the given field name(s)."""
        fields = _as_names(names)
        return self.filter(lambda entry: entry.field in fields)

    def by_kind(self, kinds: Union[str, Iterable[str]]) -> "ResultSet":
        """Entries for the given rule kind(s)."""
        wanted = _as_names(kinds)
        return self.filter(lambda entry: entry.kind in wanted)

    def get_passed(self) -> "ResultSet":
        return self.filter(lambda entry: entry.passed is True)

    def get_failed(self) -> "ResultSet":
        return self.filter(lambda entry: entry.passed is False)

    def get_active(self) -> "ResultSet":
        """Entries whose rule was actually evaluated (its "when" rules passed)."""
        return self.filter(lambda entry: entry.active is True)

    def get_status(self) -> bool:
        """True when no entry failed."""
        return len(self.get_failed()) == 0

    def get_messages(self) -> List[Optional[str]]:
        return [entry.message for entry in self._entries]

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

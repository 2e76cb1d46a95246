"""
Bulk operations over a group of rule definitions.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List

from .models import RuleDefinition


class RuleCollection:
    """An ordered group of rules, typically the ones added in one call.

    ``add_when`` applies the same prerequisites to every member:

        validator.add_rules([...]).add_when("country", "equals", "USA")
    """

    def __init__(self, rules: Iterable[RuleDefinition] = ()):
        self._pool: List[RuleDefinition] = list(rules)

    def __iter__(self) -> Iterator[RuleDefinition]:
        return iter(self._pool)

    def __len__(self) -> int:
        return len(self._pool)

    def __getitem__(self, index: int) -> RuleDefinition:
        return self._pool[index]

    def for_each(self, fn: Callable[[RuleDefinition], Any]) -> "RuleCollection":
        for rule in self._pool:
            fn(rule)
        return self

    def add_when(self, *rules: Any) -> "RuleCollection":
        return self.for_each(lambda rule: rule.add_when(*rules))

    def get_definitions(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self._pool]

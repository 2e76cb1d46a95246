"""
Namespaced validators and the registry that groups them.

A hosting application owns a ``ValidatorRegistry`` and passes it to whatever
needs cross-namespace lookup; nothing here is process-global.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

from shared.errors import RegistryError, RuleDefinitionError
from shared.logging import get_logger
from .rules.collection import RuleCollection
from .rules.evaluator import ConditionalEvaluator
from .rules.models import RuleDefinition
from .rules.results import ResultSet


def _build_rule(*args: Any, **kwargs: Any) -> RuleDefinition:
    if len(args) == 1 and not kwargs:
        rule = args[0]
        if isinstance(rule, RuleDefinition):
            return rule
        if isinstance(rule, Mapping):
            return RuleDefinition.from_dict(rule)
        raise RuleDefinitionError("Invalid definition provided", details={"rule": repr(rule)})
    if args and isinstance(args[0], str):
        return RuleDefinition.create(*args, **kwargs)
    if not args and kwargs:
        return RuleDefinition(**kwargs)
    raise RuleDefinitionError("Invalid definition provided", details={"args": repr(args)})


class Validator:
    """A namespaced group of rules."""

    def __init__(self, namespace: Optional[str] = None, evaluator: Optional[ConditionalEvaluator] = None):
        self.namespace = namespace
        self.evaluator = evaluator or ConditionalEvaluator()
        self.logger = get_logger("validation.registry")
        self._rules: List[RuleDefinition] = []

    def add_rule(self, *args: Any, **kwargs: Any) -> RuleDefinition:
        """Add one rule given as a RuleDefinition, a wire mapping or shorthand.

        An existing rule for the same field and kind is replaced, except for
        regex rules, which may be stacked.
        """
        rule = _build_rule(*args, **kwargs)

        kept = [
            existing for existing in self._rules
            if not (
                existing.field == rule.field
                and existing.kind == rule.kind
                and existing.kind != "regex"
            )
        ]
        if len(kept) != len(self._rules):
            self.logger.info("Rule replaced", namespace=self.namespace, field=rule.field, kind=rule.kind)

        kept.append(rule)
        self._rules = kept
        self.logger.info("Rule added", namespace=self.namespace, field=rule.field, kind=rule.kind)
        return rule

    def add_rules(self, rules: Iterable[Any]) -> RuleCollection:
        """Add several rules; each item is a rule, a mapping or a shorthand tuple."""
        added = []
        for rule in rules:
            if isinstance(rule, (list, tuple)):
                added.append(self.add_rule(*rule))
            else:
                added.append(self.add_rule(rule))
        return RuleCollection(added)

    def clear_rules(self):
        self._rules = []
        self.logger.info("All rules cleared", namespace=self.namespace)

    def get_rules(self) -> List[RuleDefinition]:
        return list(self._rules)

    def get_definitions(self) -> List[Dict[str, Any]]:
        """Wire definitions of the current rules, tagged with the namespace."""
        definitions = []
        for rule in self._rules:
            definition = rule.to_dict()
            definition["namespace"] = self.namespace
            definitions.append(definition)
        return definitions

    def to_json(self) -> str:
        return json.dumps(self.get_definitions())

    def evaluate(self, data: Any) -> Optional[ResultSet]:
        return self.evaluator.evaluate(data, self._rules, namespace=self.namespace)

    def evaluate_field(self, field: str, value: Any) -> ResultSet:
        return self.evaluator.evaluate_field(field, value, self._rules, namespace=self.namespace)


class ValidatorRegistry:
    """Explicit registry of validators keyed by namespace."""

    def __init__(self, evaluator: Optional[ConditionalEvaluator] = None):
        self.evaluator = evaluator or ConditionalEvaluator()
        self.logger = get_logger("validation.registry")
        self._validators: Dict[Optional[str], Validator] = {}

    def __contains__(self, namespace: Optional[str]) -> bool:
        return namespace in self._validators

    def __len__(self) -> int:
        return len(self._validators)

    def create(self, namespace: Optional[str] = None) -> Validator:
        """Create and register a validator sharing this registry's evaluator."""
        return self.register(Validator(namespace, evaluator=self.evaluator))

    def register(self, validator: Validator) -> Validator:
        if validator.namespace in self._validators:
            raise RegistryError(
                f"Namespace already registered: {validator.namespace!r}",
                details={"namespace": validator.namespace}
            )
        self._validators[validator.namespace] = validator
        self.logger.info("Validator registered", namespace=validator.namespace)
        return validator

    def get(self, namespace: Optional[str]) -> Optional[Validator]:
        return self._validators.get(namespace)

    def require(self, namespace: Optional[str]) -> Validator:
        validator = self.get(namespace)
        if validator is None:
            raise RegistryError(
                f"Unknown namespace: {namespace!r}",
                details={"namespace": namespace}
            )
        return validator

    def load(self, definitions: Mapping[Optional[str], Iterable[Mapping[str, Any]]]) -> List[Validator]:
        """Build validators from exported definitions (namespace -> rule dicts)."""
        loaded = []
        for namespace, rules in definitions.items():
            validator = self.get(namespace) or self.create(namespace)
            validator.add_rules(rules)
            loaded.append(validator)
        return loaded

    def export(self, namespace: Optional[str] = None) -> Dict[Optional[str], List[Dict[str, Any]]]:
        """Rule definitions per namespace, limited to ``namespace`` when given."""
        exported: Dict[Optional[str], List[Dict[str, Any]]] = {}
        for ns, validator in self._validators.items():
            if namespace is not None and ns != namespace:
                continue
            exported[ns] = validator.get_definitions()
        return exported

    def evaluate(self, data: Any, namespace: Optional[str] = None) -> Optional[ResultSet]:
        """Evaluate the validators for ``namespace``, plus those without one.

        With no namespace every registered validator takes part. Results are
        concatenated in registration order.
        """
        if not isinstance(data, Mapping) or not data:
            return None

        results = ResultSet()
        for ns, validator in self._validators.items():
            if ns is None or namespace is None or ns == namespace:
                results = results + validator.evaluate(data)
        return results

"""
Rule data models for the validation layer.
"""

import dataclasses
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared.errors import RuleCycleError, RuleDefinitionError
from .catalog import (
    Predicate, WHITELIST_TYPES, compile_pattern, default_message, get_predicate, is_known_kind, pattern_to_string,
    stringify,
)

_INVERSE_PREFIX = re.compile(r"^not[A-Z]")
_TRANSLATION_KEY = re.compile(r"^[a-z0-9_]+$")


class RuleDefinitionModel(BaseModel):
    """Wire shape of a rule definition."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: str = Field(..., validation_alias=AliasChoices("kind", "type"), description="Rule kind")
    field: str = Field(..., description="Field path the rule reads its subject from")
    value: Any = Field(None, description="Predicate configuration")
    message: Optional[str] = Field(None, description="Message template")
    optional: bool = Field(False, description="Compatibility flag, exported unchanged")
    inverse: bool = Field(False, description="Negate the predicate result")
    when: Optional[List["RuleDefinitionModel"]] = Field(None, description="Prerequisite rules")

    @field_validator("when", mode="before")
    @classmethod
    def _normalize_when(cls, value):
        if isinstance(value, Mapping):
            return [value]
        return value


class ResultEntryModel(BaseModel):
    """Wire shape of a result entry."""
    field: str
    kind: str
    active: bool
    message: Optional[str] = None
    namespace: Optional[str] = None
    passed: bool


def _nice_field(field_path: Any) -> str:
    text = str(field_path).replace("_", " ")
    return text[:1].upper() + text[1:]


def _nice_value(value: Any) -> str:
    value = _export_value(value)
    if isinstance(value, Mapping):
        return ", ".join(stringify(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(item) for item in value)
    return stringify(value)


def _export_value(value: Any) -> Any:
    if isinstance(value, re.Pattern):
        return pattern_to_string(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=stringify)
    return value


@dataclass(frozen=True, eq=False)
class RuleDefinition:
    """One declarative check against one field.

    ``kind`` and ``field`` are fixed at construction. A ``not<Kind>`` kind is
    normalised to ``<kind>`` with ``inverse`` set. The ``when`` list holds
    prerequisite rules and may only grow through :meth:`add_when`.
    """
    kind: Optional[str] = None
    field: Optional[str] = None
    value: Any = None
    message: Optional[str] = None
    optional: bool = False
    inverse: bool = False
    when: List["RuleDefinition"] = dataclasses.field(default_factory=list)
    predicate: Predicate = dataclasses.field(init=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.kind, str) or not self.kind:
            raise RuleDefinitionError(
                "Rule kind can't be empty",
                details={"kind": self.kind, "field": self.field}
            )
        if not isinstance(self.field, str) or not self.field:
            raise RuleDefinitionError(
                "Rule field can't be empty",
                details={"kind": self.kind, "field": self.field}
            )

        kind, inverse = self.kind, bool(self.inverse)
        if _INVERSE_PREFIX.match(kind):
            positive = kind[3].lower() + kind[4:]
            if is_known_kind(positive):
                kind, inverse = positive, True

        predicate = get_predicate(kind)
        if predicate is None:
            raise RuleDefinitionError(
                f"Undefined rule kind: {kind}",
                details={"kind": kind, "field": self.field}
            )

        if kind == "oneOf" and not isinstance(self.value, WHITELIST_TYPES):
            raise RuleDefinitionError(
                'The value for a "oneOf" rule must be a list or a mapping',
                details={"field": self.field, "value": repr(self.value)}
            )

        if kind == "regex":
            try:
                compile_pattern(self.value)
            except (re.error, TypeError) as e:
                raise RuleDefinitionError(
                    f"Invalid regex pattern: {e}",
                    details={"field": self.field, "value": repr(self.value)}
                ) from e

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "inverse", inverse)
        object.__setattr__(self, "optional", bool(self.optional))
        object.__setattr__(self, "predicate", predicate)
        when = _normalize_rules(self.when)
        object.__setattr__(self, "when", [])
        self._extend_when(when)

    @classmethod
    def create(cls, field: str, kind: str, value: Any = None, message: Optional[str] = None,
               **extra: Any) -> "RuleDefinition":
        """Shorthand constructor: ``RuleDefinition.create("age", "minValue", 18)``."""
        return cls(kind=kind, field=field, value=value, message=message, **extra)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RuleDefinition":
        """Build a rule, and its nested "when" rules, from the wire shape."""
        if not isinstance(payload, Mapping) or not payload:
            raise RuleDefinitionError("Invalid definition provided", details={"payload": repr(payload)})
        try:
            model = RuleDefinitionModel.model_validate(dict(payload))
        except ValidationError as e:
            raise RuleDefinitionError(
                "Missing or malformed rule information",
                details={"errors": e.errors(include_url=False, include_input=False)}
            ) from e
        return cls.from_model(model)

    @classmethod
    def from_model(cls, model: RuleDefinitionModel) -> "RuleDefinition":
        return cls(
            kind=model.kind,
            field=model.field,
            value=model.value,
            message=model.message,
            optional=model.optional,
            inverse=model.inverse,
            when=[cls.from_model(child) for child in model.when or []],
        )

    def add_when(self, *rules: Any) -> "RuleDefinition":
        """Append prerequisite rules; returns self for chaining.

        Accepts rules, wire mappings, iterables of either, or the shorthand
        ``add_when("country", "equals", "USA")``.
        """
        if rules and isinstance(rules[0], str):
            additions = [RuleDefinition.create(*rules)]
        else:
            additions = []
            for rule in rules:
                additions.extend(_normalize_rules(rule))

        self._extend_when(additions)
        return self

    def _extend_when(self, additions: List["RuleDefinition"]):
        for rule in additions:
            if any(node is self for node in rule.walk()):
                raise RuleCycleError(
                    "Conditional rule would depend on itself",
                    details={"field": self.field, "kind": self.kind}
                )
        self.when.extend(additions)

    def walk(self) -> Iterator["RuleDefinition"]:
        """Yield this rule and every rule reachable through "when", once each."""
        seen = set()
        stack = [self]
        while stack:
            rule = stack.pop()
            if id(rule) in seen:
                continue
            seen.add(id(rule))
            yield rule
            stack.extend(reversed(rule.when))

    def get_message(self, format: bool = True, hook: Optional[Callable[[str], str]] = None) -> str:
        """Return the rule message, falling back to the kind's default template.

        With ``format`` the ``{{field}}`` and ``{{value}}`` placeholders are
        substituted. A formatted message that is a bare key such as
        ``"zip_invalid"`` is passed through ``hook`` when one is given.
        """
        message = self.message
        if message is None:
            message = default_message(self.kind)

        if format:
            message = message.replace("{{field}}", _nice_field(self.field))
            message = message.replace("{{value}}", _nice_value(self.value))
            if hook is not None and _TRANSLATION_KEY.match(message):
                message = hook(message)

        return message

    def to_dict(self) -> Dict[str, Any]:
        """Return the rule definition in its wire shape."""
        return {
            "kind": self.kind,
            "field": self.field,
            "value": _export_value(self.value),
            "message": self.get_message(),
            "optional": self.optional,
            "inverse": self.inverse,
            "when": [rule.to_dict() for rule in self.when] or None,
        }

    def to_model(self) -> RuleDefinitionModel:
        return RuleDefinitionModel.model_validate(self.to_dict())


def _normalize_rules(rules: Any) -> List[RuleDefinition]:
    """Flatten a rule, mapping, collection or iterable of those into rules."""
    if rules is None:
        return []
    if isinstance(rules, RuleDefinition):
        return [rules]
    if isinstance(rules, Mapping):
        return [RuleDefinition.from_dict(rules)]
    if isinstance(rules, Iterable) and not isinstance(rules, (str, bytes)):
        normalized = []
        for rule in rules:
            normalized.extend(_normalize_rules(rule))
        return normalized
    raise RuleDefinitionError(
        "Invalid conditional rule definition",
        details={"when": repr(rules)}
    )


@dataclass(frozen=True)
class ResultEntry:
    """Outcome of one rule in one evaluation call."""
    field: str
    kind: str
    active: bool
    message: Optional[str]
    namespace: Optional[str]
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def to_model(self) -> ResultEntryModel:
        return ResultEntryModel(**self.to_dict())

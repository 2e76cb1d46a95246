"""
Unit tests for rule definition models.
"""

import dataclasses
import re

import pytest

from shared.errors import RuleCycleError, RuleDefinitionError
from service_validation.app.rules.catalog import evaluate_equals
from service_validation.app.rules.collection import RuleCollection
from service_validation.app.rules.models import (
    ResultEntry, ResultEntryModel, RuleDefinition, RuleDefinitionModel,
)


class TestRuleDefinitionConstruction:
    """Test cases for RuleDefinition construction."""

    def test_minimal_rule(self):
        """Test a rule with kind and field only."""
        rule = RuleDefinition(kind="required", field="email", value=True)

        assert rule.kind == "required"
        assert rule.field == "email"
        assert rule.inverse is False
        assert rule.optional is False
        assert rule.when == []

    def test_missing_kind(self):
        """Test construction fails without a kind."""
        with pytest.raises(RuleDefinitionError) as exc_info:
            RuleDefinition(field="email")

        assert exc_info.value.code == "RULE_DEFINITION_ERROR"

    def test_missing_field(self):
        """Test construction fails without a field."""
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="required", value=True)

    def test_unknown_kind_fails_fast(self):
        """Test unknown kinds are rejected at construction."""
        with pytest.raises(RuleDefinitionError) as exc_info:
            RuleDefinition(kind="between", field="age")

        assert exc_info.value.details["kind"] == "between"

    def test_predicate_resolved_at_construction(self):
        """Test the kind's predicate is bound to the rule."""
        rule = RuleDefinition(kind="equals", field="country", value="USA")

        assert rule.predicate is evaluate_equals

    def test_inverse_prefix_normalized(self):
        """Test not<Kind> becomes <kind> with inverse set."""
        rule = RuleDefinition(kind="notEquals", field="country", value="USA")

        assert rule.kind == "equals"
        assert rule.inverse is True

    def test_inverse_prefix_of_unknown_kind(self):
        """Test a not<Kind> prefix over an unknown kind is rejected."""
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="notBetween", field="age")

    def test_one_of_requires_list_or_mapping(self):
        """Test oneOf values must be lists or mappings."""
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="oneOf", field="state", value="CA")
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="notOneOf", field="state", value=None)

        assert RuleDefinition(kind="oneOf", field="state", value={"CA": "California"}).value == {"CA": "California"}

    def test_invalid_regex(self):
        """Test invalid patterns are definition errors."""
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="regex", field="zip", value="/([/")
        with pytest.raises(RuleDefinitionError):
            RuleDefinition(kind="regex", field="zip", value=None)

    def test_kind_and_field_immutable(self):
        """Test kind and field can't be reassigned."""
        rule = RuleDefinition(kind="required", field="email", value=True)

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.kind = "regex"
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.field = "name"

    def test_shorthand_create(self):
        """Test the field, kind, value shorthand."""
        rule = RuleDefinition.create("age", "minValue", 18, "Too young")

        assert (rule.field, rule.kind, rule.value, rule.message) == ("age", "minValue", 18, "Too young")


class TestRuleDefinitionWireShape:
    """Test cases for from_dict and to_dict."""

    def test_from_dict_nested(self):
        """Test nested when rules are built recursively."""
        rule = RuleDefinition.from_dict({
            "kind": "oneOf",
            "field": "state",
            "value": ["CA", "NY"],
            "when": [{"kind": "equals", "field": "country", "value": "USA"}],
        })

        assert len(rule.when) == 1
        assert isinstance(rule.when[0], RuleDefinition)
        assert rule.when[0].field == "country"

    def test_from_dict_type_alias_and_single_when(self):
        """Test the legacy "type" key and a single mapping for when."""
        rule = RuleDefinition.from_dict({
            "type": "notEquals",
            "field": "country",
            "value": "USA",
            "when": {"type": "required", "field": "country", "value": True},
        })

        assert rule.kind == "equals"
        assert rule.inverse is True
        assert rule.when[0].kind == "required"

    def test_from_dict_missing_field(self):
        """Test malformed payloads raise definition errors."""
        with pytest.raises(RuleDefinitionError) as exc_info:
            RuleDefinition.from_dict({"kind": "required"})

        assert "errors" in exc_info.value.details

    def test_from_dict_empty(self):
        """Test empty payloads are rejected."""
        with pytest.raises(RuleDefinitionError):
            RuleDefinition.from_dict({})

    def test_to_dict(self):
        """Test the exported wire shape."""
        rule = RuleDefinition(kind="minLength", field="first_name", value=2)

        assert rule.to_dict() == {
            "kind": "minLength",
            "field": "first_name",
            "value": 2,
            "message": "First name must be at least 2 characters.",
            "optional": False,
            "inverse": False,
            "when": None,
        }

    def test_export_reimport(self):
        """Test exported definitions rebuild equivalent rules."""
        rule = RuleDefinition.create("state", "oneOf", ["CA", "NY"]).add_when("country", "equals", "USA")

        rebuilt = RuleDefinition.from_dict(rule.to_dict())

        assert rebuilt.to_dict() == rule.to_dict()

    def test_compiled_pattern_exports_flags(self):
        """Test compiled patterns export in the delimited form with their flags."""
        rule = RuleDefinition.create("code", "regex", re.compile(r"^abc$", re.IGNORECASE | re.MULTILINE))

        assert rule.to_dict()["value"] == "/^abc$/im"
        assert RuleDefinition.from_dict(rule.to_dict()).predicate("ABC", "/^abc$/im") is True

    def test_set_values_export_sorted(self):
        """Test set values export as sorted lists."""
        rule = RuleDefinition.create("state", "oneOf", frozenset({"NY", "CA"}))

        assert rule.to_dict()["value"] == ["CA", "NY"]

    def test_to_model(self):
        """Test conversion to the pydantic wire model."""
        model = RuleDefinition(kind="required", field="email", value=True).to_model()

        assert isinstance(model, RuleDefinitionModel)
        assert '"kind":"required"' in model.model_dump_json()


class TestAddWhen:
    """Test cases for the add_when combinator."""

    def test_shorthand(self):
        """Test shorthand prerequisites, chained."""
        rule = RuleDefinition.create("state", "oneOf", ["CA"])

        assert rule.add_when("country", "equals", "USA") is rule
        assert rule.when[0].kind == "equals"

    def test_rules_mappings_and_collections(self):
        """Test mixed prerequisite inputs are flattened in order."""
        first = RuleDefinition.create("a", "required", True)
        second = RuleDefinition.create("b", "required", True)
        rule = RuleDefinition.create("c", "required", True)

        rule.add_when(first, {"kind": "required", "field": "d", "value": True}, RuleCollection([second]))

        assert [r.field for r in rule.when] == ["a", "d", "b"]

    def test_direct_cycle(self):
        """Test a rule can't depend on itself."""
        rule = RuleDefinition.create("a", "required", True)

        with pytest.raises(RuleCycleError) as exc_info:
            rule.add_when(rule)

        assert exc_info.value.code == "RULE_CYCLE_ERROR"
        assert rule.when == []

    def test_indirect_cycle(self):
        """Test transitive cycles are rejected."""
        a = RuleDefinition.create("a", "required", True)
        b = RuleDefinition.create("b", "required", True)
        a.add_when(b)

        with pytest.raises(RuleCycleError):
            b.add_when(a)

    def test_invalid_prerequisite(self):
        """Test unusable prerequisites are definition errors."""
        rule = RuleDefinition.create("a", "required", True)

        with pytest.raises(RuleDefinitionError):
            rule.add_when(42)


class TestMessages:
    """Test cases for message formatting."""

    def test_default_template(self):
        """Test placeholders in the default template."""
        rule = RuleDefinition.create("postal_code", "exactLength", 5)

        assert rule.get_message() == "Postal code must be exactly 5 characters."
        assert rule.get_message(format=False) == "{{field}} must be exactly {{value}} characters."

    def test_list_value(self):
        """Test list values are joined."""
        rule = RuleDefinition.create("state", "oneOf", ["CA", "NY"])

        assert rule.get_message() == "State must be one of: CA, NY"

    def test_custom_message(self):
        """Test custom templates are substituted too."""
        rule = RuleDefinition.create("age", "minValue", 18, "{{field}} under {{value}}")

        assert rule.get_message() == "Age under 18"

    def test_translation_hook(self):
        """Test bare keys go through the hook; sentences don't."""
        keyed = RuleDefinition.create("zip", "regex", r"^\d{5}$", "zip_invalid")
        sentence = RuleDefinition.create("zip", "required", True)

        assert keyed.get_message(hook=lambda key: f"<{key}>") == "<zip_invalid>"
        assert keyed.get_message() == "zip_invalid"
        assert sentence.get_message(hook=lambda key: "unused") == "Zip is required."


class TestResultEntry:
    """Test cases for ResultEntry."""

    def test_to_dict_and_model(self):
        """Test the result entry wire shape."""
        entry = ResultEntry(
            field="email", kind="required", active=True,
            message="Email is required.", namespace="signup", passed=False
        )

        assert entry.to_dict() == {
            "field": "email",
            "kind": "required",
            "active": True,
            "message": "Email is required.",
            "namespace": "signup",
            "passed": False,
        }
        assert entry.to_model() == ResultEntryModel(**entry.to_dict())

"""
Rules engine package.

Defines the rule model and evaluation engine used by the validation layer.
Rules are checked against input data, optionally gated by prerequisite
("when") rules, and every rule yields one entry in an ordered result set.

Modules of interest:
- resolver: Field path resolution with bracket notation and MISSING.
- catalog: One predicate per rule kind, plus default messages.
- models: RuleDefinition, ResultEntry and their wire models.
- evaluator: Conditional evaluation algorithm.
- results: ResultSet filtering and aggregation.
- collection: Bulk operations over groups of rules.
"""

from .collection import RuleCollection
from .evaluator import ConditionalEvaluator
from .models import ResultEntry, RuleDefinition
from .resolver import MISSING, resolve_subject
from .results import ResultSet

__all__ = [
    "ConditionalEvaluator",
    "MISSING",
    "ResultEntry",
    "ResultSet",
    "RuleCollection",
    "RuleDefinition",
    "resolve_subject",
]

"""
Conditional rule evaluator.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from shared.config import EngineConfig, get_config
from shared.errors import RuleCycleError, RuleEvaluationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import ResultEntry, RuleDefinition
from .resolver import MISSING, resolve_subject
from .results import ResultSet


class ConditionalEvaluator:
    """Evaluates ordered rule lists against input data.

    A rule with "when" prerequisites is only checked for real once every
    prerequisite passes against the same data; otherwise it is reported as
    inactive and non-failing. The evaluator holds no rules of its own and may
    be shared between callers.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        message_hook: Optional[Callable[[str], str]] = None,
    ):
        self.config = config or get_config()
        self.metrics = metrics if self.config.enable_metrics else None
        self.message_hook = message_hook
        self.logger = get_logger("validation.evaluator")

    def evaluate(
        self,
        data: Any,
        rules: Iterable[RuleDefinition],
        namespace: Optional[str] = None,
    ) -> Optional[ResultSet]:
        """Evaluate ``rules`` against a full data mapping.

        Returns None when ``data`` is not a non-empty mapping.
        """
        if not isinstance(data, Mapping) or not data:
            self.logger.debug("Nothing to validate", data_type=type(data).__name__)
            return None

        return self._run(data, rules, namespace, scoped=False, mode="full")

    def evaluate_field(
        self,
        field: str,
        value: Any,
        rules: Iterable[RuleDefinition],
        namespace: Optional[str] = None,
    ) -> ResultSet:
        """Evaluate only the rules that address ``field``.

        Rules whose field path does not resolve against ``{field: value}`` are
        skipped without an entry.
        """
        return self._run({field: value}, rules, namespace, scoped=True, mode="field")

    def _run(
        self,
        data: Mapping[str, Any],
        rules: Iterable[RuleDefinition],
        namespace: Optional[str],
        scoped: bool,
        mode: str,
    ) -> ResultSet:
        if namespace is None:
            namespace = self.config.default_namespace

        if self.metrics is None:
            results = self._evaluate_rules(data, rules, namespace, scoped, ())
        else:
            with self.metrics.time_evaluation(mode):
                results = self._evaluate_rules(data, rules, namespace, scoped, ())
            for entry in results:
                outcome = "inactive" if not entry.active else ("passed" if entry.passed else "failed")
                self.metrics.record_rule_result(entry.kind, outcome)

        self.logger.debug(
            "Rule evaluation completed",
            namespace=namespace,
            mode=mode,
            total=len(results),
            failed=len(results.get_failed()),
            inactive=len(results) - len(results.get_active()),
        )
        return results

    def _evaluate_rules(
        self,
        data: Mapping[str, Any],
        rules: Iterable[RuleDefinition],
        namespace: Optional[str],
        scoped: bool,
        chain: Tuple[int, ...],
    ) -> ResultSet:
        results = ResultSet()

        for rule in rules:
            subject = resolve_subject(data, rule.field)

            # Scoped to one input: rules for other fields don't apply
            if scoped and subject is MISSING:
                continue

            if rule.when and not self._prerequisites_pass(data, rule, namespace, chain):
                self.logger.debug(
                    "Conditional rule inactive",
                    field=rule.field,
                    kind=rule.kind,
                    namespace=namespace
                )
                results.append(self._entry(rule, namespace, active=False, passed=True))
                continue

            passed = self._apply(rule, subject)
            results.append(self._entry(rule, namespace, active=True, passed=passed))

        return results

    def _prerequisites_pass(
        self,
        data: Mapping[str, Any],
        rule: RuleDefinition,
        namespace: Optional[str],
        chain: Tuple[int, ...],
    ) -> bool:
        if id(rule) in chain:
            self._fail(RuleCycleError(
                "Conditional rule refers back to itself",
                details={"field": rule.field, "kind": rule.kind}
            ))
        if len(chain) >= self.config.max_when_depth:
            self._fail(RuleCycleError(
                "Conditional rules nested too deeply",
                details={
                    "field": rule.field,
                    "kind": rule.kind,
                    "max_when_depth": self.config.max_when_depth
                }
            ))

        subset = self._evaluate_rules(data, rule.when, namespace, False, chain + (id(rule),))
        return subset.get_status()

    def _apply(self, rule: RuleDefinition, subject: Any) -> bool:
        try:
            result = rule.predicate(subject, rule.value)
        except (TypeError, ValueError, ArithmeticError) as e:
            self._fail(RuleEvaluationError(
                f"Rule {rule.kind!r} raised while evaluating: {e}",
                details={"definition": rule.to_dict()}
            ), cause=e)

        if not isinstance(result, bool):
            self._fail(RuleEvaluationError(
                "Unexpected evaluation result from rule",
                details={"definition": rule.to_dict(), "result": repr(result)}
            ))

        return result != rule.inverse

    def _entry(self, rule: RuleDefinition, namespace: Optional[str], active: bool, passed: bool) -> ResultEntry:
        return ResultEntry(
            field=rule.field,
            kind=rule.kind,
            active=active,
            message=rule.get_message(hook=self.message_hook),
            namespace=namespace,
            passed=passed,
        )

    def _fail(self, error: Exception, cause: Optional[BaseException] = None):
        details: Dict[str, Any] = getattr(error, "details", {})
        self.logger.error("Rule evaluation error", error=str(error), **{
            key: details[key] for key in ("field", "kind") if key in details
        })
        if self.metrics is not None:
            self.metrics.record_error(type(error).__name__)
        raise error from cause

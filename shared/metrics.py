"""
Shared metrics configuration for the Rulecheck Validation Layer.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Metrics collector for rule evaluation."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Private registry so several collectors can coexist in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up rule evaluation metrics."""
        self._metrics["validation_evaluations_total"] = Counter(
            "validation_evaluations_total",
            "Total evaluation calls",
            ["service", "mode"],
            registry=self.registry
        )

        self._metrics["validation_rule_results_total"] = Counter(
            "validation_rule_results_total",
            "Per-rule evaluation outcomes",
            ["service", "kind", "outcome"],
            registry=self.registry
        )

        self._metrics["validation_errors_total"] = Counter(
            "validation_errors_total",
            "Fatal evaluation errors",
            ["service", "error_type"],
            registry=self.registry
        )

        self._metrics["validation_evaluation_duration_seconds"] = Histogram(
            "validation_evaluation_duration_seconds",
            "Evaluation call duration",
            ["service", "mode"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_evaluation(self, mode: str, duration: float):
        """Record one evaluation call."""
        self._metrics["validation_evaluations_total"].labels(
            service=self.service_name, mode=mode
        ).inc()
        self._metrics["validation_evaluation_duration_seconds"].labels(
            service=self.service_name, mode=mode
        ).observe(duration)

    def record_rule_result(self, kind: str, outcome: str):
        """Record the outcome of a single rule."""
        self._metrics["validation_rule_results_total"].labels(
            service=self.service_name, kind=kind, outcome=outcome
        ).inc()

    def record_error(self, error_type: str):
        """Record a fatal evaluation error."""
        self._metrics["validation_errors_total"].labels(
            service=self.service_name, error_type=error_type
        ).inc()

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read a sample value from this collector's registry."""
        labels = dict(labels or {})
        labels.setdefault("service", self.service_name)
        return self.registry.get_sample_value(name, labels)

    @contextmanager
    def time_evaluation(self, mode: str):
        """Context manager timing an evaluation call."""
        start_time = time.time()
        try:
            yield
        finally:
            self.record_evaluation(mode, time.time() - start_time)


def get_metrics_collector(service_name: str = "validation", registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector instance."""
    return MetricsCollector(service_name, registry)

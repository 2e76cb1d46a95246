"""
Shared utilities for the Rulecheck Validation Layer.

This package aggregates common building blocks consumed by the validation
packages:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""

"""
Validation package for the Rulecheck Validation Layer.

Evaluates structured input data against declarative rule definitions so the
same definitions can be checked server-side and exported for a client-side
evaluator. It provides:

- app.rules: Rule model, kind catalog, field resolution, the conditional
  evaluator and result sets.
- app.registry: Namespaced validators and an explicit registry object for
  hosting applications.

Guidelines:
- Rules are immutable once registered; only "when" lists may grow, via
  add_when, before first use.
- Evaluation is synchronous and deterministic; every call returns a fresh
  result set.
- Misconfigured rules raise; they are never reported as pass or fail.
"""

"""
Shared error handling for the Rulecheck Validation Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class RuleEngineException(Exception):
    """Base exception for the validation layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class RuleDefinitionError(RuleEngineException):
    """Malformed rule definitions, raised at construction time."""

    def __init__(self, message: str = "Invalid rule definition", details: Optional[Dict[str, Any]] = None,
                 code: str = "RULE_DEFINITION_ERROR"):
        super().__init__(code, message, details)


class RuleCycleError(RuleDefinitionError):
    """A "when" chain that refers back to itself or nests too deeply."""

    def __init__(self, message: str = "Conditional rule cycle detected", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="RULE_CYCLE_ERROR")


class RuleEvaluationError(RuleEngineException):
    """A rule produced an unusable result during evaluation."""

    def __init__(self, message: str = "Rule evaluation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("RULE_EVALUATION_ERROR", message, details)


class RegistryError(RuleEngineException):
    """Validator registry errors."""

    def __init__(self, message: str = "Registry error", details: Optional[Dict[str, Any]] = None):
        super().__init__("REGISTRY_ERROR", message, details)

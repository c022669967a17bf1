"""
Error types raised by the rule language runtime.

Every failure aborts the single evaluation that raised it. A business rule
whose condition does not hold is not an error and never raises.
"""

from __future__ import annotations

from typing import Any, List, Optional


class RuleEvaluationError(Exception):
    """Base class for all finrules runtime errors."""


class UnboundVariableError(RuleEvaluationError):
    """A name was looked up or assigned but no frame in the chain binds it."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unbound variable: {name}")


class UnknownExpressionKindError(RuleEvaluationError):
    """The evaluator was handed an expression node it has no handler for."""

    def __init__(self, node: Any):
        self.node = node
        super().__init__(f"Unknown expression kind: {type(node).__name__}")


class ArityMismatchError(RuleEvaluationError):
    """Names and values (or parameters and arguments) differ in length."""

    def __init__(self, expected: int, received: int, procedure: Optional[Any] = None):
        self.expected = expected
        self.received = received
        self.procedure = procedure
        target = f" for {procedure!r}" if procedure is not None else ""
        super().__init__(
            f"Arity mismatch{target}: expected {expected} argument(s), got {received}"
        )


class NotApplicableError(RuleEvaluationError):
    """The operator of an application did not evaluate to something callable."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Cannot apply non-procedure value: {value!r}")


class InvalidExpressionError(RuleEvaluationError):
    """An expression is malformed (bad shape, empty sequence, unparseable text)."""


class EvaluationDepthError(RuleEvaluationError):
    """Evaluation nested deeper than the configured maximum depth."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Maximum evaluation depth of {max_depth} exceeded")


class RuleConflictError(RuleEvaluationError):
    """Several rules fired with different results under the 'error' policy."""

    def __init__(self, rule_ids: List[str]):
        self.rule_ids = rule_ids
        super().__init__(
            f"Conflicting rules matched: {rule_ids}. "
            "Use conflict_resolution='first_wins' or 'warn' to resolve."
        )


class RuleDefinitionError(RuleEvaluationError):
    """A rule document could not be read or failed validation."""

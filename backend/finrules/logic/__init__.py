"""
Rule language runtime for finrules.

Provides the expression model, environments, the evaluator, the primitive
registry and business rules.
"""

from .errors import (
    RuleEvaluationError,
    UnboundVariableError,
    UnknownExpressionKindError,
    ArityMismatchError,
    NotApplicableError,
    InvalidExpressionError,
    EvaluationDepthError,
    RuleConflictError,
    RuleDefinitionError,
)
from .expressions import (
    Expression,
    ExpressionKind,
    Variable,
    Application,
    Lambda,
    If,
    Assignment,
    Definition,
    Sequence,
    Quoted,
    call,
    is_expression,
    is_self_evaluating,
)
from .environment import (
    Environment,
    create_global_environment,
    extend_environment,
    lookup_variable_value,
    define_variable,
    set_variable_value,
)
from .procedures import Procedure
from .evaluator import ExpressionEvaluator, evaluate, apply_procedure, is_truthy
from .primitives import PrimitiveRegistry, default_registry
from .rules import (
    BusinessRule,
    RuleEngine,
    RuleMatch,
    RuleEvaluationResult,
    apply_rule,
    apply_rule_with,
    evaluate_rules,
)
from .parser import ConditionParser, parse_condition
from .loader import (
    expression_from_data,
    expression_to_data,
    load_rules,
    load_rules_file,
)

__all__ = [
    # Errors
    "RuleEvaluationError",
    "UnboundVariableError",
    "UnknownExpressionKindError",
    "ArityMismatchError",
    "NotApplicableError",
    "InvalidExpressionError",
    "EvaluationDepthError",
    "RuleConflictError",
    "RuleDefinitionError",
    # Expressions
    "Expression",
    "ExpressionKind",
    "Variable",
    "Application",
    "Lambda",
    "If",
    "Assignment",
    "Definition",
    "Sequence",
    "Quoted",
    "call",
    "is_expression",
    "is_self_evaluating",
    # Environments
    "Environment",
    "create_global_environment",
    "extend_environment",
    "lookup_variable_value",
    "define_variable",
    "set_variable_value",
    # Evaluation
    "Procedure",
    "ExpressionEvaluator",
    "evaluate",
    "apply_procedure",
    "is_truthy",
    "PrimitiveRegistry",
    "default_registry",
    # Rules
    "BusinessRule",
    "RuleEngine",
    "RuleMatch",
    "RuleEvaluationResult",
    "apply_rule",
    "apply_rule_with",
    "evaluate_rules",
    # Parsing and loading
    "ConditionParser",
    "parse_condition",
    "expression_from_data",
    "expression_to_data",
    "load_rules",
    "load_rules_file",
]

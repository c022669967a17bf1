"""
Expression Evaluator for the rule language.

Walks an expression tree against an environment chain and produces a host
value. Dispatch is keyed on the node class; every node class has a handler.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from .environment import Environment
from .errors import (
    EvaluationDepthError,
    NotApplicableError,
    UnknownExpressionKindError,
)
from .expressions import (
    Application,
    Assignment,
    Definition,
    Expression,
    If,
    Lambda,
    Quoted,
    Sequence,
    Variable,
)
from .procedures import Procedure

logger = logging.getLogger(__name__)


def is_truthy(value: Any) -> bool:
    """
    Truthiness used by If and by rule conditions.

    Only ``False`` and ``None`` are false. Zero, empty strings and empty
    collections are true.
    """
    return value is not False and value is not None


class ExpressionEvaluator:
    """
    Evaluator for rule-language expressions.

    Holds no evaluation state between calls; the same instance can evaluate
    any number of expressions against any number of environments.
    """

    def __init__(self, max_depth: Optional[int] = None):
        """
        Initialize the evaluator.

        Args:
            max_depth: Optional nesting limit. When exceeded the evaluator
                raises EvaluationDepthError instead of relying on Python's
                recursion limit.
        """
        self.max_depth = max_depth
        # Depth of the application currently inside a host callable, so
        # procedures called back from host code keep counting from there.
        self._callback_depth = 0
        self._handlers: Dict[Type[Expression], Callable[[Any, Environment, int], Any]] = {
            Variable: self._eval_variable,
            Quoted: self._eval_quoted,
            Assignment: self._eval_assignment,
            Definition: self._eval_definition,
            If: self._eval_if,
            Sequence: self._eval_sequence,
            Lambda: self._eval_lambda,
            Application: self._eval_application,
        }

    def evaluate(self, expr: Any, env: Environment) -> Any:
        """
        Evaluate an expression in an environment.

        Args:
            expr: An expression node or a self-evaluating value.
            env: The environment to resolve names against.

        Returns:
            The resulting host value.

        Raises:
            UnboundVariableError: A referenced or assigned name is not bound.
            UnknownExpressionKindError: A node has no evaluation rule.
            ArityMismatchError: A procedure was applied to the wrong number of arguments.
            NotApplicableError: An application's operator is not callable.
        """
        return self._eval(expr, env, self._callback_depth)

    def apply(self, procedure: Any, args: List[Any]) -> Any:
        """Apply a procedure or host callable to already-evaluated arguments."""
        return self._apply(procedure, args, self._callback_depth)

    def _eval(self, expr: Any, env: Environment, depth: int) -> Any:
        if not isinstance(expr, Expression):
            return expr

        if self.max_depth is not None and depth > self.max_depth:
            raise EvaluationDepthError(self.max_depth)

        handler = self._handlers.get(type(expr))
        if handler is None:
            raise UnknownExpressionKindError(expr)
        return handler(expr, env, depth + 1)

    def _eval_variable(self, expr: Variable, env: Environment, depth: int) -> Any:
        return env.lookup(expr.name)

    def _eval_quoted(self, expr: Quoted, env: Environment, depth: int) -> Any:
        return expr.value

    def _eval_assignment(self, expr: Assignment, env: Environment, depth: int) -> Any:
        value = self._eval(expr.value, env, depth)
        return env.set(expr.target_name, value)

    def _eval_definition(self, expr: Definition, env: Environment, depth: int) -> Any:
        value = self._eval(expr.value, env, depth)
        return env.define(expr.target_name, value)

    def _eval_if(self, expr: If, env: Environment, depth: int) -> Any:
        if is_truthy(self._eval(expr.predicate, env, depth)):
            return self._eval(expr.consequent, env, depth)
        if expr.alternative is not None:
            return self._eval(expr.alternative, env, depth)
        return None

    def _eval_sequence(self, expr: Sequence, env: Environment, depth: int) -> Any:
        result = None
        for sub_expr in expr.expressions:
            result = self._eval(sub_expr, env, depth)
        return result

    def _eval_lambda(self, expr: Lambda, env: Environment, depth: int) -> Procedure:
        return Procedure(expr.params, expr.body, env, self)

    def _eval_application(self, expr: Application, env: Environment, depth: int) -> Any:
        procedure = self._eval(expr.operator, env, depth)
        args = [self._eval(operand, env, depth) for operand in expr.operands]
        return self._apply(procedure, args, depth)

    def _apply(self, procedure: Any, args: List[Any], depth: int) -> Any:
        if isinstance(procedure, Procedure):
            call_env = procedure.bind_arguments(args)
            return self._eval(procedure.body, call_env, depth)

        if callable(procedure):
            logger.debug("Applying host callable %r to %d argument(s)", procedure, len(args))
            saved = self._callback_depth
            self._callback_depth = depth
            try:
                return procedure(*args)
            finally:
                self._callback_depth = saved

        raise NotApplicableError(procedure)


_default_evaluator = ExpressionEvaluator()


def evaluate(expr: Any, env: Environment) -> Any:
    """Evaluate ``expr`` in ``env`` with an evaluator that has no depth limit."""
    return _default_evaluator.evaluate(expr, env)


def apply_procedure(procedure: Any, args: List[Any]) -> Any:
    """Apply a procedure or host callable to evaluated arguments."""
    return _default_evaluator.apply(procedure, args)

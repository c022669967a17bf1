"""
Expression model for the rule language.

Expressions are immutable dataclasses. Any value that is not one of these
nodes (numbers, strings, booleans, None, dicts, domain objects) is
self-evaluating.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from .errors import InvalidExpressionError


class ExpressionKind(str, Enum):
    """Discriminant for expression nodes."""

    VARIABLE = "variable"
    APPLICATION = "application"
    LAMBDA = "lambda"
    IF = "if"
    ASSIGNMENT = "assignment"
    DEFINITION = "definition"
    SEQUENCE = "sequence"
    QUOTED = "quoted"


class Expression:
    """Base class of all expression nodes."""

    kind: ExpressionKind


@dataclass(frozen=True)
class Variable(Expression):
    name: str

    kind = ExpressionKind.VARIABLE


@dataclass(frozen=True)
class Application(Expression):
    """Call of ``operator`` with ``operands`` evaluated left to right."""

    operator: Any
    operands: Tuple[Any, ...] = ()

    kind = ExpressionKind.APPLICATION

    def __post_init__(self):
        object.__setattr__(self, "operands", tuple(self.operands))


@dataclass(frozen=True)
class Lambda(Expression):
    params: Tuple[str, ...]
    body: Any

    kind = ExpressionKind.LAMBDA

    def __post_init__(self):
        params = tuple(self.params)
        if len(set(params)) != len(params):
            raise InvalidExpressionError(f"Duplicate lambda parameter in {params}")
        object.__setattr__(self, "params", params)


@dataclass(frozen=True)
class If(Expression):
    predicate: Any
    consequent: Any
    alternative: Optional[Any] = None

    kind = ExpressionKind.IF


@dataclass(frozen=True)
class Assignment(Expression):
    """Rebinds an existing name. Never creates a binding."""

    target_name: str
    value: Any

    kind = ExpressionKind.ASSIGNMENT

    def __post_init__(self):
        # Accept Assignment(Variable("x"), ...) as well as Assignment("x", ...)
        if isinstance(self.target_name, Variable):
            object.__setattr__(self, "target_name", self.target_name.name)


@dataclass(frozen=True)
class Definition(Expression):
    """Binds a name in the current frame, overwriting any existing binding."""

    target_name: str
    value: Any

    kind = ExpressionKind.DEFINITION

    def __post_init__(self):
        if isinstance(self.target_name, Variable):
            object.__setattr__(self, "target_name", self.target_name.name)


@dataclass(frozen=True)
class Sequence(Expression):
    expressions: Tuple[Any, ...]

    kind = ExpressionKind.SEQUENCE

    def __post_init__(self):
        expressions = tuple(self.expressions)
        if not expressions:
            raise InvalidExpressionError("Sequence requires at least one expression")
        object.__setattr__(self, "expressions", expressions)


@dataclass(frozen=True)
class Quoted(Expression):
    """Returns ``value`` as-is, without evaluating anything inside it."""

    value: Any

    kind = ExpressionKind.QUOTED


def is_expression(value: Any) -> bool:
    """Check whether a value is an expression node."""
    return isinstance(value, Expression)


def is_self_evaluating(value: Any) -> bool:
    """Check whether a value evaluates to itself."""
    return not isinstance(value, Expression)


def call(operator_name: str, *operands: Any) -> Application:
    """Shorthand for applying a named operator: ``call(">", Variable("a"), 10)``."""
    return Application(Variable(operator_name), operands)

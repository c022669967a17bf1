"""
Primitive registry.

A registry is the set of host callables bound into a fresh root environment.
New capabilities are added by registering more callables, never by changing
the evaluator.
"""

from __future__ import annotations

import logging
import operator
from functools import reduce
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .environment import Environment

logger = logging.getLogger(__name__)


class PrimitiveRegistry:
    """
    Named host callables used to bootstrap a root environment.

    Registries are plain values: build one, register what the embedding
    application needs, and call ``bootstrap()`` for each evaluation session.
    """

    def __init__(self, primitives: Optional[Mapping[str, Callable[..., Any]]] = None):
        self._primitives: Dict[str, Callable[..., Any]] = {}
        if primitives:
            self.update(primitives)

    def __contains__(self, name: str) -> bool:
        return name in self._primitives

    def __len__(self) -> int:
        return len(self._primitives)

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._primitives[name]

    def register(self, name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Register ``fn`` under ``name``, replacing any previous registration."""
        if not callable(fn):
            raise TypeError(f"Primitive {name!r} must be callable, got {type(fn).__name__}")
        self._primitives[name] = fn
        return fn

    def primitive(self, name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of ``register``."""
        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            return self.register(name, fn)
        return decorator

    def update(self, primitives: Mapping[str, Callable[..., Any]]) -> None:
        for name, fn in primitives.items():
            self.register(name, fn)

    def names(self) -> List[str]:
        return sorted(self._primitives)

    def items(self) -> Iterable[Tuple[str, Callable[..., Any]]]:
        return self._primitives.items()

    def copy(self) -> "PrimitiveRegistry":
        return PrimitiveRegistry(self._primitives)

    def bootstrap(self, bindings: Optional[Mapping[str, Any]] = None) -> Environment:
        """
        Build a new root environment holding every registered primitive.

        Args:
            bindings: Extra non-primitive values (reference data, constants)
                to define in the same root frame.

        Returns:
            A fresh Environment with no parent.
        """
        env = Environment()
        for name, fn in self._primitives.items():
            env.define(name, fn)
        if bindings:
            for name, value in bindings.items():
                env.define(name, value)
        logger.debug("Bootstrapped root environment with %d primitive(s)", len(self._primitives))
        return env


# Logical primitives. Arguments are already evaluated, so these do not short-circuit.

def prim_and(*args: Any) -> bool:
    return all(arg is not False and arg is not None for arg in args)


def prim_or(*args: Any) -> bool:
    return any(arg is not False and arg is not None for arg in args)


def prim_not(arg: Any) -> bool:
    return arg is False or arg is None


def _chain(op: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def compare(*args: Any) -> bool:
        return all(op(a, b) for a, b in zip(args, args[1:]))
    return compare


def prim_add(*args: Any) -> Any:
    return reduce(operator.add, args) if args else 0


def prim_sub(first: Any, *rest: Any) -> Any:
    if not rest:
        return -first
    return reduce(operator.sub, rest, first)


def prim_mul(*args: Any) -> Any:
    return reduce(operator.mul, args, 1)


def prim_div(first: Any, *rest: Any) -> Any:
    if not rest:
        return 1 / first
    return reduce(operator.truediv, rest, first)


def prim_list(*items: Any) -> List[Any]:
    return list(items)


def prim_has_property(obj: Any, prop: str) -> bool:
    """Own-key check on mappings, attribute check on other objects."""
    if obj is None:
        return False
    if isinstance(obj, Mapping):
        return prop in obj
    return hasattr(obj, prop)


def prim_get_property(obj: Any, prop: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(prop, default)
    return getattr(obj, prop, default)


CORE_PRIMITIVES: Mapping[str, Callable[..., Any]] = MappingProxyType({
    "and": prim_and,
    "or": prim_or,
    "not": prim_not,
    "=": _chain(operator.eq),
    "!=": operator.ne,
    "<": _chain(operator.lt),
    ">": _chain(operator.gt),
    "<=": _chain(operator.le),
    ">=": _chain(operator.ge),
    "+": prim_add,
    "-": prim_sub,
    "*": prim_mul,
    "/": prim_div,
    "equal?": operator.eq,
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "has-property": prim_has_property,
    "get-property": prim_get_property,
    "list": prim_list,
})


def default_registry() -> PrimitiveRegistry:
    """Return a new registry holding the core logical, comparison and arithmetic primitives."""
    return PrimitiveRegistry(CORE_PRIMITIVES)

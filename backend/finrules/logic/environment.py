"""
Environment model for the rule language.

An Environment is a frame (a plain dict of name -> value) plus an optional
parent. Lookup and assignment walk the parent chain; definition only ever
touches the environment's own frame.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence

from .errors import ArityMismatchError, UnboundVariableError


class Environment:
    """
    A frame of bindings chained to an optional parent environment.

    The global environment has no parent. Each procedure call creates one
    child environment whose parent is the procedure's captured environment.
    """

    __slots__ = ("frame", "parent")

    def __init__(
        self,
        frame: Optional[Dict[str, Any]] = None,
        parent: Optional["Environment"] = None
    ):
        self.frame: Dict[str, Any] = dict(frame) if frame else {}
        self.parent = parent

    def __repr__(self) -> str:
        return f"<Environment names={sorted(self.frame)} depth={self.depth}>"

    @property
    def depth(self) -> int:
        """Number of parent links between this environment and the root."""
        count = 0
        env = self.parent
        while env is not None:
            count += 1
            env = env.parent
        return count

    def chain(self) -> Iterator["Environment"]:
        """Iterate from this environment up to the root."""
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.parent

    def extend(self, names: Sequence[str], values: Sequence[Any]) -> "Environment":
        """
        Create a child environment binding names to values positionally.

        Raises:
            ArityMismatchError: If names and values differ in length.
        """
        names = list(names)
        values = list(values)
        if len(names) != len(values):
            raise ArityMismatchError(len(names), len(values))
        return Environment(dict(zip(names, values)), self)

    def find(self, name: str) -> "Environment":
        """
        Find the nearest environment whose own frame binds ``name``.

        Raises:
            UnboundVariableError: If no frame in the chain binds the name.
        """
        for env in self.chain():
            if name in env.frame:
                return env
        raise UnboundVariableError(name)

    def lookup(self, name: str) -> Any:
        """Return the value bound to ``name`` in the nearest enclosing frame."""
        return self.find(name).frame[name]

    def define(self, name: str, value: Any) -> Any:
        """Bind ``name`` in this environment's own frame, overwriting if present."""
        self.frame[name] = value
        return value

    def set(self, name: str, value: Any) -> Any:
        """
        Rebind ``name`` in the nearest frame that already defines it.

        Raises:
            UnboundVariableError: If the name is not bound anywhere in the chain.
        """
        self.find(name).frame[name] = value
        return value

    def is_bound(self, name: str) -> bool:
        """Check whether ``name`` resolves anywhere in the chain."""
        return any(name in env.frame for env in self.chain())

    def snapshot(self) -> Dict[str, Any]:
        """Flatten the visible bindings, inner frames shadowing outer ones."""
        frames: List[Dict[str, Any]] = [env.frame for env in self.chain()]
        view: Dict[str, Any] = {}
        for frame in reversed(frames):
            view.update(frame)
        return view


def create_global_environment() -> Environment:
    """Create an empty root environment."""
    return Environment()


def extend_environment(
    names: Sequence[str],
    values: Sequence[Any],
    parent: Optional[Environment]
) -> Environment:
    """Create a new environment binding names to values, chained to ``parent``."""
    if parent is None:
        names = list(names)
        values = list(values)
        if len(names) != len(values):
            raise ArityMismatchError(len(names), len(values))
        return Environment(dict(zip(names, values)))
    return parent.extend(names, values)


def lookup_variable_value(name: str, env: Environment) -> Any:
    """Look up ``name`` starting at ``env``."""
    return env.lookup(name)


def define_variable(name: str, value: Any, env: Environment) -> Any:
    """Insert or overwrite ``name`` in ``env``'s own frame."""
    return env.define(name, value)


def set_variable_value(name: str, value: Any, env: Environment) -> Any:
    """Mutate the nearest existing binding of ``name``."""
    return env.set(name, value)

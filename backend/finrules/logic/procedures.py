"""
Procedure values produced by evaluating a Lambda.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .environment import Environment
from .errors import ArityMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Procedure:
    """
    A closure: parameter names, a body expression and the defining environment.

    Each application gets a fresh frame chained to ``env``, so concurrent or
    recursive calls never share bindings.
    ``evaluator`` is the evaluator that created the closure; calling the
    procedure from Python re-enters it, so its depth limit still applies.
    """

    params: Tuple[str, ...]
    body: Any
    env: Environment
    evaluator: Optional[Any] = None

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))
        logger.debug("Procedure created: params=%s def_env_id=%s", self.params, id(self.env))

    def __repr__(self) -> str:
        return f"<Procedure params=({', '.join(self.params)}) def_env_id={id(self.env)}>"

    @property
    def arity(self) -> int:
        return len(self.params)

    def bind_arguments(self, args: Sequence[Any]) -> Environment:
        """
        Build the call frame for one application.

        Raises:
            ArityMismatchError: If the argument count differs from the parameter count.
        """
        if len(args) != len(self.params):
            raise ArityMismatchError(len(self.params), len(args), self)
        call_env = self.env.extend(self.params, args)
        logger.debug(
            "Call frame env_id=%s extends def_env_id=%s with %s",
            id(call_env), id(self.env), list(self.params),
        )
        return call_env

    def __call__(self, *args: Any) -> Any:
        # Lets host primitives receive and invoke rule-language procedures
        # under the evaluator that created them.
        if self.evaluator is not None:
            return self.evaluator.apply(self, list(args))
        from .evaluator import apply_procedure
        return apply_procedure(self, list(args))

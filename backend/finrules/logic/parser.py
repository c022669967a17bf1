"""
Condition Parser for business rules.

Parses simple infix condition strings into expression trees.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, List, Optional, Tuple

from .errors import InvalidExpressionError
from .expressions import Application, Variable, call


IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.?-]*$")
FUNCTION_CALL = re.compile(r"^([A-Za-z_][A-Za-z0-9_?-]*)\((.*)\)$", re.DOTALL)


def _is_name_char(char: str) -> bool:
    """Characters that may appear inside an identifier."""
    return char.isalnum() or char in "_-?."


class ConditionParser:
    """
    Parser for rule condition strings.

    Converts conditions like:
        "amount >= 1000"
        "region == 'UK' AND NOT is_new(customer)"

    Into expression trees over the core primitives:
        Application(Variable(">="), (Variable("amount"), 1000))
        Application(Variable("and"), (
            Application(Variable("="), (Variable("region"), "UK")),
            Application(Variable("not"), (
                Application(Variable("is_new"), (Variable("customer"),)),)),
        ))
    """

    # Checked longest first so "<=" is not split as "<"
    COMPARISON_OPS = {
        "<=": "<=",
        ">=": ">=",
        "!=": "!=",
        "==": "=",
        "<": "<",
        ">": ">",
    }

    def parse(self, expression: Any) -> Any:
        """
        Parse a condition into an expression.

        Args:
            expression: The condition text. Booleans pass through unchanged.

        Returns:
            An expression node or a literal.

        Raises:
            InvalidExpressionError: If the text is empty or malformed.
        """
        if isinstance(expression, bool):
            return expression

        if not isinstance(expression, str):
            raise InvalidExpressionError(
                f"Expected string condition, got {type(expression).__name__}"
            )

        expression = expression.strip()
        if not expression:
            raise InvalidExpressionError("Empty condition")

        return self._parse_or(expression)

    def _parse_or(self, expr: str) -> Any:
        """Parse OR expressions (lowest precedence)."""
        parts = self._split_by_operator(expr, "OR")
        if len(parts) > 1:
            return call("or", *[self._parse_and(p.strip()) for p in parts])
        return self._parse_and(expr)

    def _parse_and(self, expr: str) -> Any:
        """Parse AND expressions."""
        parts = self._split_by_operator(expr, "AND")
        if len(parts) > 1:
            return call("and", *[self._parse_not(p.strip()) for p in parts])
        return self._parse_not(expr)

    def _parse_not(self, expr: str) -> Any:
        """Parse NOT expressions."""
        expr = expr.strip()
        if expr.upper().startswith("NOT ") or expr.upper().startswith("NOT("):
            return call("not", self._parse_not(expr[3:]))
        return self._parse_comparison(expr)

    def _parse_comparison(self, expr: str) -> Any:
        """Parse comparison expressions."""
        for op, primitive in self.COMPARISON_OPS.items():
            position = self._find_top_level(expr, op)
            if position >= 0:
                left = self._parse_value(expr[:position])
                right = self._parse_value(expr[position + len(op):])
                return call(primitive, left, right)

        return self._parse_value(expr)

    def _parse_value(self, expr: str) -> Any:
        """Parse a value (variable, literal, or function call)."""
        expr = expr.strip()
        if not expr:
            raise InvalidExpressionError("Missing operand")

        # Handle parentheses
        if expr.startswith("(") and expr.endswith(")") and self._wraps(expr):
            return self._parse_or(expr[1:-1].strip())

        # Handle string literals
        if len(expr) >= 2 and expr[0] == expr[-1] and expr[0] in ("'", '"'):
            return expr[1:-1]

        # Handle numeric literals
        try:
            if "." in expr:
                return float(expr)
            return int(expr)
        except ValueError:
            pass

        lowered = expr.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if lowered in ("null", "none"):
            return None

        # Handle function calls
        func_match = FUNCTION_CALL.match(expr)
        if func_match and self._wraps(expr[func_match.end(1):]):
            name = func_match.group(1)
            args = func_match.group(2).strip()
            operands = [self._parse_or(a.strip()) for a in self._split_args(args)] if args else []
            return Application(Variable(name), operands)

        if IDENTIFIER.match(expr):
            return Variable(expr)

        raise InvalidExpressionError(f"Cannot parse operand: {expr!r}")

    @staticmethod
    def _scan(expr: str) -> Iterator[Tuple[int, str, int]]:
        """
        Yield (index, char, depth) for every character outside string literals.

        Parentheses report the depth of the level they open or close from, so
        top-level parentheses have depth 0.
        """
        depth = 0
        quote: Optional[str] = None
        for i, char in enumerate(expr):
            if quote:
                if char == quote:
                    quote = None
                continue
            if char in ("'", '"'):
                quote = char
                continue
            if char == ")":
                depth -= 1
            yield i, char, depth
            if char == "(":
                depth += 1

    def _find_top_level(self, expr: str, token: str) -> int:
        """Index of the first ``token`` outside parentheses and quotes, or -1."""
        for i, char, depth in self._scan(expr):
            if depth != 0 or not expr.startswith(token, i):
                continue
            # "<" must not match the first half of "<="
            if len(token) == 1 and expr[i + 1:i + 2] == "=":
                continue
            return i
        return -1

    def _wraps(self, expr: str) -> bool:
        """Check that the opening parenthesis closes at the very end."""
        closes = [i for i, char, depth in self._scan(expr) if char == ")" and depth == 0]
        return closes == [len(expr) - 1]

    def _split_by_operator(self, expr: str, operator: str) -> List[str]:
        """Split on a keyword operator at the top level, on word boundaries only."""
        parts = []
        start = 0
        size = len(operator)
        for i, _, depth in self._scan(expr):
            if depth != 0 or i < start or expr[i:i + size].upper() != operator:
                continue
            before = expr[i - 1] if i > 0 else " "
            after = expr[i + size] if i + size < len(expr) else " "
            if _is_name_char(before) or _is_name_char(after):
                continue
            parts.append(expr[start:i])
            start = i + size

        parts.append(expr[start:])
        if len(parts) > 1 and any(not p.strip() for p in parts):
            raise InvalidExpressionError(f"Missing operand around {operator} in {expr!r}")
        return parts

    def _split_args(self, args: str) -> List[str]:
        """Split function arguments on top-level commas."""
        result = []
        start = 0
        for i, char, depth in self._scan(args):
            if char == "," and depth == 0:
                result.append(args[start:i])
                start = i + 1
        result.append(args[start:])
        return result

    def validate(self, expression: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a condition without keeping the parse result.

        Returns:
            Tuple of (is_valid, error_message).
        """
        try:
            self.parse(expression)
            return True, None
        except InvalidExpressionError as e:
            return False, str(e)


def parse_condition(text: Any) -> Any:
    """Parse a condition string with a default ConditionParser."""
    return ConditionParser().parse(text)

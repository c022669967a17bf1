"""
Plain-data form of expressions and YAML rule documents.

Expressions are written as single-key mappings:

    {"var": "amount"}
    {"apply": [">=", [{"var": "amount"}, 1000]]}
    {"lambda": [["a"], {"apply": [">", [{"var": "a"}, 10]]}]}
    {"if": [predicate, consequent]} / {"if": [predicate, consequent, alternative]}
    {"set": ["x", value]}
    {"define": ["x", value]}
    {"begin": [expr, ...]}
    {"quote": literal}
    {"when": "amount >= 1000 AND region == 'UK'"}

A string operator in "apply" is shorthand for {"var": operator}. A list holding
any expression is read as a call to the "list" primitive, so its items are
evaluated; a list of plain values stays a literal. Any other
value (including mappings with more than one key) is a literal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import yaml
from pydantic import ValidationError

from ..models import EngineConfig, RuleDocument
from .errors import InvalidExpressionError, RuleDefinitionError
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
from .parser import ConditionParser
from .rules import BusinessRule


TAGS = ("var", "apply", "lambda", "if", "set", "define", "begin", "quote", "when")


def _expect_list(tag: str, payload: Any, sizes: Tuple[int, ...]) -> List[Any]:
    if not isinstance(payload, list) or len(payload) not in sizes:
        expected = " or ".join(str(s) for s in sizes)
        raise InvalidExpressionError(f"'{tag}' expects a list of {expected} item(s), got {payload!r}")
    return payload


def _is_quoted_string(value: Any) -> bool:
    return isinstance(value, dict) and list(value) == ["quote"] and isinstance(value["quote"], str)


def expression_from_data(data: Any) -> Any:
    """
    Build an expression tree from its plain-data form.

    Args:
        data: Nested mappings/lists as produced by yaml.safe_load or json.load.

    Returns:
        An expression node or a literal.

    Raises:
        InvalidExpressionError: If a tagged mapping has the wrong payload shape.
    """
    if isinstance(data, Expression):
        return data

    if isinstance(data, list):
        items = [expression_from_data(item) for item in data]
        # Lists holding expressions are built at evaluation time
        if any(isinstance(item, Expression) for item in items):
            return Application(Variable("list"), items)
        return items

    if not isinstance(data, dict) or len(data) != 1:
        return data

    tag, payload = next(iter(data.items()))
    if tag not in TAGS:
        return data

    if tag == "var":
        if not isinstance(payload, str):
            raise InvalidExpressionError(f"'var' expects a name, got {payload!r}")
        return Variable(payload)

    if tag == "quote":
        return Quoted(payload)

    if tag == "when":
        return ConditionParser().parse(payload)

    if tag == "apply":
        operator, operands = _expect_list(tag, payload, (2,))
        if not isinstance(operands, list):
            raise InvalidExpressionError(f"'apply' operands must be a list, got {operands!r}")
        if isinstance(operator, str):
            operator = Variable(operator)
        elif _is_quoted_string(operator):
            # A quoted name stays a literal operator
            operator = operator["quote"]
        else:
            operator = expression_from_data(operator)
        return Application(operator, [expression_from_data(o) for o in operands])

    if tag == "lambda":
        params, body = _expect_list(tag, payload, (2,))
        if not isinstance(params, list) or not all(isinstance(p, str) for p in params):
            raise InvalidExpressionError(f"'lambda' parameters must be a list of names, got {params!r}")
        return Lambda(params, expression_from_data(body))

    if tag == "if":
        items = _expect_list(tag, payload, (2, 3))
        converted = [expression_from_data(item) for item in items]
        return If(*converted)

    if tag in ("set", "define"):
        name, value = _expect_list(tag, payload, (2,))
        if not isinstance(name, str):
            raise InvalidExpressionError(f"'{tag}' target must be a name, got {name!r}")
        node = Assignment if tag == "set" else Definition
        return node(name, expression_from_data(value))

    # begin
    if not isinstance(payload, list):
        raise InvalidExpressionError(f"'begin' expects a list, got {payload!r}")
    return Sequence([expression_from_data(item) for item in payload])


def expression_to_data(expr: Any) -> Any:
    """Convert an expression tree back to its plain-data form."""
    if isinstance(expr, Variable):
        return {"var": expr.name}
    if isinstance(expr, Quoted):
        return {"quote": expr.value}
    if isinstance(expr, Application):
        operator = expr.operator
        if isinstance(operator, Variable):
            op_data = operator.name
        elif isinstance(operator, str):
            op_data = {"quote": operator}
        else:
            op_data = expression_to_data(operator)
        return {"apply": [op_data, [expression_to_data(o) for o in expr.operands]]}
    if isinstance(expr, Lambda):
        return {"lambda": [list(expr.params), expression_to_data(expr.body)]}
    if isinstance(expr, If):
        items = [expression_to_data(expr.predicate), expression_to_data(expr.consequent)]
        if expr.alternative is not None:
            items.append(expression_to_data(expr.alternative))
        return {"if": items}
    if isinstance(expr, Assignment):
        return {"set": [expr.target_name, expression_to_data(expr.value)]}
    if isinstance(expr, Definition):
        return {"define": [expr.target_name, expression_to_data(expr.value)]}
    if isinstance(expr, Sequence):
        return {"begin": [expression_to_data(e) for e in expr.expressions]}
    if isinstance(expr, list):
        return [expression_to_data(e) for e in expr]
    if isinstance(expr, dict) and len(expr) == 1 and next(iter(expr)) in TAGS:
        # A literal that would otherwise read back as an expression
        return {"quote": expr}
    return expr


def _compile_part(value: Any, parser: ConditionParser) -> Any:
    # Bare strings in rule files are condition/action source text
    if isinstance(value, str):
        return parser.parse(value)
    return expression_from_data(value)


def load_rule_document(content: Union[str, Dict[str, Any]]) -> RuleDocument:
    """
    Parse and validate a rule document.

    Raises:
        RuleDefinitionError: If the YAML is malformed or fails validation.
    """
    if isinstance(content, str):
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise RuleDefinitionError(f"Invalid YAML: {e}") from e
    else:
        data = content

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RuleDefinitionError("Rule document must be a mapping")

    try:
        return RuleDocument(**data)
    except ValidationError as e:
        raise RuleDefinitionError(str(e)) from e


def compile_rules(document: RuleDocument) -> List[BusinessRule]:
    """Turn validated rule definitions into BusinessRule values."""
    parser = ConditionParser()
    rules = []
    for definition in document.rules:
        try:
            condition = _compile_part(definition.condition, parser)
            action = _compile_part(definition.action, parser)
        except InvalidExpressionError as e:
            raise RuleDefinitionError(f"Rule {definition.id}: {e}") from e
        rules.append(BusinessRule(
            id=definition.id,
            condition=condition,
            action=action,
            metadata=definition.metadata,
            priority=definition.priority,
        ))
    return rules


def load_rules(content: Union[str, Dict[str, Any]]) -> Tuple[List[BusinessRule], EngineConfig]:
    """
    Load business rules and engine settings from YAML content.

    Returns:
        Tuple of (rules in document order, engine configuration).
    """
    document = load_rule_document(content)
    return compile_rules(document), document.engine


def load_rules_file(path: Union[str, Path]) -> Tuple[List[BusinessRule], EngineConfig]:
    """Load business rules from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return load_rules(f.read())

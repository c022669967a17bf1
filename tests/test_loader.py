"""
Tests for the plain-data expression form and YAML rule documents.
"""

import pytest

from backend.finrules import EngineConfig
from backend.finrules.logic import (
    Application,
    Assignment,
    Definition,
    If,
    InvalidExpressionError,
    Lambda,
    NotApplicableError,
    Quoted,
    RuleDefinitionError,
    RuleEngine,
    Sequence,
    Variable,
    call,
    default_registry,
    evaluate,
    expression_from_data,
    expression_to_data,
    load_rules,
    load_rules_file,
)


RULES_YAML = """
engine:
  match_strategy: priority
  conflict_resolution: warn

rules:
  - id: BR-LARGE
    condition: "amount >= 1000"
    action:
      quote: review
    priority: 5
    metadata:
      description: Large amounts need review
      errorMessageKey: large_amount
      owner: credit-risk

  - id: BR-ANY
    condition:
      apply: [">", [{var: amount}, 0]]
    action:
      var: amount
"""


class TestExpressionFromData:
    """Tests for building expressions from tagged mappings."""

    def test_var_and_apply(self):
        """Test that a string operator becomes a variable reference."""
        data = {"apply": [">=", [{"var": "amount"}, 1000]]}
        assert expression_from_data(data) == call(">=", Variable("amount"), 1000)

    def test_lambda(self):
        """Test lambda with a nested body."""
        data = {"lambda": [["a"], {"apply": [">", [{"var": "a"}, 10]]}]}
        assert expression_from_data(data) == Lambda(["a"], call(">", Variable("a"), 10))

    def test_if_with_and_without_alternative(self):
        """Test two and three item if forms."""
        assert expression_from_data({"if": [True, 1]}) == If(True, 1)
        assert expression_from_data({"if": [True, 1, 2]}) == If(True, 1, 2)

    def test_set_define_begin(self):
        """Test assignment, definition and sequence forms."""
        data = {"begin": [{"define": ["x", 1]}, {"set": ["x", 2]}, {"var": "x"}]}
        assert expression_from_data(data) == Sequence([
            Definition("x", 1),
            Assignment("x", 2),
            Variable("x"),
        ])

    def test_quote_keeps_payload(self):
        """Test that quoted mappings are not interpreted."""
        assert expression_from_data({"quote": {"var": "x"}}) == Quoted({"var": "x"})

    def test_when_parses_text(self):
        """Test that 'when' runs the condition parser."""
        assert expression_from_data({"when": "amount > 5"}) == call(">", Variable("amount"), 5)

    def test_apply_with_expression_operator(self):
        """Test an inline lambda as operator."""
        data = {"apply": [{"lambda": [["x"], {"var": "x"}]}, [7]]}
        assert expression_from_data(data) == Application(Lambda(["x"], Variable("x")), [7])

    @pytest.mark.parametrize("value", [1, "text", None, {"a": 1, "b": 2}, {"unknown": 1}])
    def test_literals_pass_through(self, value):
        """Test that untagged values are literals."""
        assert expression_from_data(value) == value

    def test_list_with_expressions_builds_list(self):
        """Test that a list holding tagged values becomes a list call."""
        assert expression_from_data([{"var": "a"}, 2]) == call("list", Variable("a"), 2)

    def test_list_items_evaluated(self):
        """Test that items of a converted list are evaluated."""
        env = default_registry().bootstrap().extend(["amount"], [7])
        expr = expression_from_data([{"var": "amount"}, 2, [{"var": "amount"}]])
        assert evaluate(expr, env) == [7, 2, [7]]

    def test_plain_list_stays_literal(self):
        """Test that a list without expressions is left as data."""
        assert expression_from_data([1, [2, "x"]]) == [1, [2, "x"]]

    @pytest.mark.parametrize("data", [
        {"var": 1},
        {"apply": [">"]},
        {"apply": [">", 1]},
        {"lambda": ["a", 1]},
        {"if": [True]},
        {"set": [1, 2]},
        {"begin": "x"},
        {"begin": []},
    ])
    def test_malformed(self, data):
        """Test that badly shaped tagged mappings raise."""
        with pytest.raises(InvalidExpressionError):
            expression_from_data(data)


class TestExpressionToData:
    """Tests for converting expressions back to data."""

    def test_nested(self):
        """Test a representative tree converts back to its data form."""
        expr = If(call(">", Variable("a"), 1), Quoted("big"), Lambda(["x"], Variable("x")))
        assert expression_to_data(expr) == {
            "if": [
                {"apply": [">", [{"var": "a"}, 1]]},
                {"quote": "big"},
                {"lambda": [["x"], {"var": "x"}]},
            ]
        }

    def test_literal_string_operator_round_trip(self):
        """Test that a string operator that is not a variable stays a literal."""
        expr = Application("notafunction", [1])
        data = expression_to_data(expr)
        assert data == {"apply": [{"quote": "notafunction"}, [1]]}
        assert expression_from_data(data) == expr
        with pytest.raises(NotApplicableError):
            evaluate(expression_from_data(data), default_registry().bootstrap())

    def test_variable_operator_round_trip(self):
        """Test that named operators read back as variables."""
        expr = call("+", Variable("a"), 1)
        assert expression_from_data(expression_to_data(expr)) == expr

    def test_tag_like_literal_is_quoted(self):
        """Test that a literal shaped like a tag reads back as the same literal."""
        data = expression_to_data({"var": "x"})
        assert data == {"quote": {"var": "x"}}
        assert evaluate(expression_from_data(data), default_registry().bootstrap()) == {"var": "x"}


class TestLoadRules:
    """Tests for YAML rule documents."""

    def test_load(self):
        """Test rules and engine settings are read."""
        rules, config = load_rules(RULES_YAML)
        assert [r.id for r in rules] == ["BR-LARGE", "BR-ANY"]
        assert isinstance(config, EngineConfig)
        assert config.match_strategy == "priority"
        assert rules[0].condition == call(">=", Variable("amount"), 1000)
        assert rules[0].priority == 5
        assert rules[0].metadata.error_key == "large_amount"

    def test_extra_metadata_kept(self):
        """Test that unknown metadata keys survive loading."""
        rules, _ = load_rules(RULES_YAML)
        assert rules[0].metadata.model_extra == {"owner": "credit-risk"}

    def test_loaded_rules_run(self):
        """Test loaded rules in an engine."""
        rules, config = load_rules(RULES_YAML)
        engine = RuleEngine(rules, config)
        env = default_registry().bootstrap()
        assert engine.find_applicable_rule(env, {"amount": 5000}) == "review"
        assert engine.find_applicable_rule(env, {"amount": 10}) == 10

    def test_empty_document(self):
        """Test that an empty document has no rules and default config."""
        rules, config = load_rules("")
        assert rules == []
        assert config.match_strategy == "first_match"

    @pytest.mark.parametrize("content", [
        "rules: [unclosed",
        "- just\n- a list\n",
        "rules:\n  - id: 1bad\n    condition: true\n    action: 1\n",
        "rules:\n  - id: A\n    condition: true\n    action: 1\n  - id: A\n    condition: true\n    action: 2\n",
        "rules:\n  - id: A\n    condition: null\n    action: 1\n",
        "rules:\n  - id: A\n    condition: 'amount >'\n    action: 1\n",
        "engine:\n  match_strategy: random\n",
    ])
    def test_invalid_documents(self, content):
        """Test that bad documents raise RuleDefinitionError."""
        with pytest.raises(RuleDefinitionError):
            load_rules(content)

    def test_load_file(self, tmp_path):
        """Test loading rules from a file."""
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        rules, config = load_rules_file(path)
        assert len(rules) == 2
        assert config.conflict_resolution == "warn"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_rules_file(tmp_path / "missing.yaml")

    def test_list_action_evaluated(self):
        """Test that a list action returns evaluated values."""
        content = "rules:\n  - id: PAIR\n    condition: true\n    action: [{var: amount}, 1]\n"
        rules, config = load_rules(content)
        engine = RuleEngine(rules, config)
        env = default_registry().bootstrap()
        assert engine.find_applicable_rule(env, {"amount": 7}) == [7, 1]

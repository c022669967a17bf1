"""
Business rules: condition/action expression pairs and the engine that runs them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..models import ConflictResolution, EngineConfig, MatchStrategy, RuleMetadata
from .environment import Environment
from .errors import RuleConflictError
from .evaluator import ExpressionEvaluator, is_truthy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusinessRule:
    """
    A stateless domain policy.

    ``condition`` and ``action`` are expressions evaluated in the same
    caller-supplied environment. The rule itself holds no state, so it can be
    applied any number of times against independent environments.
    """

    id: str
    condition: Any
    action: Any
    metadata: RuleMetadata = field(default_factory=RuleMetadata)
    priority: int = 0

    def __post_init__(self):
        if isinstance(self.metadata, Mapping):
            object.__setattr__(self, "metadata", RuleMetadata(**self.metadata))


def apply_rule(
    rule: BusinessRule,
    env: Environment,
    evaluator: Optional[ExpressionEvaluator] = None
) -> Any:
    """
    Apply a business rule in an environment.

    Args:
        rule: The rule to apply.
        env: Environment holding every name the condition and action use.
        evaluator: Evaluator to use; a default one is created when omitted.

    Returns:
        The action's value if the condition is truthy, None otherwise.
    """
    evaluator = evaluator or ExpressionEvaluator()
    if is_truthy(evaluator.evaluate(rule.condition, env)):
        logger.debug("Rule %s fired", rule.id)
        return evaluator.evaluate(rule.action, env)
    logger.debug("Rule %s did not fire", rule.id)
    return None


def apply_rule_with(
    rule: BusinessRule,
    env: Environment,
    bindings: Mapping[str, Any],
    evaluator: Optional[ExpressionEvaluator] = None
) -> Any:
    """
    Apply a rule with input bindings held in a fresh child frame.

    The bindings shadow same-named values in ``env`` without mutating it.
    """
    scope = env.extend(list(bindings.keys()), list(bindings.values()))
    return apply_rule(rule, scope, evaluator)


@dataclass
class RuleMatch:
    """A rule that fired and the value its action produced."""

    rule_id: str
    result: Any
    metadata: RuleMetadata = field(default_factory=RuleMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "result": self.result,
            "metadata": self.metadata.model_dump(),
        }


@dataclass
class RuleEvaluationResult:
    """Outcome of running a rule set."""

    success: bool
    matches: List[RuleMatch] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def matched_count(self) -> int:
        return len(self.matches)

    @property
    def first_match(self) -> Optional[RuleMatch]:
        return self.matches[0] if self.matches else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "matches": [m.to_dict() for m in self.matches],
            "matched_count": self.matched_count,
            "first_match": self.first_match.to_dict() if self.first_match else None,
            "warnings": self.warnings,
            "error": self.error,
        }


def evaluate_rules(
    rules: Iterable[BusinessRule],
    env: Environment,
    match_strategy: str = "first_match",
    conflict_resolution: str = "first_wins",
    evaluator: Optional[ExpressionEvaluator] = None
) -> RuleEvaluationResult:
    """
    Evaluate several rules against one environment.

    Args:
        rules: Rules in declaration order.
        env: The environment every rule is applied in.
        match_strategy: first_match, priority or all_match.
        conflict_resolution: first_wins, warn or error.
        evaluator: Evaluator to use; a default one is created when omitted.

    Returns:
        RuleEvaluationResult listing the rules that fired.

    Raises:
        RuleConflictError: If conflict_resolution is 'error' and rules that
            fired disagree.
        ValueError: If match_strategy or conflict_resolution is not a known value.
    """
    evaluator = evaluator or ExpressionEvaluator()
    rules = list(rules)
    match_strategy = MatchStrategy(match_strategy)
    conflict_resolution = ConflictResolution(conflict_resolution)
    matches: List[RuleMatch] = []
    warnings: List[str] = []

    # Stable sort keeps declaration order among equal priorities
    if match_strategy == MatchStrategy.PRIORITY:
        rules = sorted(rules, key=lambda r: r.priority, reverse=True)

    for rule in rules:
        result = apply_rule(rule, env, evaluator)
        if result is None:
            continue
        matches.append(RuleMatch(rule_id=rule.id, result=result, metadata=rule.metadata))
        if match_strategy != MatchStrategy.ALL_MATCH:
            break

    if match_strategy == MatchStrategy.ALL_MATCH and len(matches) > 1:
        first = matches[0].result
        if any(m.result != first for m in matches[1:]):
            rule_ids = [m.rule_id for m in matches]
            if conflict_resolution == ConflictResolution.ERROR:
                raise RuleConflictError(rule_ids)
            if conflict_resolution == ConflictResolution.WARN:
                message = (
                    f"Conflicting rules matched: {rule_ids}. "
                    f"Using first match: {matches[0].rule_id}"
                )
                logger.warning(message)
                warnings.append(message)

    return RuleEvaluationResult(success=True, matches=matches, warnings=warnings)


class RuleEngine:
    """
    High-level rule engine for evaluating a rule set.

    Holds the rules, the configuration and one evaluator built from it.
    """

    def __init__(
        self,
        rules: Optional[Iterable[BusinessRule]] = None,
        config: Optional[Union[EngineConfig, Dict[str, Any]]] = None
    ):
        """
        Initialize the rule engine.

        Args:
            rules: Rules in declaration order.
            config: EngineConfig, or a mapping validated into one. An
                explicitly set log_level is applied to the finrules logger.
        """
        if config is None:
            config = EngineConfig()
        elif isinstance(config, Mapping):
            config = EngineConfig(**config)
        self.config = config
        self.rules: List[BusinessRule] = list(rules or [])
        self.evaluator = ExpressionEvaluator(max_depth=config.max_depth)

        # Only an explicitly configured level overrides the package logger
        if "log_level" in config.model_fields_set:
            from ..config import apply_log_level
            apply_log_level(config)

    def add_rule(self, rule: BusinessRule) -> None:
        self.rules.append(rule)

    def get_rule(self, rule_id: str) -> Optional[BusinessRule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def apply(self, rule_id: str, env: Environment, bindings: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Apply a single rule by id.

        Raises:
            KeyError: If no rule has that id.
        """
        rule = self.get_rule(rule_id)
        if rule is None:
            raise KeyError(f"Unknown rule: {rule_id}")
        if bindings:
            return apply_rule_with(rule, env, bindings, self.evaluator)
        return apply_rule(rule, env, self.evaluator)

    def evaluate(self, env: Environment, bindings: Optional[Mapping[str, Any]] = None) -> RuleEvaluationResult:
        """
        Evaluate all rules against an environment.

        Args:
            env: Environment to evaluate in.
            bindings: Optional inputs bound in a child frame of ``env``.

        Returns:
            RuleEvaluationResult. A conflict under the 'error' policy is
            reported as success=False rather than raised.
        """
        if bindings:
            env = env.extend(list(bindings.keys()), list(bindings.values()))

        try:
            return evaluate_rules(
                self.rules,
                env,
                match_strategy=self.config.match_strategy,
                conflict_resolution=self.config.conflict_resolution,
                evaluator=self.evaluator,
            )
        except RuleConflictError as e:
            logger.error("%s", e)
            return RuleEvaluationResult(success=False, error=str(e))

    def find_applicable_rule(self, env: Environment, bindings: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the first match's result, or None when nothing fired."""
        result = self.evaluate(env, bindings)
        if result.success and result.first_match:
            return result.first_match.result
        return None

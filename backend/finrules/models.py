"""
Pydantic models for rule documents and engine configuration.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MatchStrategy(str, Enum):
    """How many rules the engine lets fire."""
    FIRST_MATCH = "first_match"
    PRIORITY = "priority"
    ALL_MATCH = "all_match"


class ConflictResolution(str, Enum):
    """What the engine does when several rules fire with different results."""
    FIRST_WINS = "first_wins"
    WARN = "warn"
    ERROR = "error"


class RuleMetadata(BaseModel):
    """
    Descriptive data attached to a business rule.

    Unknown keys are kept, so documents can carry extra annotations
    (owner, jurisdiction, ticket references) alongside the standard ones.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    description: str = ""
    rationale: str = ""
    error_key: Optional[str] = Field(default=None, alias="errorMessageKey")


RULE_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_.-]*$")


class RuleDefinition(BaseModel):
    """A single rule as written in a YAML document, before compilation."""

    id: str
    condition: Any
    action: Any
    priority: int = 0
    metadata: RuleMetadata = Field(default_factory=RuleMetadata)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not RULE_ID_PATTERN.match(v):
            raise ValueError(
                f"Rule id '{v}' must start with a letter and contain only "
                "letters, digits, '_', '.' or '-'"
            )
        return v

    @field_validator("condition", "action")
    @classmethod
    def validate_present(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("condition and action must not be null")
        return v


class EngineConfig(BaseModel):
    """Configuration for RuleEngine and the evaluator it uses."""

    model_config = ConfigDict(use_enum_values=True)

    match_strategy: MatchStrategy = MatchStrategy.FIRST_MATCH
    conflict_resolution: ConflictResolution = ConflictResolution.FIRST_WINS
    log_level: str = "WARNING"
    max_depth: Optional[int] = Field(default=None, gt=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class RuleDocument(BaseModel):
    """Top-level shape of a rule file."""

    rules: List[RuleDefinition] = Field(default_factory=list)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @field_validator("rules")
    @classmethod
    def validate_unique_ids(cls, v: List[RuleDefinition]) -> List[RuleDefinition]:
        seen = set()
        for rule in v:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return v

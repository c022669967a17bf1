"""
finrules: business rules as data.

Rules and UI-data computations are written as expression trees and evaluated
against lexically scoped environments built from a primitive registry.
"""

from .models import (
    RuleMetadata,
    RuleDefinition,
    RuleDocument,
    EngineConfig,
    MatchStrategy,
    ConflictResolution,
)
from .config import load_config, load_config_file, configure_logging, apply_log_level
from .logic import (
    BusinessRule,
    Environment,
    ExpressionEvaluator,
    PrimitiveRegistry,
    RuleEngine,
    apply_rule,
    default_registry,
    evaluate,
)

__version__ = "0.1.0"
__all__ = [
    "RuleMetadata",
    "RuleDefinition",
    "RuleDocument",
    "EngineConfig",
    "MatchStrategy",
    "ConflictResolution",
    "load_config",
    "load_config_file",
    "configure_logging",
    "apply_log_level",
    "BusinessRule",
    "Environment",
    "ExpressionEvaluator",
    "PrimitiveRegistry",
    "RuleEngine",
    "apply_rule",
    "default_registry",
    "evaluate",
]

"""
Tests for pydantic models.
"""

import pytest
from pydantic import ValidationError

from backend.finrules.models import (
    ConflictResolution,
    EngineConfig,
    MatchStrategy,
    RuleDefinition,
    RuleDocument,
    RuleMetadata,
)


class TestRuleMetadata:
    """Tests for RuleMetadata model."""

    def test_alias(self):
        """Test that errorMessageKey populates error_key."""
        metadata = RuleMetadata(errorMessageKey="amount_limit_error")
        assert metadata.error_key == "amount_limit_error"

    def test_field_name(self):
        """Test that the field name is accepted too."""
        assert RuleMetadata(error_key="x").error_key == "x"

    def test_frozen(self):
        """Test that metadata cannot be changed after creation."""
        metadata = RuleMetadata(description="d")
        with pytest.raises(ValidationError):
            metadata.description = "other"

    def test_dump_by_alias(self):
        """Test dumping with the document key name."""
        data = RuleMetadata(errorMessageKey="k").model_dump(by_alias=True)
        assert data["errorMessageKey"] == "k"


class TestRuleDefinition:
    """Tests for RuleDefinition model."""

    @pytest.mark.parametrize("rule_id", ["BR001", "topup.limits", "a-b_c"])
    def test_valid_ids(self, rule_id):
        """Test accepted rule ids."""
        assert RuleDefinition(id=rule_id, condition=True, action=1).id == rule_id

    @pytest.mark.parametrize("rule_id", ["", "1abc", "has space", "bad/id"])
    def test_invalid_ids(self, rule_id):
        """Test rejected rule ids."""
        with pytest.raises(ValidationError):
            RuleDefinition(id=rule_id, condition=True, action=1)

    def test_condition_required(self):
        """Test that condition and action cannot be null."""
        with pytest.raises(ValidationError):
            RuleDefinition(id="A", condition=None, action=1)
        with pytest.raises(ValidationError):
            RuleDefinition(id="A", condition=True, action=None)

    def test_false_condition_allowed(self):
        """Test that a literal false condition is valid."""
        assert RuleDefinition(id="A", condition=False, action=0).condition is False


class TestEngineConfig:
    """Tests for EngineConfig model."""

    def test_defaults(self):
        """Test default configuration values."""
        config = EngineConfig()
        assert config.match_strategy == MatchStrategy.FIRST_MATCH
        assert config.conflict_resolution == ConflictResolution.FIRST_WINS
        assert config.log_level == "WARNING"
        assert config.max_depth is None

    def test_enum_values_stored(self):
        """Test that strategies are stored as plain strings."""
        config = EngineConfig(match_strategy="all_match", conflict_resolution="error")
        assert config.match_strategy == "all_match"
        assert config.conflict_resolution == "error"

    def test_log_level_normalised(self):
        """Test that log levels are upper-cased."""
        assert EngineConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs", [
        {"match_strategy": "random"},
        {"conflict_resolution": "ignore"},
        {"log_level": "verbose"},
        {"max_depth": 0},
        {"max_depth": -1},
    ])
    def test_invalid(self, kwargs):
        """Test rejected configuration values."""
        with pytest.raises(ValidationError):
            EngineConfig(**kwargs)


class TestRuleDocument:
    """Tests for RuleDocument model."""

    def test_duplicate_ids(self):
        """Test that rule ids must be unique."""
        with pytest.raises(ValidationError):
            RuleDocument(rules=[
                {"id": "A", "condition": True, "action": 1},
                {"id": "A", "condition": True, "action": 2},
            ])

    def test_empty(self):
        """Test an empty document."""
        document = RuleDocument()
        assert document.rules == []
        assert isinstance(document.engine, EngineConfig)

"""
Tests for configuration loading and logging setup.
"""

import io
import logging

import pytest

from backend.finrules import configure_logging, load_config, load_config_file
from backend.finrules.logic import RuleDefinitionError


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        """Test that no content and no environment gives defaults."""
        config = load_config(environ={})
        assert config.match_strategy == "first_match"
        assert config.log_level == "WARNING"

    def test_yaml_top_level(self):
        """Test config keys at the top level of the YAML."""
        config = load_config("match_strategy: priority\nmax_depth: 200\n", environ={})
        assert config.match_strategy == "priority"
        assert config.max_depth == 200

    def test_engine_section(self):
        """Test reading the engine section of a rule document."""
        content = "engine:\n  conflict_resolution: warn\nrules: []\n"
        assert load_config(content, environ={}).conflict_resolution == "warn"

    def test_mapping_content(self):
        """Test passing an already-parsed mapping."""
        assert load_config({"log_level": "info"}, environ={}).log_level == "INFO"

    def test_env_overrides_file(self):
        """Test that FINRULES_* variables take precedence."""
        environ = {
            "FINRULES_MATCH_STRATEGY": "all_match",
            "FINRULES_MAX_DEPTH": "50",
            "FINRULES_LOG_LEVEL": "",
        }
        config = load_config("match_strategy: priority\nlog_level: error\n", environ=environ)
        assert config.match_strategy == "all_match"
        assert config.max_depth == 50
        assert config.log_level == "ERROR"

    def test_reads_os_environ(self, monkeypatch):
        """Test that os.environ is used when no mapping is given."""
        monkeypatch.setenv("FINRULES_CONFLICT_RESOLUTION", "error")
        assert load_config().conflict_resolution == "error"

    @pytest.mark.parametrize("content", [
        "match_strategy: [unclosed",
        "- a\n- b\n",
        "max_depth: 0\n",
    ])
    def test_invalid(self, content):
        """Test that bad configuration raises RuleDefinitionError."""
        with pytest.raises(RuleDefinitionError):
            load_config(content, environ={})

    def test_invalid_env_value(self):
        """Test that a bad override is reported."""
        with pytest.raises(RuleDefinitionError):
            load_config(environ={"FINRULES_MATCH_STRATEGY": "random"})

    def test_load_file(self, tmp_path):
        """Test loading configuration from a file."""
        path = tmp_path / "engine.yaml"
        path.write_text("engine:\n  match_strategy: priority\n", encoding="utf-8")
        assert load_config_file(path, environ={}).match_strategy == "priority"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "missing.yaml", environ={})


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("backend.finrules")
        handlers = list(logger.handlers)
        level = logger.level
        yield
        logger.handlers = handlers
        logger.setLevel(level)

    def test_messages_written(self):
        """Test that package log records reach the stream."""
        stream = io.StringIO()
        configure_logging("debug", stream=stream)
        logging.getLogger("backend.finrules.logic.rules").debug("hello rules")
        assert "hello rules" in stream.getvalue()

    def test_reconfigure_replaces_handler(self):
        """Test that calling twice does not duplicate output."""
        first = io.StringIO()
        second = io.StringIO()
        configure_logging("INFO", stream=first)
        logger = configure_logging("INFO", stream=second)
        logger.info("once")
        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1

    def test_level_applied(self):
        """Test that records below the level are dropped."""
        stream = io.StringIO()
        configure_logging(logging.ERROR, stream=stream)
        logging.getLogger("backend.finrules").warning("quiet")
        assert stream.getvalue() == ""

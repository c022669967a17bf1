"""
Engine configuration loading and logging setup.

Configuration comes from, in increasing precedence: model defaults, a YAML
file (top-level keys or an ``engine:`` section), and FINRULES_* environment
variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from .logic.errors import RuleDefinitionError
from .models import EngineConfig

ENV_PREFIX = "FINRULES_"
LOGGER_NAME = "backend.finrules"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field_name in EngineConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_config(
    content: Optional[Union[str, Mapping[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> EngineConfig:
    """
    Build an EngineConfig.

    Args:
        content: YAML text or an already-parsed mapping. Either the config
            keys themselves or a document with an ``engine`` section.
        environ: Environment variables to read overrides from. Defaults to
            os.environ.

    Returns:
        The validated configuration.

    Raises:
        RuleDefinitionError: If the YAML is malformed or a value is invalid.
    """
    if isinstance(content, str):
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise RuleDefinitionError(f"Invalid YAML: {e}") from e
    else:
        data = dict(content or {})

    if not isinstance(data, dict):
        raise RuleDefinitionError("Configuration must be a mapping")

    if "engine" in data and isinstance(data["engine"], dict):
        data = dict(data["engine"])

    data.update(_env_overrides(os.environ if environ is None else environ))

    try:
        return EngineConfig(**data)
    except ValidationError as e:
        raise RuleDefinitionError(str(e)) from e


def load_config_file(path: Union[str, Path], environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Load an EngineConfig from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return load_config(f.read(), environ)


def configure_logging(level: Union[str, int] = "WARNING", stream=None) -> logging.Logger:
    """
    Attach a stream handler to the finrules logger hierarchy.

    Calling it again replaces the handler instead of adding a second one.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_finrules_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._finrules_handler = True
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def apply_log_level(config: EngineConfig) -> logging.Logger:
    """Set the finrules logger level from ``config.log_level``, leaving handlers alone."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)
    return logger

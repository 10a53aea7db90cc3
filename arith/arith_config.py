"""
Configuration loading.

Configuration is a small YAML document:

    builtins: true
    constants:
      tau: 6.283185307179586
    repl:
      prompt: "> "
      precision: 12
    logging:
      level: WARNING

Every key is optional.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from arith.arith_builtins import install_builtins
from arith.arith_interpreter import Evaluator

logger = logging.getLogger(__name__)

_SECTIONS = {"builtins", "constants", "repl", "logging"}
_REPL_KEYS = {"prompt", "precision"}
_LOGGING_KEYS = {"level"}


@dataclass
class Config:
    builtins: bool = True
    constants: Dict[str, float] = field(default_factory=dict)
    prompt: str = "> "
    precision: Optional[int] = 12
    log_level: str = "WARNING"


def _section(raw: dict, key: str, allowed: set) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in config section '{key}': {', '.join(sorted(unknown))}")
    return value


def parse_config(raw) -> Config:
    """Builds a Config from an already-loaded YAML document."""
    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping at the top level")
    unknown = set(raw) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    config = Config()

    if "builtins" in raw:
        if not isinstance(raw["builtins"], bool):
            raise ValueError("'builtins' must be true or false")
        config.builtins = raw["builtins"]

    constants = raw.get("constants") or {}
    if not isinstance(constants, dict):
        raise ValueError("'constants' must be a mapping of name to number")
    for name, value in constants.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Constant '{name}' must be a number, got {value!r}")
        config.constants[str(name)] = float(value)

    repl = _section(raw, "repl", _REPL_KEYS)
    if "prompt" in repl:
        if not isinstance(repl["prompt"], str):
            raise ValueError("'repl.prompt' must be a string")
        config.prompt = repl["prompt"]
    if "precision" in repl:
        precision = repl["precision"]
        if precision is not None and (isinstance(precision, bool) or not isinstance(precision, int) or precision < 1):
            raise ValueError("'repl.precision' must be a positive integer or null")
        config.precision = precision

    log_section = _section(raw, "logging", _LOGGING_KEYS)
    if "level" in log_section:
        level = str(log_section["level"]).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown logging level {log_section['level']!r}")
        config.log_level = level

    return config


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """Loads configuration from `path`; defaults when no path is given."""
    if path is None:
        return Config()
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    logger.debug("loading config from %s", p)
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {p}: {e}") from e
    return parse_config(raw)


def build_evaluator(config: Optional[Config] = None) -> Evaluator:
    config = config or Config()
    evaluator = Evaluator()
    if config.builtins:
        install_builtins(evaluator.registry)
    for name, value in config.constants.items():
        evaluator.register_constant(name, value)
    return evaluator

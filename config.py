"""
Centralized configuration for the validation engine.
All settings come from environment variables, with optional YAML rule overrides.
"""
import os
import re
import warnings
from typing import Dict, FrozenSet, Optional, Tuple
from dataclasses import dataclass, field
from functools import lru_cache

import yaml

from validation.rules import rule_names
from validation.sql_validator import ValidatorSettings
from validation.types import Dialect, UnsupportedDialectError


@dataclass
class RuleOverrides:
    """Per-dialect adjustments read from the rules file."""
    disabled_rules: FrozenSet[str] = field(default_factory=frozenset)
    allowed_statements: Tuple[str, ...] = ()


@dataclass
class AppConfig:
    """Main application configuration."""
    strict: bool
    sqlite_version: Tuple[int, ...]
    default_dialect: str
    rules_path: str
    log_level: str
    overrides: Dict[Dialect, RuleOverrides] = field(default_factory=dict)


class ConfigurationError(Exception):
    """Raised when configuration is malformed."""
    pass


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _parse_version(raw: str) -> Tuple[int, ...]:
    """Parse a dotted version such as "3.38" or "3.45.1"."""
    if not re.fullmatch(r"\s*\d+(\.\d+)*\s*", raw or ""):
        raise ConfigurationError(
            f"Invalid SQLMIMIC_SQLITE_VERSION {raw!r}; expected a dotted version like 3.39"
        )
    return tuple(int(part) for part in raw.strip().split("."))


def _load_rule_overrides(path: str) -> Dict[Dialect, RuleOverrides]:
    """
    Load per-dialect rule overrides from a YAML file.

    Expected layout:
        dialects:
          sqlite:
            disabled_rules: [right_full_join]
            allowed_statements: ['^\\s*VALUES\\s*\\(']
    """
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        obj = yaml.safe_load(f) or {}

    overrides: Dict[Dialect, RuleOverrides] = {}
    for name, data in (obj.get("dialects") or {}).items():
        try:
            dialect = Dialect.parse(name)
        except (UnsupportedDialectError, TypeError) as e:
            raise ConfigurationError(f"{path}: {e}") from e

        data = data or {}
        disabled = frozenset(data.get("disabled_rules") or [])
        unknown = disabled - set(rule_names(dialect))
        if unknown:
            warnings.warn(
                f"{path}: unknown {dialect.value} rule(s) {', '.join(sorted(unknown))}",
                UserWarning
            )

        allowed = tuple(data.get("allowed_statements") or [])
        for pattern in allowed:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(
                    f"{path}: invalid allowed_statements pattern {pattern!r}: {e}"
                ) from e

        overrides[dialect] = RuleOverrides(disabled_rules=disabled, allowed_statements=allowed)
    return overrides


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Optional environment variables:
    - SQLMIMIC_STRICT: Treat warnings as errors (default: "false")
    - SQLMIMIC_SQLITE_VERSION: Target SQLite version (default: "3.38")
    - SQLMIMIC_DEFAULT_DIALECT: Dialect used by the CLI (default: "sqlserver")
    - SQLMIMIC_RULES_PATH: Path to rule overrides YAML (default: "sqlmimic_rules.yaml")
    - SQLMIMIC_LOG_LEVEL: Logging level name (default: "WARNING")

    Raises:
        ConfigurationError: If a variable or the rules file is malformed
    """
    default_dialect = os.environ.get("SQLMIMIC_DEFAULT_DIALECT", "sqlserver")
    try:
        Dialect.parse(default_dialect)
    except UnsupportedDialectError as e:
        raise ConfigurationError(f"SQLMIMIC_DEFAULT_DIALECT: {e}") from e

    rules_path = os.environ.get("SQLMIMIC_RULES_PATH", "sqlmimic_rules.yaml")

    return AppConfig(
        strict=_parse_bool(os.environ.get("SQLMIMIC_STRICT", "false")),
        sqlite_version=_parse_version(os.environ.get("SQLMIMIC_SQLITE_VERSION", "3.38")),
        default_dialect=default_dialect,
        rules_path=rules_path,
        log_level=os.environ.get("SQLMIMIC_LOG_LEVEL", "WARNING").upper(),
        overrides=_load_rule_overrides(rules_path),
    )


def settings_for(dialect, strict: Optional[bool] = None) -> ValidatorSettings:
    """Build validator settings for a dialect from the loaded configuration."""
    config = load_config()
    resolved = Dialect.parse(dialect)
    overrides = config.overrides.get(resolved, RuleOverrides())
    return ValidatorSettings(
        strict=config.strict if strict is None else strict,
        sqlite_version=config.sqlite_version,
        disabled_rules=overrides.disabled_rules,
        allowed_statements=overrides.allowed_statements,
    )


def get_default_dialect() -> str:
    """Get the dialect used when none is given."""
    return load_config().default_dialect


def is_strict() -> bool:
    """Check if strict mode is enabled."""
    return load_config().strict

"""
SQL validation module.

This module provides:
- Dialect-aware SQL syntax validation
- Statement classification
- Table reference extraction
"""

from .types import (
    Dialect,
    StatementKind,
    ValidationResult,
    UnsupportedDialectError,
    EMPTY_STATEMENT_ERROR,
)
from .scanner import strip_comments, quotes_balanced, parens_balanced
from .classifier import classify
from .extractor import extract_table_names
from .sql_validator import (
    SqlValidator,
    PatternValidator,
    PostgreSQLValidator,
    MySQLValidator,
    SQLiteValidator,
    ValidatorSettings,
    UNKNOWN_STATEMENT_ERROR,
)
from .tsql_validator import TSqlValidator
from .factory import create_validator, supported_dialects

__all__ = [
    "Dialect",
    "StatementKind",
    "ValidationResult",
    "UnsupportedDialectError",
    "EMPTY_STATEMENT_ERROR",
    "UNKNOWN_STATEMENT_ERROR",
    "strip_comments",
    "quotes_balanced",
    "parens_balanced",
    "classify",
    "extract_table_names",
    "SqlValidator",
    "PatternValidator",
    "PostgreSQLValidator",
    "MySQLValidator",
    "SQLiteValidator",
    "TSqlValidator",
    "ValidatorSettings",
    "create_validator",
    "supported_dialects",
]

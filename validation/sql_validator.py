"""
SQL syntax validation per dialect.

Validates:
1. Empty input (rejected before anything else runs)
2. Basic structure (balanced quotes and parentheses)
3. Statement classification (known kind or allow-listed statement)
4. Dialect restrictions (PostgreSQL, MySQL, SQLite rule sets)

Strictness is not uniform across dialects: pattern-based validators are
heuristic and can accept or reject edge cases a real parser would not,
while the SQL Server validator is backed by a full grammar. Callers should
not assume identical strictness between dialects.
"""
import re
import logging
from abc import ABC, abstractmethod
from typing import FrozenSet, List, Optional, Tuple
from dataclasses import dataclass, field

from .classifier import STATEMENT_PATTERNS, is_recognized_statement, match_kind
from .extractor import extract_table_names
from .rules import ERROR, RuleContext, rules_for
from .scanner import ScanResult, line_col, mask_literals, scan, strip_comments
from .types import Dialect, StatementKind, ValidationResult

logger = logging.getLogger(__name__)

UNKNOWN_STATEMENT_ERROR = "Unknown or invalid SQL statement"


@dataclass(frozen=True)
class ValidatorSettings:
    """
    Construction-time options of a validator.

    Attributes:
        strict: Promote warnings to errors
        sqlite_version: Target SQLite version for version-dependent rules
        disabled_rules: Names of dialect rules to skip
        allowed_statements: Extra anchored regexes accepted as valid
            uncategorized statements
    """
    strict: bool = False
    sqlite_version: Tuple[int, ...] = (3, 38)
    disabled_rules: FrozenSet[str] = field(default_factory=frozenset)
    allowed_statements: Tuple[str, ...] = ()


def is_empty_statement(sql: Optional[str]) -> bool:
    """
    Check for null, empty or whitespace-only input.

    Raises:
        TypeError: If sql is neither None nor a string
    """
    if sql is None:
        return True
    if not isinstance(sql, str):
        raise TypeError(f"SQL statement must be a string, got {type(sql).__name__}")
    return not sql.strip()


def describe_quote_error(sql: str, result: ScanResult) -> str:
    if result.unclosed_quote is not None:
        line, column = line_col(sql, result.quote_offset)
        return (
            f"Unclosed quotes detected: {result.unclosed_quote.label} "
            f"opened at line {line}, column {column} is never closed"
        )
    line, column = line_col(sql, result.stray_bracket_offset)
    return f"Unclosed quotes detected: unmatched ']' at line {line}, column {column}"


def describe_paren_error(sql: str, result: ScanResult) -> str:
    if result.paren_underflow_offset is not None:
        line, column = line_col(sql, result.paren_underflow_offset)
        return f"Unclosed parentheses detected: unexpected ')' at line {line}, column {column}"
    return (
        f"Unclosed parentheses detected: "
        f"missing {result.paren_depth} closing paren(s)"
    )


class SqlValidator(ABC):
    """
    Validate SQL statements for one dialect.

    Operations:
    - validate_syntax: errors and warnings for a statement
    - get_statement_type: StatementKind, UNKNOWN for empty or invalid input
    - extract_table_names: referenced tables, empty for empty or invalid input
    """

    def __init__(self, settings: Optional[ValidatorSettings] = None):
        self.settings = settings or ValidatorSettings()

    @property
    @abstractmethod
    def dialect(self) -> Dialect:
        """Dialect this validator checks against."""

    @abstractmethod
    def _check(self, sql: str) -> Tuple[List[str], List[str]]:
        """
        Run all checks on a non-empty statement.

        Returns:
            Tuple of (errors, warnings)
        """

    @abstractmethod
    def _statement_type(self, sql: str) -> StatementKind:
        pass

    @abstractmethod
    def _table_names(self, sql: str) -> List[str]:
        pass

    def validate_syntax(self, sql: Optional[str]) -> ValidationResult:
        """
        Validate a SQL statement.

        Args:
            sql: The SQL statement to validate

        Returns:
            ValidationResult with errors and warnings
        """
        if is_empty_statement(sql):
            return ValidationResult.empty()

        errors, warnings = self._check(sql)

        # In strict mode, warnings become errors
        if self.settings.strict:
            errors = errors + warnings
            warnings = []

        if errors:
            logger.debug(f"{self.dialect.value}: {len(errors)} error(s) in statement")
        return ValidationResult(errors=errors, warnings=warnings)

    def get_statement_type(self, sql: Optional[str]) -> StatementKind:
        if not self.validate_syntax(sql).is_valid:
            return StatementKind.UNKNOWN
        return self._statement_type(sql)

    def extract_table_names(self, sql: Optional[str]) -> List[str]:
        if not self.validate_syntax(sql).is_valid:
            return []
        return self._table_names(sql)


class PatternValidator(SqlValidator):
    """
    Validator driven by the dialect's pattern tables and rule set.

    Checks:
    - Quote and paren balance (scanner)
    - Classification with allow-list fallback (classifier)
    - Every dialect rule, each contributing its own findings (rules)
    """

    DIALECT: Dialect

    def __init__(self, settings: Optional[ValidatorSettings] = None):
        super().__init__(settings)
        disabled = self.settings.disabled_rules
        self._patterns = STATEMENT_PATTERNS[self.DIALECT]
        self._rules = tuple(r for r in rules_for(self.DIALECT) if r.name not in disabled)
        self._allowed = tuple(
            re.compile(p, re.IGNORECASE) for p in self.settings.allowed_statements
        )

    @property
    def dialect(self) -> Dialect:
        return self.DIALECT

    @property
    def rule_names(self) -> List[str]:
        """Names of the rules this validator runs, in order."""
        return [rule.name for rule in self._rules]

    def _check(self, sql: str) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        # Structural checks on the raw text; the scanner skips comments itself
        scan_result = scan(sql, self.DIALECT)
        if not scan_result.quotes_balanced:
            errors.append(describe_quote_error(sql, scan_result))
        if not scan_result.parens_balanced:
            errors.append(describe_paren_error(sql, scan_result))

        text = strip_comments(sql, self.DIALECT).strip()
        kind = match_kind(text, self._patterns)
        if kind == StatementKind.UNKNOWN and not is_recognized_statement(
            text, self.DIALECT, self._allowed
        ):
            errors.append(UNKNOWN_STATEMENT_ERROR)

        ctx = RuleContext(
            text=mask_literals(text, self.DIALECT),
            kind=kind,
            scan=scan_result,
            sqlite_version=self.settings.sqlite_version,
        )
        for rule in self._rules:
            for finding in rule.evaluate(ctx):
                if finding.severity == ERROR:
                    errors.append(finding.message)
                else:
                    warnings.append(finding.message)

        return errors, warnings

    def _statement_type(self, sql: str) -> StatementKind:
        return match_kind(strip_comments(sql, self.DIALECT).strip(), self._patterns)

    def _table_names(self, sql: str) -> List[str]:
        return extract_table_names(sql, self.DIALECT)


class PostgreSQLValidator(PatternValidator):
    """PostgreSQL validator: \\' escapes, RETURNING and cast heuristics."""
    DIALECT = Dialect.POSTGRESQL


class MySQLValidator(PatternValidator):
    """MySQL validator: backticks, # comments, REPLACE as INSERT."""
    DIALECT = Dialect.MYSQL


class SQLiteValidator(PatternValidator):
    """SQLite validator: no TRUNCATE, limited ALTER TABLE, sqlite_ tables hidden."""
    DIALECT = Dialect.SQLITE

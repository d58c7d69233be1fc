"""
Statement classification by leading keywords.

Each dialect owns an ordered tuple of (pattern, kind) pairs. Patterns are
anchored and matched case-insensitively against the comment-free, trimmed
statement; the first match wins. Where prefixes overlap the more specific
pattern comes first.
"""
import re
import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Pattern, Tuple

from .scanner import strip_comments
from .types import Dialect, StatementKind, UnsupportedDialectError

logger = logging.getLogger(__name__)

KindPatterns = Tuple[Tuple[Pattern, StatementKind], ...]


def _kinds(*pairs: Tuple[str, StatementKind]) -> KindPatterns:
    return tuple((re.compile(p, re.IGNORECASE), kind) for p, kind in pairs)


def _allowed(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


STATEMENT_PATTERNS: Mapping[Dialect, KindPatterns] = MappingProxyType({
    Dialect.POSTGRESQL: _kinds(
        (r"^\s*SELECT\s+", StatementKind.SELECT),
        (r"^\s*INSERT\s+INTO\s+", StatementKind.INSERT),
        (r"^\s*UPDATE\s+", StatementKind.UPDATE),
        (r"^\s*DELETE\s+FROM\s+", StatementKind.DELETE),
        (r"^\s*MERGE\s+", StatementKind.MERGE),
        (r"^\s*CREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP|TEMPORARY|UNLOGGED)\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*CREATE\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*ALTER\s+TABLE\s+", StatementKind.ALTER_TABLE),
        (r"^\s*DROP\s+TABLE\s+", StatementKind.DROP_TABLE),
        (r"^\s*CREATE\s+UNIQUE\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*CREATE\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*DROP\s+INDEX\s+", StatementKind.DROP_INDEX),
        (r"^\s*TRUNCATE\s+", StatementKind.TRUNCATE),
    ),
    Dialect.MYSQL: _kinds(
        (r"^\s*SELECT\s+", StatementKind.SELECT),
        (r"^\s*INSERT\s+", StatementKind.INSERT),
        (r"^\s*UPDATE\s+", StatementKind.UPDATE),
        (r"^\s*DELETE\s+", StatementKind.DELETE),
        (r"^\s*REPLACE\s+", StatementKind.INSERT),
        (r"^\s*CREATE\s+TEMPORARY\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*CREATE\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*ALTER\s+TABLE\s+", StatementKind.ALTER_TABLE),
        (r"^\s*DROP\s+(?:TEMPORARY\s+)?TABLE\s+", StatementKind.DROP_TABLE),
        (r"^\s*CREATE\s+(?:UNIQUE|FULLTEXT|SPATIAL)\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*CREATE\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*DROP\s+INDEX\s+", StatementKind.DROP_INDEX),
        (r"^\s*TRUNCATE\s+", StatementKind.TRUNCATE),
    ),
    Dialect.SQLITE: _kinds(
        (r"^\s*SELECT\s+", StatementKind.SELECT),
        (r"^\s*INSERT\s+", StatementKind.INSERT),
        (r"^\s*UPDATE\s+", StatementKind.UPDATE),
        (r"^\s*DELETE\s+FROM\s+", StatementKind.DELETE),
        (r"^\s*REPLACE\s+", StatementKind.INSERT),
        (r"^\s*CREATE\s+(?:TEMP|TEMPORARY)\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*CREATE\s+TABLE\s+", StatementKind.CREATE_TABLE),
        (r"^\s*ALTER\s+TABLE\s+", StatementKind.ALTER_TABLE),
        (r"^\s*DROP\s+TABLE\s+", StatementKind.DROP_TABLE),
        (r"^\s*CREATE\s+UNIQUE\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*CREATE\s+INDEX\s+", StatementKind.CREATE_INDEX),
        (r"^\s*DROP\s+INDEX\s+", StatementKind.DROP_INDEX),
    ),
})

# Valid statements that have no table-bearing kind
UNCATEGORIZED_STATEMENTS: Mapping[Dialect, Tuple[Pattern, ...]] = MappingProxyType({
    Dialect.POSTGRESQL: _allowed(
        r"^\s*SET\s+",
        r"^\s*SHOW\s+",
        r"^\s*BEGIN\b",
        r"^\s*START\s+TRANSACTION\b",
        r"^\s*COMMIT\b",
        r"^\s*ROLLBACK\b",
        r"^\s*SAVEPOINT\s+",
        r"^\s*RELEASE\s+",
        r"^\s*VACUUM\b",
        r"^\s*ANALYZE\b",
        r"^\s*EXPLAIN\s+",
        r"^\s*COPY\s+",
        r"^\s*GRANT\s+",
        r"^\s*REVOKE\s+",
        r"^\s*WITH\s+",
        r"^\s*VALUES\s*\(",
        r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(FUNCTION|PROCEDURE|TRIGGER|VIEW|SEQUENCE|TYPE|SCHEMA|DATABASE|USER|ROLE|EXTENSION)\s+",
        r"^\s*DROP\s+(FUNCTION|PROCEDURE|TRIGGER|VIEW|SEQUENCE|TYPE|SCHEMA|DATABASE|USER|ROLE|EXTENSION)\s+",
        r"^\s*ALTER\s+(FUNCTION|PROCEDURE|TRIGGER|VIEW|SEQUENCE|TYPE|SCHEMA|DATABASE|USER|ROLE)\s+",
    ),
    Dialect.MYSQL: _allowed(
        r"^\s*SET\s+",
        r"^\s*SHOW\s+",
        r"^\s*DESCRIBE\s+",
        r"^\s*DESC\s+",
        r"^\s*EXPLAIN\s+",
        r"^\s*USE\s+",
        r"^\s*START\s+TRANSACTION\b",
        r"^\s*BEGIN\b",
        r"^\s*COMMIT\b",
        r"^\s*ROLLBACK\b",
        r"^\s*LOCK\s+TABLES\b",
        r"^\s*UNLOCK\s+TABLES\b",
        r"^\s*GRANT\s+",
        r"^\s*REVOKE\s+",
        r"^\s*FLUSH\s+",
        r"^\s*WITH\s+",
        r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(DATABASE|SCHEMA|USER|VIEW|PROCEDURE|FUNCTION|TRIGGER|EVENT)\s+",
        r"^\s*DROP\s+(DATABASE|SCHEMA|USER|VIEW|PROCEDURE|FUNCTION|TRIGGER|EVENT)\s+",
        r"^\s*ALTER\s+(DATABASE|SCHEMA|USER|VIEW|PROCEDURE|FUNCTION|EVENT)\s+",
        r"^\s*CALL\s+",
        r"^\s*LOAD\s+DATA\s+",
        r"^\s*HANDLER\s+",
    ),
    Dialect.SQLITE: _allowed(
        r"^\s*PRAGMA\s+",
        r"^\s*ATTACH\s+",
        r"^\s*DETACH\s+",
        r"^\s*BEGIN\b",
        r"^\s*COMMIT\b",
        r"^\s*END\b",
        r"^\s*ROLLBACK\b",
        r"^\s*SAVEPOINT\s+",
        r"^\s*RELEASE\s+",
        r"^\s*VACUUM\b",
        r"^\s*ANALYZE\b",
        r"^\s*EXPLAIN\s+",
        r"^\s*CREATE\s+(?:TEMP\s+|TEMPORARY\s+)?(VIEW|TRIGGER|VIRTUAL\s+TABLE)\s+",
        r"^\s*DROP\s+(VIEW|TRIGGER)\s+",
        r"^\s*REINDEX\b",
        r"^\s*WITH\s+",
    ),
})


def _patterns_for(dialect: Dialect) -> KindPatterns:
    try:
        return STATEMENT_PATTERNS[dialect]
    except KeyError:
        raise UnsupportedDialectError(
            f"No statement patterns registered for dialect {dialect.value!r}"
        ) from None


def match_kind(text: str, patterns: KindPatterns) -> StatementKind:
    """Return the kind of the first matching pattern, or UNKNOWN."""
    for pattern, kind in patterns:
        if pattern.match(text):
            return kind
    return StatementKind.UNKNOWN


def classify(sql: str, dialect: Dialect) -> StatementKind:
    """
    Classify a statement by its leading keywords.

    Args:
        sql: Raw SQL text (comments are removed here)
        dialect: Dialect whose pattern table applies

    Returns:
        The first matching StatementKind, or UNKNOWN
    """
    patterns = _patterns_for(dialect)
    if not sql or not sql.strip():
        return StatementKind.UNKNOWN
    kind = match_kind(strip_comments(sql, dialect).strip(), patterns)
    logger.debug(f"Classified statement as {kind.name} ({dialect.value})")
    return kind


def is_recognized_statement(
    sql: str,
    dialect: Dialect,
    extra_patterns: Iterable[Pattern] = ()
) -> bool:
    """Check the dialect's allow-list of valid but uncategorized statements."""
    text = strip_comments(sql, dialect).strip()
    allowed = UNCATEGORIZED_STATEMENTS.get(dialect, ())
    return any(p.match(text) for p in allowed) or any(p.match(text) for p in extra_patterns)

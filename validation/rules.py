"""
Dialect restriction rules.

Each rule is a named predicate over one statement. A dialect owns an ordered
tuple of rules; every rule runs and contributes its own findings, nothing
short-circuits.

Rules see the comment-free text with string literals blanked, the pattern
classification and the scan result, so none of them re-derive what the
validator already computed.
"""
import re
from types import MappingProxyType
from typing import Callable, List, Mapping, Tuple
from dataclasses import dataclass

from .scanner import QuoteStyle, ScanResult
from .types import Dialect, StatementKind

ERROR = "error"
WARNING = "warning"

# First SQLite release with RIGHT and FULL OUTER JOIN
SQLITE_OUTER_JOIN_VERSION = (3, 39)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may inspect about one statement."""
    text: str                       # comment-free, literals blanked, trimmed
    kind: StatementKind             # pattern classification
    scan: ScanResult
    sqlite_version: Tuple[int, ...] = (3, 38)


@dataclass(frozen=True)
class RuleFinding:
    message: str
    severity: str = ERROR


@dataclass(frozen=True)
class DialectRule:
    """A named dialect restriction."""
    name: str
    description: str
    check: Callable[[RuleContext], List[RuleFinding]]

    def evaluate(self, ctx: RuleContext) -> List[RuleFinding]:
        return list(self.check(ctx))


def _search(pattern: str, text: str) -> bool:
    return re.search(pattern, text, re.IGNORECASE) is not None


# =============================================================================
# PostgreSQL
# =============================================================================

def _pg_cast_call(ctx: RuleContext) -> List[RuleFinding]:
    # Heuristic: `::varchar(20)` is legal, so this stays a warning
    if re.search(r"::[a-zA-Z_]+\s*\(", ctx.text):
        return [RuleFinding(
            "Invalid cast syntax - possible function call after :: operator",
            WARNING,
        )]
    return []


def _pg_unclosed_array(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"\bARRAY\s*\[", ctx.text) and "]" not in ctx.text:
        return [RuleFinding("Unclosed ARRAY constructor")]
    return []


def _pg_returning(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"\sRETURNING\s+", ctx.text) and ctx.kind not in (
        StatementKind.INSERT, StatementKind.UPDATE, StatementKind.DELETE
    ):
        return [RuleFinding(
            "RETURNING clause can only be used with INSERT, UPDATE, or DELETE statements"
        )]
    return []


# =============================================================================
# MySQL
# =============================================================================

def _mysql_on_duplicate_key(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"\sON\s+DUPLICATE\s+KEY\s+UPDATE\s+", ctx.text) and ctx.kind != StatementKind.INSERT:
        return [RuleFinding("ON DUPLICATE KEY UPDATE can only be used with INSERT statements")]
    return []


def _mysql_unclosed_backtick(ctx: RuleContext) -> List[RuleFinding]:
    if ctx.scan.unclosed_quote is QuoteStyle.BACKTICK:
        return [RuleFinding("Unclosed backtick (`) identifier quote")]
    return []


def _mysql_unclosed_block_comment(ctx: RuleContext) -> List[RuleFinding]:
    # Terminated comments are gone from ctx.text, so any /* left has no end
    if "/*" in ctx.text and "*/" not in ctx.text[ctx.text.find("/*"):]:
        return [RuleFinding("Unclosed multi-line comment")]
    return []


def _mysql_auto_increment(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"\sAUTO_INCREMENT\s*=", ctx.text) and ctx.kind not in (
        StatementKind.CREATE_TABLE, StatementKind.ALTER_TABLE
    ):
        return [RuleFinding(
            "AUTO_INCREMENT can only be used in CREATE TABLE or ALTER TABLE statements"
        )]
    return []


# =============================================================================
# SQLite
# =============================================================================

SQLITE_UNSUPPORTED_TYPES = ("DATETIME2", "MONEY", "SMALLMONEY", "HIERARCHYID", "GEOGRAPHY", "GEOMETRY")


def _sqlite_truncate(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"^\s*TRUNCATE\s+", ctx.text):
        return [RuleFinding(
            "TRUNCATE is not supported in SQLite. Use DELETE FROM table_name instead."
        )]
    return []


def _sqlite_right_full_join(ctx: RuleContext) -> List[RuleFinding]:
    if tuple(ctx.sqlite_version) >= SQLITE_OUTER_JOIN_VERSION:
        return []
    if _search(r"\s(RIGHT|FULL)\s+(?:OUTER\s+)?JOIN\s", ctx.text):
        version = ".".join(str(v) for v in ctx.sqlite_version)
        return [RuleFinding(
            f"RIGHT and FULL OUTER JOINs are not supported in SQLite {version} "
            f"(requires 3.39.0 or later)"
        )]
    return []


_SQLITE_NAME = r'(?:"[^"]*"|\[[^\]]*\]|`[^`]*`|[^\s"\[`])+'
_SQLITE_ALTER_ACTIONS = re.compile(
    rf"^\s*ALTER\s+TABLE\s+{_SQLITE_NAME}\s+"
    r"(?:RENAME\s+TO\b|RENAME\s+(?:COLUMN\s+)?\S+\s+TO\b|ADD\b|DROP\s+COLUMN\b|DROP\s+\S+\s*;?\s*$)",
    re.IGNORECASE,
)


def _sqlite_alter_table(ctx: RuleContext) -> List[RuleFinding]:
    if ctx.kind != StatementKind.ALTER_TABLE:
        return []
    if not _SQLITE_ALTER_ACTIONS.search(ctx.text):
        return [RuleFinding(
            "SQLite only supports limited ALTER TABLE operations: "
            "RENAME TO, ADD COLUMN, RENAME COLUMN, DROP COLUMN"
        )]
    return []


def _sqlite_unsupported_types(ctx: RuleContext) -> List[RuleFinding]:
    return [
        RuleFinding(f"{type_name} data type is not supported in SQLite")
        for type_name in SQLITE_UNSUPPORTED_TYPES
        if re.search(rf"\s{type_name}(\s|\(|,|\)|$)", ctx.text, re.IGNORECASE)
    ]


def _sqlite_autoincrement(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"\bAUTOINCREMENT\b", ctx.text) and not _search(
        r"\bINTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT\b", ctx.text
    ):
        return [RuleFinding("AUTOINCREMENT can only be used with INTEGER PRIMARY KEY columns")]
    return []


def _sqlite_create_if_exists(ctx: RuleContext) -> List[RuleFinding]:
    if _search(r"^\s*CREATE\s+(?:TEMP\s+|TEMPORARY\s+)?TABLE\s+IF\s+EXISTS\b", ctx.text):
        return [RuleFinding("Use 'CREATE TABLE IF NOT EXISTS' instead of 'CREATE TABLE IF EXISTS'")]
    return []


DIALECT_RULES: Mapping[Dialect, Tuple[DialectRule, ...]] = MappingProxyType({
    Dialect.POSTGRESQL: (
        DialectRule("cast_call", "Cast followed by a call-like paren", _pg_cast_call),
        DialectRule("unclosed_array", "ARRAY[ without closing bracket", _pg_unclosed_array),
        DialectRule("returning_clause", "RETURNING outside INSERT/UPDATE/DELETE", _pg_returning),
    ),
    Dialect.MYSQL: (
        DialectRule("on_duplicate_key", "ON DUPLICATE KEY UPDATE outside INSERT", _mysql_on_duplicate_key),
        DialectRule("unclosed_backtick", "Unterminated backtick identifier", _mysql_unclosed_backtick),
        DialectRule("unclosed_block_comment", "/* without */", _mysql_unclosed_block_comment),
        DialectRule("auto_increment_option", "AUTO_INCREMENT= outside CREATE/ALTER TABLE", _mysql_auto_increment),
    ),
    Dialect.SQLITE: (
        DialectRule("truncate_unsupported", "TRUNCATE statement", _sqlite_truncate),
        DialectRule("right_full_join", "RIGHT/FULL JOIN before SQLite 3.39", _sqlite_right_full_join),
        DialectRule("alter_table_limits", "ALTER TABLE actions SQLite lacks", _sqlite_alter_table),
        DialectRule("unsupported_types", "SQL Server only data types", _sqlite_unsupported_types),
        DialectRule("autoincrement_primary_key", "AUTOINCREMENT without INTEGER PRIMARY KEY", _sqlite_autoincrement),
        DialectRule("create_if_exists", "CREATE TABLE IF EXISTS", _sqlite_create_if_exists),
    ),
})


def rules_for(dialect: Dialect) -> Tuple[DialectRule, ...]:
    return DIALECT_RULES.get(dialect, ())


def rule_names(dialect: Dialect) -> List[str]:
    return [rule.name for rule in rules_for(dialect)]

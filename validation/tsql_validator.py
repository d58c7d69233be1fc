"""
SQL Server validator backed by the sqlglot T-SQL grammar.

The statement is parsed into a tree; syntax errors come back from the parser
with line and column. Statement kind and table names are read off the tree
instead of the pattern tables used by the other dialects.

Table names are deduplicated by exact name here, so `Users` and `users` are
two entries, unlike the case-insensitive pattern-based dialects.

Known gaps of the sqlglot T-SQL grammar compared to SQL Server itself:
- Rejects some valid T-SQL, e.g. `UPDATE TOP (10) Users SET a = 1`
- Accepts syntax SQL Server does not, e.g. `LIMIT 10`,
  `ON DUPLICATE KEY UPDATE` and `a::int` casts
"""
import logging
from typing import Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field

import sqlglot
from sqlglot import exp
from sqlglot.errors import ErrorLevel, ParseError, TokenError

from .scanner import line_col, scan
from .sql_validator import UNKNOWN_STATEMENT_ERROR, SqlValidator, is_empty_statement
from .types import Dialect, StatementKind

logger = logging.getLogger(__name__)

READ_DIALECT = "tsql"

# (object kind of CREATE/DROP) -> StatementKind
_CREATE_KINDS = {"TABLE": StatementKind.CREATE_TABLE, "INDEX": StatementKind.CREATE_INDEX}
_DROP_KINDS = {"TABLE": StatementKind.DROP_TABLE, "INDEX": StatementKind.DROP_INDEX}

# CREATE kinds whose target is a routine name
_ROUTINE_KINDS = frozenset({"PROCEDURE", "FUNCTION"})

# EXEC / EXECUTE nodes; Execute and ExecuteSql only exist in newer sqlglot releases
_ROUTINE_CALLS = tuple(
    getattr(exp, name) for name in ("Execute", "ExecuteSql", "Command") if hasattr(exp, name)
)

# Statements sqlglot keeps as raw commands, keyed by their first two words
_COMMAND_KINDS = {
    ("ALTER", "TABLE"): StatementKind.ALTER_TABLE,
    ("CREATE", "TABLE"): StatementKind.CREATE_TABLE,
    ("CREATE", "INDEX"): StatementKind.CREATE_INDEX,
    ("CREATE", "UNIQUE"): StatementKind.CREATE_INDEX,
    ("DROP", "TABLE"): StatementKind.DROP_TABLE,
    ("DROP", "INDEX"): StatementKind.DROP_INDEX,
    ("TRUNCATE", "TABLE"): StatementKind.TRUNCATE,
    ("MERGE", None): StatementKind.MERGE,
}


@dataclass
class ParseOutcome:
    """Parsed statements of one call, or the errors that stopped parsing."""
    statements: List[exp.Expression] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def format_parse_error(error: Dict) -> str:
    return f"Line {error.get('line')}, Column {error.get('col')}: {error.get('description')}"


def _command_words(node: exp.Command) -> Tuple[str, Optional[str]]:
    rest = node.args.get("expression")
    text = rest.name if isinstance(rest, exp.Expression) else str(rest or "")
    words = text.split()
    return node.name.upper(), (words[0].upper() if words else None)


def statement_kind(node: exp.Expression) -> StatementKind:
    """Classify one top-level statement node."""
    if isinstance(node, exp.Query):
        return StatementKind.SELECT
    if isinstance(node, exp.Insert):
        return StatementKind.INSERT
    if isinstance(node, exp.Update):
        return StatementKind.UPDATE
    if isinstance(node, exp.Delete):
        return StatementKind.DELETE
    if isinstance(node, exp.Merge):
        return StatementKind.MERGE
    if isinstance(node, exp.TruncateTable):
        return StatementKind.TRUNCATE
    if isinstance(node, exp.Create):
        return _CREATE_KINDS.get(str(node.args.get("kind") or "").upper(), StatementKind.UNKNOWN)
    if isinstance(node, exp.Drop):
        return _DROP_KINDS.get(str(node.args.get("kind") or "").upper(), StatementKind.UNKNOWN)
    if isinstance(node, exp.Alter):
        if str(node.args.get("kind") or "").upper() == "TABLE":
            return StatementKind.ALTER_TABLE
        return StatementKind.UNKNOWN
    if isinstance(node, exp.Command):
        first, second = _command_words(node)
        return _COMMAND_KINDS.get((first, second)) or _COMMAND_KINDS.get((first, None), StatementKind.UNKNOWN)
    return StatementKind.UNKNOWN


def _routine_names(tree: exp.Expression) -> Set[int]:
    """Ids of Table nodes that name a procedure or function, not a table."""
    ids = set()
    for node in tree.find_all(*_ROUTINE_CALLS):
        ids.update(id(t) for t in node.find_all(exp.Table))
    for create in tree.find_all(exp.Create):
        if str(create.args.get("kind") or "").upper() not in _ROUTINE_KINDS:
            continue
        target = create.args.get("this")
        if isinstance(target, exp.Expression):
            ids.update(id(t) for t in target.find_all(exp.Table))
    return ids


def collect_table_names(statements: List[exp.Expression]) -> List[str]:
    """Every named table reference, deduplicated by exact name."""
    names: List[str] = []
    for tree in statements:
        routines = _routine_names(tree)
        for table in tree.find_all(exp.Table):
            if id(table) in routines:
                continue
            name = table.name
            if name and name not in names:
                names.append(name)
    return names


class TSqlValidator(SqlValidator):
    """
    SQL Server validator using the sqlglot T-SQL parser.

    A new parse runs on every call; no parser state is shared between calls.
    """

    @property
    def dialect(self) -> Dialect:
        return Dialect.SQLSERVER

    def parse(self, sql: str) -> ParseOutcome:
        """
        Parse a non-empty statement batch.

        Returns:
            ParseOutcome with statements on success, errors otherwise
        """
        try:
            parsed = sqlglot.parse(sql, read=READ_DIALECT, error_level=ErrorLevel.RAISE)
        except ParseError as e:
            errors = [format_parse_error(err) for err in e.errors] or [str(e)]
            logger.debug(f"T-SQL parse failed: {errors[0]}")
            return ParseOutcome(errors=errors)
        except TokenError as e:
            logger.debug(f"T-SQL tokenizing failed: {e}")
            return ParseOutcome(errors=[self._token_error(sql, e)])

        statements = [node for node in parsed if node is not None]
        outcome = ParseOutcome(statements=statements)
        # A bare expression parses fine but is not a statement
        if not statements or any(isinstance(node, exp.Condition) for node in statements):
            outcome.errors.append(UNKNOWN_STATEMENT_ERROR)
        return outcome

    def _token_error(self, sql: str, error: TokenError) -> str:
        result = scan(sql, Dialect.SQLSERVER)
        if result.unclosed_quote is None:
            return f"Tokenizer error: {error}"
        line, column = line_col(sql, result.quote_offset)
        fragment = sql[result.quote_offset + 1:result.quote_offset + 31]
        return (
            f"Line {line}, Column {column}: Unclosed {result.unclosed_quote.label} "
            f"after the character string '{fragment}'"
        )

    def _check(self, sql: str) -> Tuple[List[str], List[str]]:
        return self.parse(sql).errors, []

    def _parsed(self, sql: Optional[str]) -> Optional[ParseOutcome]:
        if is_empty_statement(sql):
            return None
        outcome = self.parse(sql)
        return None if outcome.errors else outcome

    def get_statement_type(self, sql: Optional[str]) -> StatementKind:
        outcome = self._parsed(sql)
        if outcome is None:
            return StatementKind.UNKNOWN
        for node in outcome.statements:
            kind = statement_kind(node)
            if kind != StatementKind.UNKNOWN:
                return kind
        return StatementKind.UNKNOWN

    def extract_table_names(self, sql: Optional[str]) -> List[str]:
        outcome = self._parsed(sql)
        if outcome is None:
            return []
        return collect_table_names(outcome.statements)

    def _statement_type(self, sql: str) -> StatementKind:
        return self.get_statement_type(sql)

    def _table_names(self, sql: str) -> List[str]:
        return self.extract_table_names(sql)

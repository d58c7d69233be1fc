"""
Dialect-aware lexical pass over raw SQL.

Handles:
- Line comments (-- everywhere, # for MySQL) and /* */ block comments
- Single-quoted strings ('' escape, \\' where the dialect allows it)
- Double-quoted, backtick and [bracket] quoted identifiers
- Paren balance outside of quoted text

The scanner assumes non-empty input; validators reject empty statements
before calling it.
"""
import re
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple
from dataclasses import dataclass

from .types import Dialect, UnsupportedDialectError


class QuoteStyle(Enum):
    """Quoting styles with their opening and closing characters."""
    SINGLE = ("'", "'", "single-quoted string")
    DOUBLE = ('"', '"', "double-quoted identifier")
    BACKTICK = ("`", "`", "backtick-quoted identifier")
    BRACKET = ("[", "]", "bracket-quoted identifier")

    def __init__(self, opener: str, closer: str, label: str):
        self.opener = opener
        self.closer = closer
        self.label = label


@dataclass(frozen=True)
class LexicalProfile:
    """Comment markers and quoting conventions of one dialect."""
    line_comments: Tuple[str, ...]
    quote_styles: Tuple[QuoteStyle, ...]
    backslash_escapes: bool = False


LEXICAL_PROFILES: Mapping[Dialect, LexicalProfile] = MappingProxyType({
    Dialect.SQLSERVER: LexicalProfile(
        line_comments=("--",),
        quote_styles=(QuoteStyle.SINGLE, QuoteStyle.DOUBLE, QuoteStyle.BRACKET),
    ),
    Dialect.POSTGRESQL: LexicalProfile(
        line_comments=("--",),
        quote_styles=(QuoteStyle.SINGLE, QuoteStyle.DOUBLE),
        backslash_escapes=True,
    ),
    Dialect.MYSQL: LexicalProfile(
        line_comments=("--", "#"),
        quote_styles=(QuoteStyle.SINGLE, QuoteStyle.DOUBLE, QuoteStyle.BACKTICK),
        backslash_escapes=True,
    ),
    Dialect.SQLITE: LexicalProfile(
        line_comments=("--",),
        quote_styles=(QuoteStyle.SINGLE, QuoteStyle.DOUBLE, QuoteStyle.BRACKET),
    ),
})

_LINE_END = re.compile(r"[\r\n]")

CODE = "code"
QUOTED = "quoted"
COMMENT = "comment"


@dataclass(frozen=True)
class Segment:
    """A contiguous span of the input: code, quoted text or a comment."""
    kind: str
    start: int
    end: int
    style: Optional[QuoteStyle] = None
    closed: bool = True


@dataclass(frozen=True)
class ScanResult:
    """Balance information gathered in one pass over the text."""
    unclosed_quote: Optional[QuoteStyle] = None
    quote_offset: Optional[int] = None
    paren_depth: int = 0
    paren_underflow_offset: Optional[int] = None
    stray_bracket_offset: Optional[int] = None

    @property
    def quotes_balanced(self) -> bool:
        return self.unclosed_quote is None and self.stray_bracket_offset is None

    @property
    def parens_balanced(self) -> bool:
        return self.paren_underflow_offset is None and self.paren_depth == 0


def profile_for(dialect: Dialect) -> LexicalProfile:
    """Get the lexical profile of a dialect."""
    try:
        return LEXICAL_PROFILES[dialect]
    except KeyError:
        raise UnsupportedDialectError(
            f"No lexical rules registered for dialect {dialect.value!r}"
        ) from None


def _scan_quoted(
    sql: str,
    start: int,
    style: QuoteStyle,
    profile: LexicalProfile
) -> Tuple[int, bool]:
    """
    Find the end of a quoted span opened at `start`.

    Returns:
        Tuple of (offset just past the closing char, closed flag)
    """
    n = len(sql)
    i = start + 1
    backslash = profile.backslash_escapes and style in (QuoteStyle.SINGLE, QuoteStyle.DOUBLE)
    while i < n:
        ch = sql[i]
        if backslash and ch == "\\":
            i += 2
            continue
        if ch == style.closer:
            # Doubled closer is an escaped literal char
            if i + 1 < n and sql[i + 1] == style.closer:
                i += 2
                continue
            return i + 1, True
        i += 1
    return n, False


def _lex(sql: str, profile: LexicalProfile) -> List[Segment]:
    """Split SQL into code, quoted and comment segments."""
    segments: List[Segment] = []
    openers = {style.opener: style for style in profile.quote_styles}
    n = len(sql)
    i = 0
    code_start = 0

    while i < n:
        ch = sql[i]

        if ch in openers:
            if i > code_start:
                segments.append(Segment(CODE, code_start, i))
            style = openers[ch]
            end, closed = _scan_quoted(sql, i, style, profile)
            segments.append(Segment(QUOTED, i, end, style, closed))
            i = code_start = end
            continue

        if any(sql.startswith(marker, i) for marker in profile.line_comments):
            if i > code_start:
                segments.append(Segment(CODE, code_start, i))
            match = _LINE_END.search(sql, i)
            end = match.start() if match else n
            segments.append(Segment(COMMENT, i, end))
            i = code_start = end
            continue

        if sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            if close == -1:
                # Unterminated block comment stays in the text
                i += 2
                continue
            if i > code_start:
                segments.append(Segment(CODE, code_start, i))
            segments.append(Segment(COMMENT, i, close + 2))
            i = code_start = close + 2
            continue

        i += 1

    if n > code_start:
        segments.append(Segment(CODE, code_start, n))
    return segments


def strip_comments(sql: str, dialect: Dialect) -> str:
    """
    Remove line and block comments.

    Comment markers inside quoted text are kept as-is.
    """
    segments = _lex(sql, profile_for(dialect))
    return "".join(sql[s.start:s.end] for s in segments if s.kind != COMMENT)


def mask_literals(sql: str, dialect: Dialect) -> str:
    """Blank out the contents of single-quoted string literals, keeping offsets."""
    parts = []
    for s in _lex(sql, profile_for(dialect)):
        text = sql[s.start:s.end]
        if s.kind == QUOTED and s.style is QuoteStyle.SINGLE and len(text) > 1:
            tail = "'" if s.closed else ""
            inner_len = len(text) - 1 - len(tail)
            text = "'" + " " * inner_len + tail
        parts.append(text)
    return "".join(parts)


def scan(sql: str, dialect: Dialect) -> ScanResult:
    """Walk the text once and collect quote and paren balance state."""
    profile = profile_for(dialect)
    brackets = QuoteStyle.BRACKET in profile.quote_styles
    depth = 0
    underflow: Optional[int] = None
    stray_bracket: Optional[int] = None
    unclosed: Optional[Segment] = None

    for segment in _lex(sql, profile):
        if segment.kind == QUOTED:
            if not segment.closed:
                unclosed = segment
            continue
        if segment.kind != CODE:
            continue
        for offset in range(segment.start, segment.end):
            ch = sql[offset]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0 and underflow is None:
                    underflow = offset
            elif ch == "]" and brackets and stray_bracket is None:
                stray_bracket = offset

    return ScanResult(
        unclosed_quote=unclosed.style if unclosed else None,
        quote_offset=unclosed.start if unclosed else None,
        paren_depth=depth,
        paren_underflow_offset=underflow,
        stray_bracket_offset=stray_bracket,
    )


def quotes_balanced(sql: str, dialect: Dialect) -> bool:
    return scan(sql, dialect).quotes_balanced


def parens_balanced(sql: str, dialect: Dialect) -> bool:
    return scan(sql, dialect).parens_balanced


def line_col(sql: str, offset: int) -> Tuple[int, int]:
    """Convert a 0-based offset to a 1-based (line, column) pair."""
    line = sql.count("\n", 0, offset) + 1
    column = offset - (sql.rfind("\n", 0, offset) + 1) + 1
    return line, column

"""
Table reference extraction for pattern-based dialects.

Scans comment-free, literal-masked SQL for identifiers that follow the
FROM, JOIN, INTO, UPDATE and TABLE introducers. Quoting is removed, schema
qualifiers are dropped and names are deduplicated case-insensitively in
first-discovery order.
"""
import re
from types import MappingProxyType
from typing import Iterable, List, Mapping, Pattern, Tuple
from dataclasses import dataclass

from .scanner import mask_literals, strip_comments
from .types import Dialect, UnsupportedDialectError


_BARE = r"[A-Za-z_][A-Za-z0-9_$]*"
_QUOTED_FORMS = {
    "double": r'"[^"]+"',
    "backtick": r"`[^`]+`",
    "bracket": r"\[[^\]]+\]",
}

# Clauses that reuse an introducer keyword without naming a table
_COMMON_NOISE = (
    r"\bFOR\s+UPDATE\b",
    r"\bIS\s+(?:NOT\s+)?DISTINCT\s+FROM\b",
    r"\bEXTRACT\s*\(\s*\w+\s+FROM\b",
)


@dataclass(frozen=True)
class ExtractionProfile:
    """How one dialect writes table identifiers."""
    reference: Pattern
    noise: Tuple[Pattern, ...]
    system_prefixes: Tuple[str, ...] = ()


def _profile(quotes: Iterable[str], noise: Iterable[str] = (), system_prefixes: Tuple[str, ...] = ()) -> ExtractionProfile:
    part = "(?:" + "|".join([_QUOTED_FORMS[q] for q in quotes] + [_BARE]) + ")"
    name = rf"{part}(?:\s*\.\s*{part})*"
    reference = re.compile(
        rf"\b(?:FROM|JOIN|INTO|UPDATE|TABLE)\s+(?:IF\s+(?:NOT\s+)?EXISTS\s+)?({name})",
        re.IGNORECASE,
    )
    noise_patterns = tuple(re.compile(p, re.IGNORECASE) for p in (*_COMMON_NOISE, *noise))
    return ExtractionProfile(reference, noise_patterns, system_prefixes)


EXTRACTION_PROFILES: Mapping[Dialect, ExtractionProfile] = MappingProxyType({
    Dialect.POSTGRESQL: _profile(
        ["double"],
        noise=[r"\bON\s+CONFLICT\b[^;]*?\bDO\s+UPDATE\b"],
    ),
    Dialect.MYSQL: _profile(
        ["backtick", "double"],
        noise=[r"\bON\s+DUPLICATE\s+KEY\s+UPDATE\b"],
    ),
    Dialect.SQLITE: _profile(
        ["double", "backtick", "bracket"],
        noise=[r"\bON\s+CONFLICT\b[^;]*?\bDO\s+UPDATE\b"],
        system_prefixes=("sqlite_",),
    ),
})

# Keywords that can follow an introducer where a name is optional
_NOT_TABLES = frozenset({"select", "values", "set", "default", "lateral", "as"})

_PART_SPLIT = re.compile(r'"[^"]+"|`[^`]+`|\[[^\]]+\]|[^.\s]+')


def unquote_identifier(part: str) -> str:
    """Remove identifier quoting: "x", `x` or [x]."""
    part = part.strip()
    if len(part) >= 2 and (part[0], part[-1]) in (('"', '"'), ("`", "`"), ("[", "]")):
        return part[1:-1]
    return part


def base_name(qualified: str) -> str:
    """Reduce a possibly schema-qualified name to its last part."""
    parts = _PART_SPLIT.findall(qualified)
    return unquote_identifier(parts[-1]) if parts else ""


def dedupe_names(names: Iterable[str]) -> List[str]:
    """Case-insensitive dedup keeping first-seen casing and order."""
    seen = set()
    unique = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            unique.append(name)
    return unique


def extract_table_names(sql: str, dialect: Dialect) -> List[str]:
    """
    Extract referenced base table names.

    Args:
        sql: Raw SQL text
        dialect: Dialect whose quoting rules apply

    Returns:
        Table names in first-discovery order, deduplicated case-insensitively
    """
    try:
        profile = EXTRACTION_PROFILES[dialect]
    except KeyError:
        raise UnsupportedDialectError(
            f"No table extraction rules registered for dialect {dialect.value!r}"
        ) from None

    if not sql or not sql.strip():
        return []

    text = mask_literals(strip_comments(sql, dialect), dialect)
    for noise in profile.noise:
        text = noise.sub(lambda m: " " * len(m.group(0)), text)

    names = []
    for match in profile.reference.finditer(text):
        name = base_name(match.group(1))
        if not name or name.lower() in _NOT_TABLES:
            continue
        if any(name.lower().startswith(prefix) for prefix in profile.system_prefixes):
            continue
        names.append(name)

    return dedupe_names(names)

"""
Core value types shared by every validator.

- Dialect: which database product's SQL rules apply
- StatementKind: high-level statement classification
- ValidationResult: errors/warnings of one validation call
"""
from enum import Enum
from typing import Dict, List, Union
from dataclasses import dataclass, field


EMPTY_STATEMENT_ERROR = "SQL statement is empty"


class UnsupportedDialectError(ValueError):
    """Raised when no validator is registered for a dialect."""
    pass


class Dialect(Enum):
    """Database dialects known to the engine."""
    SQLSERVER = "sqlserver"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    ORACLE = "oracle"

    @classmethod
    def parse(cls, name: Union[str, "Dialect"]) -> "Dialect":
        """
        Resolve a dialect from its value or a common alias.

        Examples:
            "postgres" -> Dialect.POSTGRESQL
            "MSSQL" -> Dialect.SQLSERVER

        Raises:
            UnsupportedDialectError: If the name is not a known dialect
            TypeError: If name is neither a string nor a Dialect
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise TypeError(f"Dialect must be a string or Dialect, got {type(name).__name__}")
        key = name.strip().lower().replace("-", "").replace("_", "")
        dialect = _DIALECT_ALIASES.get(key)
        if dialect is None:
            raise UnsupportedDialectError(f"Unknown SQL dialect: {name!r}")
        return dialect


_DIALECT_ALIASES: Dict[str, Dialect] = {
    "sqlserver": Dialect.SQLSERVER,
    "mssql": Dialect.SQLSERVER,
    "tsql": Dialect.SQLSERVER,
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "pg": Dialect.POSTGRESQL,
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "oracle": Dialect.ORACLE,
}


class StatementKind(Enum):
    """Type of SQL statement."""
    UNKNOWN = "unknown"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    MERGE = "merge"
    CREATE_TABLE = "create_table"
    ALTER_TABLE = "alter_table"
    DROP_TABLE = "drop_table"
    CREATE_INDEX = "create_index"
    DROP_INDEX = "drop_index"
    TRUNCATE = "truncate"


@dataclass
class ValidationResult:
    """
    Result of SQL syntax validation.

    is_valid is derived from errors and cannot be set on its own.
    Warnings never affect validity.
    """
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @classmethod
    def empty(cls) -> "ValidationResult":
        """Result for a null, empty or whitespace-only statement."""
        return cls(errors=[EMPTY_STATEMENT_ERROR])

    def to_dict(self) -> Dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

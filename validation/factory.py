"""
Validator registry.

Maps each dialect to its validator class. The registry is read-only and
validators are built fresh per call, so the factory is safe to call from
any number of threads.
"""
import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Type, Union

from .sql_validator import (
    MySQLValidator,
    PostgreSQLValidator,
    SQLiteValidator,
    SqlValidator,
    ValidatorSettings,
)
from .tsql_validator import TSqlValidator
from .types import Dialect, UnsupportedDialectError

logger = logging.getLogger(__name__)

VALIDATORS: Mapping[Dialect, Type[SqlValidator]] = MappingProxyType({
    Dialect.SQLSERVER: TSqlValidator,
    Dialect.POSTGRESQL: PostgreSQLValidator,
    Dialect.MYSQL: MySQLValidator,
    Dialect.SQLITE: SQLiteValidator,
})


def supported_dialects() -> List[Dialect]:
    """Dialects with a registered validator."""
    return list(VALIDATORS)


def create_validator(
    dialect: Union[Dialect, str],
    settings: Optional[ValidatorSettings] = None
) -> SqlValidator:
    """
    Create the validator for a dialect.

    Args:
        dialect: Dialect enum member or name/alias ("postgres", "mssql", ...)
        settings: Optional construction-time settings

    Returns:
        A new SqlValidator for the dialect

    Raises:
        UnsupportedDialectError: If no validator is registered for the dialect
    """
    resolved = Dialect.parse(dialect)
    try:
        validator_cls = VALIDATORS[resolved]
    except KeyError:
        raise UnsupportedDialectError(
            f"No validator registered for dialect '{resolved.value}'. "
            f"Supported: {', '.join(d.value for d in VALIDATORS)}"
        ) from None

    logger.debug(f"Creating {validator_cls.__name__} for {resolved.value}")
    return validator_cls(settings)

"""
DB-API style cursor that records statements instead of running them.

Results come from canned data configured on the connection:
- Multi-row mode: column names plus rows (setup_mock_data)
- Single-value mode: one return value and a has-rows flag
"""
import logging
from typing import Any, Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING
from dataclasses import dataclass, field

from .errors import CursorStateError

if TYPE_CHECKING:
    from .connection import MimicConnection
    from .transaction import MimicTransaction

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ExecutedCommand:
    """One execute() call as it happened."""
    command_text: str
    parameters: Any
    transaction: Optional["MimicTransaction"]
    cursor: "MimicCursor"


# Every execute() call, in order, across all connections
executed_commands: List[ExecutedCommand] = []


def clear_executed_commands() -> None:
    """Clear the executed command history."""
    executed_commands.clear()


@dataclass
class MockData:
    """Column names and rows returned by one cursor."""
    columns: Tuple[str, ...] = ()
    rows: List[tuple] = field(default_factory=list)


class MimicCursor:
    """
    Cursor bound to a MimicConnection.

    Attributes:
        command_text: SQL of the last execute() call
        parameters: Parameters of the last execute() call
        transaction: Transaction active when the cursor was created, if any
    """

    arraysize = 1

    def __init__(
        self,
        connection: "MimicConnection",
        return_value: Any = None,
        has_rows: bool = True,
        mock_data: Optional[MockData] = None,
        transaction: Optional["MimicTransaction"] = None
    ):
        self.connection = connection
        self.return_value = return_value
        self.has_rows = has_rows
        self.mock_data = mock_data
        self.transaction = transaction
        self.command_text = ""
        self.parameters: Any = None
        self.closed = False
        self._rows: Optional[List[tuple]] = None
        self._position = 0

    @property
    def is_multi_row(self) -> bool:
        return self.mock_data is not None

    def _result_rows(self) -> List[tuple]:
        if self.mock_data is not None:
            return [tuple(row) for row in self.mock_data.rows]
        if not self.has_rows:
            return []
        if isinstance(self.return_value, (list, tuple)):
            return [tuple(self.return_value)]
        return [(self.return_value,)]

    def _require_open(self) -> None:
        if self.closed:
            raise CursorStateError("Cursor is closed")

    def _require_result(self) -> List[tuple]:
        self._require_open()
        if self._rows is None:
            raise CursorStateError("No statement has been executed")
        return self._rows

    def execute(self, sql: str, params: Any = None) -> "MimicCursor":
        """Record a statement and prepare its canned result."""
        self._require_open()
        self.command_text = sql
        self.parameters = params
        self._rows = self._result_rows()
        self._position = 0
        executed_commands.append(ExecutedCommand(sql, params, self.transaction, self))
        logger.debug(f"Recorded statement: {sql.strip()[:80]}")
        return self

    def executemany(self, sql: str, seq_of_params: Sequence[Any]) -> "MimicCursor":
        """Record one statement with a list of parameter sets."""
        return self.execute(sql, list(seq_of_params))

    def execute_non_query(self, sql: str, params: Any = None) -> int:
        """
        Execute a statement that returns no rows.

        Returns:
            Affected row count: the configured return value when it is an
            int, otherwise 1
        """
        self.execute(sql, params)
        value = self.return_value
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 1

    def scalar(self, sql: str, params: Any = None) -> Any:
        """Execute a statement and return the first column of the first row."""
        self.execute(sql, params)
        if self.mock_data is not None and self.mock_data.rows:
            return self.mock_data.rows[0][0]
        return self.return_value

    @property
    def description(self) -> Optional[Tuple[tuple, ...]]:
        if self._rows is None:
            return None
        if self.mock_data is not None:
            names = self.mock_data.columns
        else:
            names = ("value",)
        return tuple((name, None, None, None, None, None, None) for name in names)

    @property
    def rowcount(self) -> int:
        if self._rows is None:
            return -1
        if self.mock_data is not None:
            return len(self._rows)
        return 1

    def fetchone(self) -> Optional[tuple]:
        rows = self._require_result()
        if self._position >= len(rows):
            return None
        row = rows[self._position]
        self._position += 1
        return row

    def fetchmany(self, size: Optional[int] = None) -> List[tuple]:
        rows = self._require_result()
        size = self.arraysize if size is None else size
        batch = rows[self._position:self._position + size]
        self._position += len(batch)
        return batch

    def fetchall(self) -> List[tuple]:
        rows = self._require_result()
        remaining = rows[self._position:]
        self._position = len(rows)
        return remaining

    def close(self) -> None:
        self.closed = True

    def __iter__(self) -> Iterator[tuple]:
        return iter(self.fetchone, None)

    def __enter__(self) -> "MimicCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

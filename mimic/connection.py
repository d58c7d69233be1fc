"""
DB-API style connection stand-in for unit tests.

The connection is always open and never talks to a database. Each cursor it
creates takes the next canned result from the queues below and is recorded
in `commands`, so tests can assert on the SQL that code under test produced.
"""
import logging
from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Sequence

from .cursor import MimicCursor, MockData
from .transaction import DEFAULT_ISOLATION_LEVEL, MimicTransaction

logger = logging.getLogger(__name__)


class MimicConnection:
    """
    Recording connection.

    Canned data, consumed per cursor:
    - setup_sequential_return_values / setup_sequential_has_rows queue
      single values; mock_return_value / mock_has_rows apply once the
      queues are empty
    - setup_mock_data queues a result set; setup_default_mock_data is used
      when the queue is empty
    """

    database = "TestDb"
    dsn = "Data Source=TestDb"
    server_version = "1.0"

    def __init__(self):
        self.commands: List[MimicCursor] = []
        self.transactions: List[MimicTransaction] = []
        self.mock_return_value: Any = None
        self.mock_has_rows: Optional[bool] = None
        self._return_values: Deque[Any] = deque()
        self._has_rows_values: Deque[bool] = deque()
        self._mock_data: Deque[MockData] = deque()
        self._default_mock_data: Optional[MockData] = None
        self._current_transaction: Optional[MimicTransaction] = None

    @property
    def closed(self) -> bool:
        return False

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    # =========================================================================
    # Canned results
    # =========================================================================

    def setup_sequential_return_values(self, *values: Any) -> None:
        self._return_values = deque(values)

    def setup_sequential_has_rows(self, *values: bool) -> None:
        self._has_rows_values = deque(values)

    def setup_mock_data(self, columns: Sequence[str], *rows: Iterable[Any]) -> None:
        """Queue a result set for the next cursor without one."""
        self._mock_data.append(MockData(tuple(columns), [tuple(r) for r in rows]))

    def setup_default_mock_data(self, columns: Sequence[str], *rows: Iterable[Any]) -> None:
        """Result set for every cursor once the queue is empty."""
        self._default_mock_data = MockData(tuple(columns), [tuple(r) for r in rows])

    def clear_mock_data(self) -> None:
        self._mock_data.clear()
        self._default_mock_data = None

    # =========================================================================
    # Cursors and transactions
    # =========================================================================

    @property
    def current_transaction(self) -> Optional[MimicTransaction]:
        tx = self._current_transaction
        return tx if tx is not None and tx.is_active else None

    def cursor(self) -> MimicCursor:
        if self._return_values:
            return_value = self._return_values.popleft()
        else:
            return_value = self.mock_return_value

        if self._has_rows_values:
            has_rows = self._has_rows_values.popleft()
        else:
            has_rows = True if self.mock_has_rows is None else self.mock_has_rows

        mock_data = self._mock_data.popleft() if self._mock_data else self._default_mock_data

        cursor = MimicCursor(
            self,
            return_value=return_value,
            has_rows=has_rows,
            mock_data=mock_data,
            transaction=self.current_transaction,
        )
        self.commands.append(cursor)
        return cursor

    def begin(self, isolation_level: str = DEFAULT_ISOLATION_LEVEL) -> MimicTransaction:
        """Start a transaction; cursors created while it is active are bound to it."""
        transaction = MimicTransaction(self, isolation_level)
        self.transactions.append(transaction)
        self._current_transaction = transaction
        logger.debug(f"Transaction started ({isolation_level})")
        return transaction

    def commit(self) -> None:
        if self.current_transaction is not None:
            self.current_transaction.commit()

    def rollback(self) -> None:
        if self.current_transaction is not None:
            self.current_transaction.rollback()

    def _transaction_completed(self, transaction: MimicTransaction) -> None:
        if self._current_transaction is transaction:
            self._current_transaction = None

    def __enter__(self) -> "MimicConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

"""
Transaction handle for MimicConnection.

A transaction ends in exactly one of two states, committed or rolled back.
Closing it first rolls back whatever was left open.
"""
import logging
from typing import TYPE_CHECKING

from .errors import TransactionStateError

if TYPE_CHECKING:
    from .connection import MimicConnection

logger = logging.getLogger(__name__)

DEFAULT_ISOLATION_LEVEL = "READ COMMITTED"


class MimicTransaction:
    """
    In-memory transaction.

    Usable as a context manager:

        with conn.begin() as tx:
            cur = conn.cursor()
            cur.execute("UPDATE Users SET Name = ? WHERE Id = ?", ("Bob", 1))
            tx.commit()

    Leaving the block with an exception, or without commit(), rolls back.
    """

    def __init__(self, connection: "MimicConnection", isolation_level: str = DEFAULT_ISOLATION_LEVEL):
        self.connection = connection
        self.isolation_level = isolation_level
        self._committed = False
        self._rolled_back = False
        self._closed = False

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_active(self) -> bool:
        """True until the transaction is committed, rolled back or closed."""
        return not (self._committed or self._rolled_back or self._closed)

    def _check_open(self, action: str) -> None:
        if self._closed:
            raise TransactionStateError(f"Cannot {action}: transaction has been closed")
        if self._committed:
            raise TransactionStateError(f"Cannot {action}: transaction has already been committed")
        if self._rolled_back:
            raise TransactionStateError(f"Cannot {action}: transaction has already been rolled back")

    def commit(self) -> None:
        self._check_open("commit")
        self._committed = True
        logger.debug(f"Transaction committed ({self.isolation_level})")
        self.connection._transaction_completed(self)

    def rollback(self) -> None:
        self._check_open("roll back")
        self._rolled_back = True
        logger.debug(f"Transaction rolled back ({self.isolation_level})")
        self.connection._transaction_completed(self)

    def close(self) -> None:
        """Close the transaction, rolling back if it was never completed."""
        if self._closed:
            return
        if not (self._committed or self._rolled_back):
            self.rollback()
        self._closed = True

    def __enter__(self) -> "MimicTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self.is_active:
            self.rollback()
        self.close()
        return False

    def __repr__(self) -> str:
        if self._committed:
            state = "committed"
        elif self._rolled_back:
            state = "rolled back"
        else:
            state = "active"
        return f"<MimicTransaction {self.isolation_level} {state}>"

"""
Database client test double.

Records every statement executed through it and returns canned results,
so code that talks to a DB-API connection can be tested without a database.
"""

from .errors import MimicError, TransactionStateError, CursorStateError
from .cursor import MimicCursor, MockData, ExecutedCommand, executed_commands, clear_executed_commands
from .transaction import MimicTransaction
from .connection import MimicConnection

__all__ = [
    "MimicConnection",
    "MimicCursor",
    "MimicTransaction",
    "MockData",
    "ExecutedCommand",
    "MimicError",
    "TransactionStateError",
    "CursorStateError",
    "executed_commands",
    "clear_executed_commands",
]

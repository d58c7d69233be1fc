"""Exceptions raised by the database test double."""


class MimicError(Exception):
    """Base class for test double errors."""
    pass


class TransactionStateError(MimicError):
    """Raised when a transaction is used after it has completed."""
    pass


class CursorStateError(MimicError):
    """Raised when a cursor is used before execute() or after close()."""
    pass

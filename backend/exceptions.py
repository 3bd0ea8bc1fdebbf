"""
Custom exception classes raised by the persistence and directory adapters.

The workflow engine translates these into domain errors (domain/errors.py).
"""


class OrderNotFound(Exception):
    """Raised when no order exists for a transaction id."""
    pass


class StaleOrderState(Exception):
    """Raised when a conditional commit finds the order no longer in the expected status."""
    pass


class UnknownEmployeeCode(Exception):
    """Raised when the employee directory has no active employee for a code."""
    pass


class StorageUnavailable(Exception):
    """Raised when the database or a remote directory cannot be reached."""
    pass

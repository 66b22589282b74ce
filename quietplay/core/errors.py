"""Error types raised by the playback core and its storage collaborators.

Input validation errors live in ``utils.validation`` next to the validators
that raise them.
"""

from __future__ import annotations


class TransientIOError(Exception):
    """A read or write against the storage collaborator failed.

    Surfaced to the user as a notification. Core state is left untouched and
    the operation is not retried.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


class InvariantViolation(AssertionError):
    """Programming defect: the playback state left its valid space."""

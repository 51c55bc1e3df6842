"""Custom exception hierarchy for the sharing engine.

Every outcome the engine cannot express as a return value is one of these
classes.  Callers map them to transport status codes; the engine never does.
"""

from __future__ import annotations

from collections.abc import Sequence


class ShareGateError(Exception):
    """Base exception for all sharing engine errors."""


class NotFoundError(ShareGateError, LookupError):
    """Raised when a file, share, or link token is absent or expired."""


class ForbiddenError(ShareGateError, PermissionError):
    """Raised when an actor has no role on a file, or is not its owner."""


class InvalidInputError(ShareGateError, ValueError):
    """Raised on a malformed target list, missing field, or unknown grantee."""


class ShareConflictError(ShareGateError):
    """Raised when a share request neither created nor updated any grant.

    ``invalid`` carries the target ids that did not refer to a known actor.
    """

    def __init__(self, message: str, invalid: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.invalid = list(invalid)


class StorageError(ShareGateError):
    """Raised on storage failures (DB connection, unhandled constraint violation)."""

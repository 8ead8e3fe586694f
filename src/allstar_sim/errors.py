from __future__ import annotations


class ContestError(Exception):
    """Base class for failures that abort a contest step."""


class NotFoundError(ContestError):
    """A contest or a participant rating does not exist."""


class InvalidStateError(ContestError):
    """A round operation was called while its preconditions do not hold."""


class InvariantViolationError(ContestError):
    """Persisted contest state is inconsistent."""

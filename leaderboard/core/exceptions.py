"""
Error taxonomy for the leaderboard service.

Every error raised by the services derives from `LeaderboardError` and carries
a human-readable `message`. The API layer maps each type to an HTTP status in
`leaderboard.main`; `MalformedProducerLine` never leaves the producer
supervisor.
"""

from typing import Any


class LeaderboardError(Exception):
    """Base class for service errors."""

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(LeaderboardError):
    """Raised when an event payload is missing fields or has malformed values."""


class ConflictError(LeaderboardError):
    """Raised when an event id already exists in the record store."""

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} already exists")
        self.event_id = event_id


class StorageUnavailable(LeaderboardError):
    """Raised when the record store cannot be reached or the statement fails."""


class SubprocessSpawnError(LeaderboardError):
    """Raised when the data generator process fails to start."""


class MalformedProducerLine(LeaderboardError):
    """Raised for a generator output line that is not a JSON object."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"Malformed producer line: {reason}", details=line)
        self.line = line

"""
Domain error taxonomy.

Each error carries the HTTP status it maps to at the API boundary; the
exception handler in app.main turns them into ErrorResponse bodies.
"""

from typing import Optional


class MatchmakingError(Exception):
    """Base class for recoverable, per-request domain errors."""

    status_code: int = 400

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class SelfReferenceError(MatchmakingError):
    """Actor and target are the same user."""

    status_code = 400


class AuthenticationError(MatchmakingError):
    """Missing, unknown or revoked credentials."""

    status_code = 401


class NotFoundError(MatchmakingError):
    """Target user is missing or inactive."""

    status_code = 404


class DuplicateError(MatchmakingError):
    """The same preference is already recorded for the pair."""

    status_code = 409


class ConflictError(MatchmakingError):
    """A storage uniqueness constraint rejected the write."""

    status_code = 409


class DeliveryError(MatchmakingError):
    """The outbound alert could not be delivered."""

    status_code = 502

"""Exceptions raised by the service layer.

Each error kind maps to one HTTP status; the mapping lives on the class so the
API layer can render any of them with a single exception handler.
"""


class ScoreboardError(Exception):
    """Base exception for all scoreboard service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ScoreboardError):
    """Referenced scoreboard, match, team, player or membership does not exist."""

    status_code = 404


class ForbiddenError(ScoreboardError):
    """Caller lacks the role or scoreboard assignment for the requested scope."""

    status_code = 403


class ValidationFailedError(ScoreboardError):
    """Input breaks a field or business rule; raised before anything is written."""

    status_code = 400


class ConflictError(ScoreboardError):
    """A unique key (slug, membership, assignment, email) already exists."""

    status_code = 409

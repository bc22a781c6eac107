"""
src/Core/errors.py
==========================
Journey Domain Error Types
==========================

Every failure the journey core can report to a caller. Each error carries
the HTTP status the API layer answers with; ``src/main.py`` registers one
handler for ``JourneyError`` that renders ``{"detail": message}``.

Taxonomy:
---------
- ConflictError (409): a journey is already open for the worker
- NotFoundError (404): no open journey (or no such journey / worker)
- ValidationError (400): malformed telemetry sample or request parameter
- PersistenceError (503): storage failure, surfaced as-is, never retried

Messages are safe to show to clients. Storage-specific detail is logged by
the repository layer and never placed in a message.
"""


class JourneyError(Exception):
    """Base class for all journey domain errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(JourneyError):
    """Attempt to open a journey while another one is still open."""

    status_code = 409


class NotFoundError(JourneyError):
    """Append/finalize without an open journey, or unknown record."""

    status_code = 404


class ValidationError(JourneyError):
    """Malformed sample: negative speed, missing or out-of-range coordinates."""

    status_code = 400


class PersistenceError(JourneyError):
    """Storage collaborator failure (connection, constraint, stale version)."""

    status_code = 503

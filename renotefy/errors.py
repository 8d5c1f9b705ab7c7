"""
Error taxonomy for note operations.

Every error carries the HTTP status the API layer answers with, so the
FastAPI app can map them with a single exception handler.
"""


class NoteError(Exception):
    """Base class for errors raised by the notes core."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(NoteError):
    """The referenced note id does not exist."""

    status_code = 404


class PermissionDeniedError(NoteError):
    """The principal lacks the capability the operation needs."""

    status_code = 403


class ValidationError(NoteError):
    """Malformed input, such as an empty or invalid share email."""

    status_code = 422


class UpstreamError(NoteError):
    """A backing service (text generation, storage) failed."""

    status_code = 502

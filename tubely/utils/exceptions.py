"""Error taxonomy for Tubely.

Every error raised by a handler maps to one HTTP status:
- Client errors (4xx): malformed input, missing or bad credentials,
  ownership mismatch, unknown resources
- Internal errors (5xx): external process or storage failures
"""


class TubelyError(Exception):
    """Base exception for Tubely."""

    status_code: int = 500
    user_message: str = "An unexpected error occurred."

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


# --- Client errors ---


class BadRequestError(TubelyError):
    """Malformed or missing input, oversized upload, wrong media type."""

    status_code = 400


class UnauthorizedError(TubelyError):
    """Missing or invalid credentials."""

    status_code = 401


class ForbiddenError(TubelyError):
    """Authenticated user does not own the resource."""

    status_code = 403


class NotFoundError(TubelyError):
    """Unknown video or missing thumbnail."""

    status_code = 404


# --- Internal errors ---


class InternalError(TubelyError):
    """Base class for failures the client cannot fix."""

    status_code = 500

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message, user_message or type(self).user_message)


class ProbeExecutionError(InternalError):
    """ffprobe could not be run, exited non-zero, or wrote to stderr."""

    user_message = "Could not inspect the uploaded video."


class ProbeParseError(InternalError):
    """ffprobe output did not contain usable dimensions."""

    user_message = "Could not read the uploaded video's dimensions."


class StorageError(InternalError):
    """Writing an asset to disk or object storage failed."""

    user_message = "Could not store the uploaded file."


def get_user_message(error: Exception) -> str:
    """Get a client-facing error message."""
    if isinstance(error, TubelyError):
        return error.user_message
    return f"An error occurred: {type(error).__name__}"

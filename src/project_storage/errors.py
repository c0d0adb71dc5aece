"""Exceptions raised inside the HTTP layer.

The storage layer never raises these across its boundary; it returns
tagged results (see ``project_storage.results``). The API layer raises them
while parsing requests and maps each one to a status code.
"""


class ProjectStorageError(Exception):
    """Base class for request errors with an HTTP status."""

    status_code = 500


class InvalidProjectIdError(ProjectStorageError, ValueError):
    """Identifier is empty, too long, or contains characters outside the id alphabet."""

    status_code = 400


class NoProjectDataError(ProjectStorageError):
    """Request carried none of the accepted project encodings."""

    status_code = 400


class PayloadTooLargeError(ProjectStorageError):
    """Request body exceeds the configured upload limit."""

    status_code = 413

    def __init__(self, limit: int) -> None:
        super().__init__(f"Project exceeds the maximum upload size of {limit} bytes")
        self.limit = limit


class InvalidProjectDataError(ProjectStorageError):
    """Payload was present but could not be decoded into bytes."""

    status_code = 400

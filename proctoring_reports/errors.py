class ReportError(Exception):
    """Base class for failures that map onto a JSON ``{"error": ...}`` body."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReportError):
    status_code = 400


class NotFound(ReportError):
    status_code = 404


class StorageError(ReportError):
    status_code = 500

# app/exceptions.py
"""
Application error taxonomy.
Every error carries the HTTP status the global handler in main.py maps it to.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    status_code = 400


class InvalidImageError(ValidationError):
    """Upload rejected by size ceiling or magic-number check."""


class UnauthorizedError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ChainObjectNotFoundError(NotFoundError):
    """The RPC node has no object under the requested ID."""


class ChainError(AppError):
    """Sui RPC transport failure, JSON-RPC error, or unexpected object shape."""


class BlobStoreError(AppError):
    """Walrus publisher/aggregator returned an error or an unusable body."""

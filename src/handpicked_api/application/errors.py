class StorefrontError(Exception):
    """Base class for errors raised by the list and click services."""


class ValidationError(StorefrontError):
    """Raised when a request parameter is malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(StorefrontError):
    """Raised when a slug or offer identifier resolves to nothing."""


class UpstreamError(StorefrontError):
    """Raised when the relational store fails a query."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class RateLimitedError(StorefrontError):
    """Raised when a client exceeded its fixed-window allowance."""

    def __init__(self, message: str, retry_after_seconds: int) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

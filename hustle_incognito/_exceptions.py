"""Typed error hierarchy for configuration, HTTP status and network failures."""


class HustleError(Exception):
    """Base exception for all Hustle Incognito SDK errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_text: str | None = None,
        method: str | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.method = method
        self.url = url


class ConfigurationError(HustleError):
    """Missing or invalid client configuration (e.g. no API key)."""


class AuthenticationError(HustleError):
    """401 — invalid or missing API key."""


class PermissionDeniedError(HustleError):
    """403 — key not allowed to use this vault or endpoint."""


class NotFoundError(HustleError):
    """404 — endpoint does not exist."""


class ValidationError(HustleError):
    """400/422 — the request body was rejected."""


class RateLimitError(HustleError):
    """429 — too many requests."""

    def __init__(self, message: str, retry_after: float | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class APIError(HustleError):
    """Any other non-success status, usually 500+."""


class NetworkError(HustleError):
    """Connection failed or the response body could not be read."""


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[HustleError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}

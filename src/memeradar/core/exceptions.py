"""MemeRadar exception hierarchy.

This module defines the base exception class and specialized exceptions
for different error categories across the application.
"""


class MemeRadarError(Exception):
    """Base exception for all MemeRadar errors.

    All custom exceptions in MemeRadar should inherit from this class
    to enable consistent error handling and logging.
    """

    pass


class ConfigurationError(MemeRadarError):
    """Raised when configuration is invalid or missing.

    Example:
        raise ConfigurationError("Missing required env var: REDIS_URL")
    """

    pass


class ValidationError(MemeRadarError):
    """Raised when user input is malformed.

    Covers bad period, sortBy, limit, or token address values. Surfaced to
    the caller immediately; no refresh cycle or cache state is touched.

    Example:
        raise ValidationError("Invalid period. Must be 1h, 24h, or 7d")
    """

    pass


class ExternalServiceError(MemeRadarError):
    """Raised when an external service call fails.

    Use this for API errors from DexScreener, GeckoTerminal, etc.

    Attributes:
        service: Name of the external service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise ExternalServiceError(service="dexscreener", message="Rate limited", status_code=429)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class UpstreamFetchError(ExternalServiceError):
    """Primary source unreachable or retries exhausted."""


class UpstreamEnrichError(ExternalServiceError):
    """Secondary (enrichment) source unreachable or retries exhausted."""


class CircuitBreakerOpenError(MemeRadarError):
    """Raised when circuit breaker is open.

    Use this when an API client's circuit breaker has tripped due to
    consecutive failures and requests are being blocked.
    """

    pass


class CacheError(MemeRadarError):
    """Raised when the cache store is unreachable or returns garbage."""

    pass


class MalformedRecordError(MemeRadarError):
    """Raised when a single raw payload entry cannot be normalized.

    Attributes:
        source: Source the entry came from.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source

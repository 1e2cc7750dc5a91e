"""Tests for MemeRadar exception hierarchy."""

import pytest

from memeradar.core.exceptions import (
    CacheError,
    CircuitBreakerOpenError,
    ConfigurationError,
    ExternalServiceError,
    MalformedRecordError,
    MemeRadarError,
    UpstreamEnrichError,
    UpstreamFetchError,
    ValidationError,
)


class TestHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            ValidationError,
            ExternalServiceError,
            CircuitBreakerOpenError,
            CacheError,
            MalformedRecordError,
        ],
    )
    def test_inherits_from_base(self, error_class) -> None:
        assert issubclass(error_class, MemeRadarError)

    def test_source_errors_are_service_errors(self) -> None:
        """
        Given: the per-source error classes
        When: checking inheritance
        Then: both can be caught as ExternalServiceError
        """
        assert issubclass(UpstreamFetchError, ExternalServiceError)
        assert issubclass(UpstreamEnrichError, ExternalServiceError)


class TestExternalServiceError:
    """Tests for ExternalServiceError attributes."""

    def test_message_includes_service(self) -> None:
        error = UpstreamFetchError(service="dexscreener", message="Rate limited", status_code=429)

        assert str(error) == "dexscreener: Rate limited"
        assert error.service == "dexscreener"
        assert error.status_code == 429

    def test_status_code_optional(self) -> None:
        assert ExternalServiceError(service="x", message="timeout").status_code is None


class TestMalformedRecordError:
    """Tests for MalformedRecordError."""

    def test_carries_source(self) -> None:
        error = MalformedRecordError("missing priceNative", source="DexScreener")

        assert str(error) == "missing priceNative"
        assert error.source == "DexScreener"

"""Error types raised by the Alpha Vantage client.

Transport failures are not wrapped: any :class:`httpx.HTTPError` raised while
talking to the service reaches the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class AlphaVantageError(RuntimeError):
    """
    Base exception type for Alpha Vantage client failures.

    `payload` should contain a redacted, non-secret-bearing representation of the
    error body when available. Never include API keys in this payload.
    """

    default_code = "alpha_vantage_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.payload = payload


class DailyLimitReachedError(AlphaVantageError):
    """Raised when the per-day call budget is exhausted. The call was not attempted."""

    default_code = "daily_limit"


class RateLimiterClosedError(AlphaVantageError):
    """Raised when admission is requested from a closed rate limiter."""

    default_code = "closed"


class ParseError(AlphaVantageError):
    """Raised when a response body cannot be decoded into records."""

    default_code = "parse_error"


class AlphaVantageThrottleError(ParseError):
    default_code = "throttle"


class AlphaVantageInvalidSymbolError(ParseError):
    default_code = "invalid_symbol"

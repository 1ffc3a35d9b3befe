"""
Alpha Vantage Client Library
============================

A rate-limited client for the Alpha Vantage REST API.  The
:class:`~av_client.client.AlphaVantageClient` builds the query for each
supported operation (daily/weekly/monthly stock series and their adjusted
variants, intraday series, digital currencies), sends it through an
:class:`~av_client.connection.AlphaVantageConnection` and decodes the CSV
response into typed records.

Every connection owns a :class:`~av_client.rate_limiter.RateLimiter`
that enforces the per-second and per-day call budgets of your API key.
Many threads may share one client; they all draw from the same budgets.

For example::

    from av_client import AlphaVantageClient, AlphaVantageConfig, TimeSeries, to_frame

    config = AlphaVantageConfig(api_key="YOUR_API_KEY", day_limit=500, second_limit=5)
    with AlphaVantageClient(config) as av_client:
        bars = av_client.stock_time_series(TimeSeries.DAILY, "AAPL")
    print(to_frame(bars).tail())
"""

from .client import AlphaVantageClient  # noqa: F401
from .config import AlphaVantageConfig  # noqa: F401
from .connection import AlphaVantageConnection, Connection, Endpoint  # noqa: F401
from .errors import (  # noqa: F401
    AlphaVantageError,
    AlphaVantageInvalidSymbolError,
    AlphaVantageThrottleError,
    DailyLimitReachedError,
    ParseError,
    RateLimiterClosedError,
)
from .models import DigitalCurrencySeriesValue, TimeInterval, TimeSeries, TimeSeriesValue  # noqa: F401
from .rate_limiter import RateLimiter  # noqa: F401
from .utils import parse_digital_currency_series_data, parse_time_series_data, to_frame  # noqa: F401

__all__ = [
    "AlphaVantageClient",
    "AlphaVantageConfig",
    "AlphaVantageConnection",
    "Connection",
    "Endpoint",
    "AlphaVantageError",
    "AlphaVantageInvalidSymbolError",
    "AlphaVantageThrottleError",
    "DailyLimitReachedError",
    "ParseError",
    "RateLimiterClosedError",
    "DigitalCurrencySeriesValue",
    "TimeInterval",
    "TimeSeries",
    "TimeSeriesValue",
    "RateLimiter",
    "parse_digital_currency_series_data",
    "parse_time_series_data",
    "to_frame",
]

"""
High-level Alpha Vantage API client.

This module defines the :class:`AlphaVantageClient` class which builds
the endpoint for each supported query, sends it through a
:class:`~av_client.connection.Connection` and decodes the CSV answer into
typed records.  The client appends your API key and the fixed
``datatype=csv`` / ``outputsize=compact`` defaults to every request; rate
limiting happens in the connection.

Typical usage looks like this::

    from av_client import AlphaVantageClient, AlphaVantageConfig, TimeSeries

    cfg = AlphaVantageConfig(api_key="YOUR_KEY", day_limit=500, second_limit=5)
    with AlphaVantageClient(cfg) as av:
        bars = av.stock_time_series(TimeSeries.DAILY, "AAPL")

A single client is safe to share between threads; all of them draw from
the same call budgets.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

import httpx

from .config import AlphaVantageConfig
from .connection import AlphaVantageConnection, Connection, Endpoint, PATH_QUERY
from .models import (
    DigitalCurrencySeriesValue,
    TimeInterval,
    TimeSeries,
    TimeSeriesValue,
    coerce_time_interval,
    coerce_time_series,
)
from .rate_limiter import RateLimiter
from .utils import parse_digital_currency_series_data, parse_time_series_data


R = TypeVar("R")

QUERY_API_KEY = "apikey"
QUERY_DATA_TYPE = "datatype"
QUERY_OUTPUT_SIZE = "outputsize"
QUERY_FUNCTION = "function"
QUERY_SYMBOL = "symbol"
QUERY_INTERVAL = "interval"
QUERY_MARKET = "market"

VALUE_CSV = "csv"
VALUE_COMPACT = "compact"
FUNCTION_INTRADAY = "TIME_SERIES_INTRADAY"
FUNCTION_DIGITAL_CURRENCY = "DIGITAL_CURRENCY_INTRADAY"


class AlphaVantageClient:
    """Client for querying Alpha Vantage stock and digital currency data.

    Parameters
    ----------
    config : AlphaVantageConfig, optional
        API key, host, timeout and call budgets.
    connection : Connection, optional
        Alternate transport to send requests through (for example a test
        double).  When given, ``http_client`` and ``rate_limiter`` are
        ignored and the connection is not closed by :meth:`close`.
    http_client, rate_limiter : optional
        Passed to the :class:`AlphaVantageConnection` built by the client.
    """

    def __init__(
        self,
        config: Optional[AlphaVantageConfig] = None,
        *,
        connection: Optional[Connection] = None,
        http_client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.config = config or AlphaVantageConfig()
        self._owns_connection = connection is None
        self.connection: Connection = connection or AlphaVantageConnection(
            self.config,
            http_client=http_client,
            rate_limiter=rate_limiter,
        )

    def close(self) -> None:
        if self._owns_connection:
            self.connection.close()  # type: ignore[attr-defined]

    def __enter__(self) -> "AlphaVantageClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def build_endpoint(self, params: Mapping[str, Any]) -> Endpoint:
        """Return the endpoint for ``params`` on top of the default query parameters.

        ``params`` win over the defaults when they name the same key.
        """
        query: Dict[str, str] = {
            QUERY_API_KEY: self.config.api_key,
            QUERY_DATA_TYPE: VALUE_CSV,
            QUERY_OUTPUT_SIZE: VALUE_COMPACT,
        }
        for key, value in params.items():
            query[str(key)] = str(value)
        return Endpoint(params=query, path=PATH_QUERY)

    def _query(self, params: Mapping[str, Any], parse: Callable[[Any], R]) -> R:
        response = self.connection.request(self.build_endpoint(params))
        try:
            return parse(response.read())
        finally:
            response.close()

    def stock_time_series_intraday(
        self, interval: Union[TimeInterval, str], symbol: str
    ) -> List[TimeSeriesValue]:
        """Query a symbol's bars throughout the day at the given interval.

        Data is returned from past to present.
        """
        return self._query(
            {
                QUERY_FUNCTION: FUNCTION_INTRADAY,
                QUERY_INTERVAL: coerce_time_interval(interval).value,
                QUERY_SYMBOL: symbol,
            },
            parse_time_series_data,
        )

    def stock_time_series(self, series: Union[TimeSeries, str], symbol: str) -> List[TimeSeriesValue]:
        """Query a symbol's daily, weekly or monthly series (optionally adjusted).

        Data is returned from past to present.
        """
        return self._query(
            {
                QUERY_FUNCTION: coerce_time_series(series).function,
                QUERY_SYMBOL: symbol,
            },
            parse_time_series_data,
        )

    def digital_currency(self, digital: str, physical: str) -> List[DigitalCurrencySeriesValue]:
        """Query a digital currency's value in a physical currency throughout the day.

        Data is returned from past to present.
        """
        return self._query(
            {
                QUERY_FUNCTION: FUNCTION_DIGITAL_CURRENCY,
                QUERY_SYMBOL: digital,
                QUERY_MARKET: physical,
            },
            parse_digital_currency_series_data,
        )

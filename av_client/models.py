from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class TimeSeries(str, Enum):
    DAILY = "TIME_SERIES_DAILY"
    DAILY_ADJUSTED = "TIME_SERIES_DAILY_ADJUSTED"
    WEEKLY = "TIME_SERIES_WEEKLY"
    WEEKLY_ADJUSTED = "TIME_SERIES_WEEKLY_ADJUSTED"
    MONTHLY = "TIME_SERIES_MONTHLY"
    MONTHLY_ADJUSTED = "TIME_SERIES_MONTHLY_ADJUSTED"

    @property
    def function(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class TimeInterval(str, Enum):
    """Bar width for intraday series."""

    ONE_MINUTE = "1min"
    FIVE_MINUTE = "5min"
    FIFTEEN_MINUTE = "15min"
    THIRTY_MINUTE = "30min"
    SIXTY_MINUTE = "60min"

    def __str__(self) -> str:
        return self.value


def coerce_time_series(value: Union[TimeSeries, str]) -> TimeSeries:
    if isinstance(value, TimeSeries):
        return value
    text = str(value).strip().upper()
    try:
        return TimeSeries(text)
    except ValueError:
        pass
    try:
        return TimeSeries[text]
    except KeyError:
        raise ValueError(f"Unknown time series: {value!r}") from None


def coerce_time_interval(value: Union[TimeInterval, str]) -> TimeInterval:
    if isinstance(value, TimeInterval):
        return value
    try:
        return TimeInterval(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown intraday interval: {value!r}") from None


@dataclass(frozen=True)
class TimeSeriesValue:
    """One OHLCV bar of a stock time series.

    The adjusted fields are only populated for the ``*_ADJUSTED`` series.
    """

    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    adjusted_close: Optional[float] = None
    dividend_amount: Optional[float] = None
    split_coefficient: Optional[float] = None


@dataclass(frozen=True)
class DigitalCurrencySeriesValue:
    """One point of a digital currency series.

    ``price`` is quoted in the requested market currency and ``price_usd``
    in US dollars.
    """

    time: datetime
    price: float
    price_usd: float
    volume: float
    market_cap: Optional[float] = None

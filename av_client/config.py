"""
Alpha Vantage configuration support.

This module defines the :class:`AlphaVantageConfig` dataclass which
collects every setting the client needs at construction time: the API
key, the host to query, the HTTP timeout and the per-day / per-second
call budgets enforced by :class:`~av_client.rate_limiter.RateLimiter`.
Nothing here reads the environment; callers supply values directly.

Example
-------

    >>> from av_client.config import AlphaVantageConfig
    >>> cfg = AlphaVantageConfig(api_key="demo", day_limit=500, second_limit=5)
    >>> cfg.base_url()
    'https://www.alphavantage.co'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


HOST_DEFAULT = "www.alphavantage.co"
TIMEOUT_DEFAULT = 30.0
SCHEME = "https"


def _check_limit(name: str, value: Optional[int]) -> None:
    if value is not None and int(value) < 0:
        raise ValueError(f"{name} must be >= 0 or None (got {value!r}).")


@dataclass(frozen=True)
class AlphaVantageConfig:
    """Configuration container for the Alpha Vantage client.

    Attributes
    ----------
    api_key:
        The API key issued by Alpha Vantage.  Required for real requests;
        an empty key is accepted so tests can build clients offline.

    host:
        Host (authority) of the service, without scheme.  Override it to
        point the client at a proxy or mirror.

    timeout:
        Timeout in seconds for individual HTTP requests.

    day_limit, second_limit:
        Call budgets per day and per second.  ``None`` or ``0`` means no
        cap.

    rate_wait_timeout_seconds:
        Upper bound on how long a call may wait for a per-second slot
        before ``TimeoutError`` is raised.  ``None`` waits indefinitely.
    """

    api_key: str = ""
    host: str = HOST_DEFAULT
    timeout: float = TIMEOUT_DEFAULT
    day_limit: Optional[int] = None
    second_limit: Optional[int] = None
    rate_wait_timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        host = str(self.host or "").strip()
        if not host:
            raise ValueError("host must not be empty.")
        if "://" in host or "/" in host:
            raise ValueError(f"host must be a bare authority such as {HOST_DEFAULT!r} (got {self.host!r}).")
        if float(self.timeout) <= 0:
            raise ValueError(f"timeout must be > 0 (got {self.timeout!r}).")
        _check_limit("day_limit", self.day_limit)
        _check_limit("second_limit", self.second_limit)
        if self.rate_wait_timeout_seconds is not None and float(self.rate_wait_timeout_seconds) < 0:
            raise ValueError("rate_wait_timeout_seconds must be >= 0 or None.")
        object.__setattr__(self, "host", host)

    def base_url(self) -> str:
        """Return the scheme and host every request is sent to."""
        return f"{SCHEME}://{self.host}"

"""
Rate-limited HTTP transport for the Alpha Vantage API.

An :class:`Endpoint` names one remote operation (a path plus query
parameters).  A :class:`Connection` turns it into exactly one HTTPS GET
against the configured host, admitted through the connection's
:class:`~av_client.rate_limiter.RateLimiter`, and hands back the
unread, streamed :class:`httpx.Response`.  The caller owns that response
and must close it.

HTTP status codes are not interpreted here and transport errors are not
wrapped; both are the caller's concern.
"""

from __future__ import annotations

import itertools
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from .config import AlphaVantageConfig
from .errors import DailyLimitReachedError
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)

PATH_QUERY = "query"

_APIKEY_QUERY_RE = re.compile(r"(apikey=)([^&\s]+)", re.IGNORECASE)


def redact_api_key(text: str, api_key: Optional[str] = None) -> str:
    out = text
    if api_key:
        out = out.replace(api_key, "[REDACTED]")
    return _APIKEY_QUERY_RE.sub(r"\1[REDACTED]", out)


@dataclass(frozen=True)
class Endpoint:
    """A path and query parameters identifying one remote operation.

    Parameters are encoded in lexicographic key order so the same
    descriptor always produces the same URL.
    """

    params: Mapping[str, str] = field(default_factory=dict)
    path: str = PATH_QUERY

    def query_string(self) -> str:
        return str(httpx.QueryParams(sorted((str(k), str(v)) for k, v in self.params.items())))

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self}"

    def __str__(self) -> str:
        return f"{self.path.lstrip('/')}?{self.query_string()}"


class Connection(Protocol):
    def request(self, endpoint: Endpoint) -> httpx.Response:
        ...


class AlphaVantageConnection:
    """Issues rate-limited GET requests to the Alpha Vantage host.

    Parameters
    ----------
    config : AlphaVantageConfig, optional
        Host, timeout and call budgets.  Defaults to an unlimited
        connection to the public host.
    http_client : httpx.Client, optional
        Pre-built client to send requests with.  It is not closed by
        :meth:`close`.
    rate_limiter : RateLimiter, optional
        Limiter to admit requests through, e.g. one shared with another
        connection.  It is not closed by :meth:`close`.  When omitted a
        limiter is built from ``config.day_limit`` and
        ``config.second_limit``.
    """

    def __init__(
        self,
        config: Optional[AlphaVantageConfig] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.config = config or AlphaVantageConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.config.timeout, trust_env=False)
        self._owns_rate_limiter = rate_limiter is None
        self.rate_limiter = rate_limiter or RateLimiter(
            day_limit=self.config.day_limit,
            second_limit=self.config.second_limit,
        )
        self._request_seq = itertools.count(1)

    @property
    def host(self) -> str:
        return self.config.host

    def close(self) -> None:
        if self._owns_rate_limiter:
            self.rate_limiter.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "AlphaVantageConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _log(self, level: int, message: str, **context: Any) -> None:
        if not logger.isEnabledFor(level):
            return
        safe_context: Dict[str, Any] = {}
        for key, value in context.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = redact_api_key(value, self.config.api_key)
            safe_context[key] = value
        logger.log(level, message, extra={"context": safe_context})

    def request(self, endpoint: Endpoint) -> httpx.Response:
        """Send one GET for ``endpoint`` once the rate limiter admits it.

        The returned response is streamed and unread; close it when done.
        """
        req_id = next(self._request_seq)
        url = endpoint.url(self.config.base_url())
        function = endpoint.params.get("function")
        symbol = endpoint.params.get("symbol")

        self._log(
            logging.DEBUG,
            "Alpha Vantage request started",
            av_event="request_start",
            av_request_id=req_id,
            av_function=function,
            av_symbol=symbol,
            av_url=url,
        )

        def send() -> httpx.Response:
            return self._client.send(self._client.build_request("GET", url), stream=True)

        started = time.monotonic()
        try:
            response = self.rate_limiter.do(send, timeout_seconds=self.config.rate_wait_timeout_seconds)
        except Exception as exc:
            level = logging.WARNING if isinstance(exc, DailyLimitReachedError) else logging.ERROR
            self._log(
                level,
                "Alpha Vantage request failed",
                av_event="request_failed",
                av_request_id=req_id,
                av_function=function,
                av_symbol=symbol,
                av_error_type=type(exc).__name__,
                av_error=str(exc),
            )
            raise

        elapsed_ms = (time.monotonic() - started) * 1000.0
        self._log(
            logging.DEBUG if response.is_success else logging.WARNING,
            "Alpha Vantage request completed",
            av_event="request_complete",
            av_request_id=req_id,
            av_function=function,
            av_symbol=symbol,
            av_status_code=int(response.status_code),
            av_elapsed_ms=round(elapsed_ms, 1),
        )
        return response

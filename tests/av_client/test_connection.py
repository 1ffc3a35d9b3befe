import httpx
import pytest

from av_client import AlphaVantageConfig, AlphaVantageConnection, DailyLimitReachedError, Endpoint, RateLimiter


def _build_connection(handler, **config_overrides) -> tuple[AlphaVantageConnection, httpx.Client]:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    cfg = AlphaVantageConfig(api_key="test", **config_overrides)
    return AlphaVantageConnection(cfg, http_client=http_client), http_client


def test_endpoint_encodes_params_in_key_order() -> None:
    endpoint = Endpoint({"symbol": "TEST", "apikey": "test", "function": "TIME_SERIES_DAILY"})

    assert endpoint.query_string() == "apikey=test&function=TIME_SERIES_DAILY&symbol=TEST"
    assert str(endpoint) == "query?apikey=test&function=TIME_SERIES_DAILY&symbol=TEST"
    assert endpoint.url("https://example.test/") == (
        "https://example.test/query?apikey=test&function=TIME_SERIES_DAILY&symbol=TEST"
    )


def test_request_issues_one_https_get_to_configured_host() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="timestamp,open\n")

    conn, _ = _build_connection(handler, host="mirror.example.test")
    with conn:
        response = conn.request(Endpoint({"symbol": "IBM", "function": "TIME_SERIES_WEEKLY"}))
        try:
            assert response.read() == b"timestamp,open\n"
        finally:
            response.close()

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert str(seen[0].url) == "https://mirror.example.test/query?function=TIME_SERIES_WEEKLY&symbol=IBM"


def test_request_does_not_interpret_status_codes() -> None:
    conn, _ = _build_connection(lambda _r: httpx.Response(503, text="unavailable"))
    with conn:
        response = conn.request(Endpoint({"function": "TIME_SERIES_DAILY"}))
        response.close()

    assert response.status_code == 503


def test_daily_limit_rejects_without_http_call() -> None:
    calls = {"count": 0}

    def handler(_request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200, text="")

    conn, _ = _build_connection(handler, day_limit=1)
    with conn:
        conn.request(Endpoint({"function": "TIME_SERIES_DAILY"})).close()
        with pytest.raises(DailyLimitReachedError):
            conn.request(Endpoint({"function": "TIME_SERIES_DAILY"}))

    assert calls["count"] == 1


def test_transport_errors_propagate_and_still_count() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    conn, _ = _build_connection(handler, second_limit=10)
    with conn:
        with pytest.raises(httpx.ConnectError, match="connection refused"):
            conn.request(Endpoint({"function": "TIME_SERIES_DAILY"}))
        assert conn.rate_limiter.day_count == 1


def test_rate_limiter_built_from_config() -> None:
    conn, _ = _build_connection(lambda _r: httpx.Response(200), day_limit=500, second_limit=5)
    with conn:
        assert conn.rate_limiter.day_limit == 500
        assert conn.rate_limiter.second_limit == 5


def test_close_releases_only_owned_resources() -> None:
    shared = RateLimiter(second_limit=5)
    conn, http_client = _build_connection(lambda _r: httpx.Response(200))
    conn_with_shared = AlphaVantageConnection(AlphaVantageConfig(), http_client=http_client, rate_limiter=shared)
    try:
        owned = conn.rate_limiter
        conn.close()
        conn_with_shared.close()

        assert owned.closed
        assert not shared.closed
        assert not http_client.is_closed
    finally:
        shared.close()
        http_client.close()


def test_default_connection_owns_http_client() -> None:
    conn = AlphaVantageConnection()
    assert conn.host == "www.alphavantage.co"
    conn.close()

    assert conn._client.is_closed
    assert conn.rate_limiter.closed

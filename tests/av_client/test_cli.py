import httpx
import pytest

from av_client import AlphaVantageClient, AlphaVantageConfig
from av_client.cli import main
from tests.av_client._stubs import SAMPLE_DIGITAL_CURRENCY_CSV, SAMPLE_TIME_SERIES_CSV, ResponseConnection


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch):
    monkeypatch.setenv("DISABLE_DOTENV", "1")
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)


def _stub_client(handler) -> AlphaVantageClient:
    return AlphaVantageClient(AlphaVantageConfig(api_key="test"), connection=ResponseConnection(handler=handler))


def test_main_queries_every_interval_and_series(capsys) -> None:
    def handler(endpoint):
        if endpoint.params["function"] == "DIGITAL_CURRENCY_INTRADAY":
            return httpx.Response(200, text=SAMPLE_DIGITAL_CURRENCY_CSV)
        return httpx.Response(200, text=SAMPLE_TIME_SERIES_CSV)

    code = main(["--symbol", "TEST", "--crypto", "ETH", "--market", "EUR"], client=_stub_client(handler))

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(out) == 5 + 6 + 1
    assert "TIME_SERIES_DAILY TEST with 5 records" in out
    assert "15min TEST with 5 records" in out
    assert "ETH => EUR with 2 records" in out


def test_main_reports_failures_without_aborting_siblings(capsys) -> None:
    def handler(endpoint):
        if endpoint.params["function"] == "TIME_SERIES_WEEKLY":
            return httpx.Response(200, text='{"Note": "Throttled"}')
        return httpx.Response(200, text=SAMPLE_TIME_SERIES_CSV)

    code = main(["--symbol", "TEST"], client=_stub_client(handler))

    captured = capsys.readouterr()
    assert code == 1
    assert len(captured.out.splitlines()) == 10
    assert "error loading TIME_SERIES_WEEKLY TEST: Throttled" in captured.err


def test_main_requires_api_key(capsys) -> None:
    assert main([]) == 2
    assert "ALPHA_VANTAGE_API_KEY" in capsys.readouterr().err


def test_main_rejects_invalid_limits(capsys) -> None:
    assert main(["--apikey", "test", "--day-limit", "-3"]) == 2
    assert "day_limit" in capsys.readouterr().err

import io
from datetime import datetime

import pytest

from av_client.errors import AlphaVantageInvalidSymbolError, AlphaVantageThrottleError, ParseError
from av_client.utils import parse_digital_currency_series_data, parse_time_series_data, to_frame
from tests.av_client._stubs import SAMPLE_TIME_SERIES_CSV


def test_parse_time_series_accepts_bytes_and_streams() -> None:
    from_bytes = parse_time_series_data(SAMPLE_TIME_SERIES_CSV.encode())
    from_stream = parse_time_series_data(io.BytesIO(SAMPLE_TIME_SERIES_CSV.encode()))

    assert from_bytes == from_stream
    assert [r.time.day for r in from_bytes] == [2, 3, 4, 5, 8]
    assert from_bytes[0].adjusted_close is None


def test_parse_adjusted_series_columns() -> None:
    body = (
        "timestamp,open,high,low,close,adjusted close,volume,dividend amount\n"
        "2024-01-26,191.31,192.20,189.58,192.42,191.95,265450000,0.0000\n"
    )

    (bar,) = parse_time_series_data(body)

    assert bar.time == datetime(2024, 1, 26)
    assert bar.adjusted_close == pytest.approx(191.95)
    assert bar.dividend_amount == 0.0
    assert bar.split_coefficient is None


def test_header_only_body_yields_no_records() -> None:
    assert parse_time_series_data("timestamp,open,high,low,close,volume\n") == []


@pytest.mark.parametrize(
    "payload, error_type",
    [
        ('{"Note": "Thank you for using Alpha Vantage! Our standard API rate limit is 25 requests per day."}',
         AlphaVantageThrottleError),
        ('{"Information": "Please subscribe to any of the premium plans."}', AlphaVantageThrottleError),
        ('{"Error Message": "Invalid API call. Please retry or visit the documentation."}',
         AlphaVantageInvalidSymbolError),
    ],
)
def test_json_error_payloads_are_classified(payload, error_type) -> None:
    with pytest.raises(error_type):
        parse_time_series_data(payload)


def test_unrecognized_json_is_a_parse_error() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_time_series_data('{"Meta Data": {}}')

    assert excinfo.value.code == "parse_error"


@pytest.mark.parametrize(
    "body",
    [
        "",
        "   \n",
        "timestamp,open,high\n2024-01-02,1,2\n",
        "timestamp,open,high,low,close,volume\nnot-a-date,1,2,3,4,5\n",
        "timestamp,open,high,low,close,volume\n2024-01-02,1,2,3,abc,5\n",
        "timestamp,open,high,low,close,volume\n2024-01-02,1,2,3,,5\n",
    ],
)
def test_malformed_bodies_raise_parse_error(body) -> None:
    with pytest.raises(ParseError):
        parse_time_series_data(body)


def test_parse_digital_currency_ohlcv_layout() -> None:
    body = (
        "timestamp,open,high,low,close,volume\n"
        "2024-01-03,2200.0,2250.0,2150.0,2210.5,101.5\n"
        "2024-01-02,2180.0,2230.0,2170.0,2199.0,99.0\n"
    )

    records = parse_digital_currency_series_data(body)

    assert [r.price for r in records] == [2199.0, 2210.5]
    assert records[0].price_usd == records[0].price
    assert records[0].market_cap is None


def test_to_frame_indexes_by_time() -> None:
    frame = to_frame(parse_time_series_data(SAMPLE_TIME_SERIES_CSV))

    assert list(frame.index) == sorted(frame.index)
    assert frame.loc[datetime(2024, 1, 8), "close"] == pytest.approx(185.56)
    assert to_frame([]).empty

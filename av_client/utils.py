"""
Decoding of Alpha Vantage CSV responses into typed records.

Alpha Vantage often answers ``datatype=csv`` requests with HTTP 200 and a
JSON error object instead of CSV.  Such bodies are classified and raised as
the matching :class:`~av_client.errors.ParseError` subclass:

- ``{"Note": "..."}`` / ``{"Information": "..."}``: throttling
- ``{"Error Message": "..."}``: invalid symbol or malformed call

Records are returned past to present; the service lists newest first.
"""

from __future__ import annotations

import io
import json
from dataclasses import asdict
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .errors import (
    AlphaVantageInvalidSymbolError,
    AlphaVantageThrottleError,
    ParseError,
)
from .models import DigitalCurrencySeriesValue, TimeSeriesValue


Body = Union[bytes, str, IO[bytes], IO[str]]

_TIME_COLUMN = "timestamp"
_OHLCV_COLUMNS = ("open", "high", "low", "close", "volume")
_SNIPPET_CHARS = 200


def _read_text(body: Body) -> str:
    raw: Any = body.read() if hasattr(body, "read") else body
    if isinstance(raw, (bytes, bytearray)):
        try:
            return bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError("Response body is not valid UTF-8.") from exc
    return str(raw or "")


def _snippet(text: str) -> str:
    out = text.strip().replace("\n", " ")
    if len(out) > _SNIPPET_CHARS:
        out = out[:_SNIPPET_CHARS] + "..."
    return out


def classify_payload_error(payload: Mapping[str, Any]) -> Optional[ParseError]:
    note = payload.get("Note") or payload.get("Information")
    if isinstance(note, str) and note.strip():
        return AlphaVantageThrottleError(note.strip(), payload=payload)

    error_message = payload.get("Error Message")
    if isinstance(error_message, str) and error_message.strip():
        text = error_message.strip()
        lowered = text.lower()
        if "invalid api call" in lowered or "invalid symbol" in lowered:
            return AlphaVantageInvalidSymbolError(text, payload=payload)
        return ParseError(text, code="api_error", payload=payload)

    return None


def _raise_for_json(text: str) -> None:
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise ParseError("Malformed JSON response body.", payload={"snippet": _snippet(text)}) from exc
    if isinstance(parsed, dict):
        classified = classify_payload_error(parsed)
        if classified is not None:
            raise classified
    raise ParseError("Expected CSV but received JSON.", payload={"snippet": _snippet(text)})


def _normalize_column(name: Any) -> str:
    return str(name).strip().lower().replace(" ", "_")


def _read_frame(body: Body, required: Sequence[str]) -> pd.DataFrame:
    text = _read_text(body)
    stripped = text.strip()
    if not stripped:
        raise ParseError("Empty response body.")
    if stripped.startswith("{"):
        _raise_for_json(stripped)

    try:
        frame = pd.read_csv(io.StringIO(text))
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise ParseError(f"Malformed CSV response: {exc}", payload={"snippet": _snippet(text)}) from exc

    frame.columns = [_normalize_column(c) for c in frame.columns]
    missing = [c for c in (_TIME_COLUMN, *required) if c not in frame.columns]
    if missing:
        raise ParseError(
            f"CSV response is missing columns: {', '.join(missing)}",
            payload={"columns": list(frame.columns)},
        )

    try:
        frame[_TIME_COLUMN] = pd.to_datetime(frame[_TIME_COLUMN])
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Unparseable timestamp in CSV response: {exc}") from exc
    if frame[_TIME_COLUMN].isna().any():
        raise ParseError("Missing timestamps in CSV response.")
    return frame.sort_values(_TIME_COLUMN, kind="stable").reset_index(drop=True)


def _numeric(frame: pd.DataFrame, column: str, *, required: bool = True) -> List[Optional[float]]:
    if column not in frame.columns:
        return [None] * len(frame)
    try:
        values = pd.to_numeric(frame[column])
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Unparseable value in column {column!r}: {exc}") from exc
    if required and values.isna().any():
        raise ParseError(f"Missing values in column {column!r}.")
    return [None if pd.isna(v) else float(v) for v in values]


def parse_time_series_data(body: Body) -> List[TimeSeriesValue]:
    """Decode a stock time series CSV (plain or adjusted)."""
    frame = _read_frame(body, _OHLCV_COLUMNS)
    times = [ts.to_pydatetime() for ts in frame[_TIME_COLUMN]]
    columns: Dict[str, List[Optional[float]]] = {c: _numeric(frame, c) for c in _OHLCV_COLUMNS}
    for optional in ("adjusted_close", "dividend_amount", "split_coefficient"):
        columns[optional] = _numeric(frame, optional, required=False)

    return [
        TimeSeriesValue(time=t, **{name: values[i] for name, values in columns.items()})  # type: ignore[arg-type]
        for i, t in enumerate(times)
    ]


def parse_digital_currency_series_data(body: Body) -> List[DigitalCurrencySeriesValue]:
    """Decode a digital currency CSV.

    Two layouts are accepted: ``timestamp, price (<market>), price (USD),
    volume, market cap (USD)`` and the OHLCV layout, in which case the close
    is used for both prices.
    """
    text = _read_text(body)
    header = text.lstrip().split("\n", 1)[0].lower()
    if "price" in header:
        frame = _read_frame(text, ("volume",))
        price_columns = [c for c in frame.columns if c.startswith("price")]
        if not price_columns:
            raise ParseError("CSV response has no price column.")
        price = _numeric(frame, price_columns[0])
        price_usd = _numeric(frame, price_columns[1]) if len(price_columns) > 1 else price
        cap_columns = [c for c in frame.columns if c.startswith("market_cap")]
        market_cap = _numeric(frame, cap_columns[0], required=False) if cap_columns else [None] * len(frame)
    else:
        frame = _read_frame(text, ("close", "volume"))
        price = price_usd = _numeric(frame, "close")
        market_cap = _numeric(frame, "market_cap", required=False)

    volume = _numeric(frame, "volume")
    return [
        DigitalCurrencySeriesValue(
            time=ts.to_pydatetime(),
            price=price[i],  # type: ignore[arg-type]
            price_usd=price_usd[i],  # type: ignore[arg-type]
            volume=volume[i],  # type: ignore[arg-type]
            market_cap=market_cap[i],
        )
        for i, ts in enumerate(frame[_TIME_COLUMN])
    ]


def to_frame(records: Sequence[Union[TimeSeriesValue, DigitalCurrencySeriesValue]]) -> pd.DataFrame:
    """Convert parsed records into a ``DataFrame`` indexed by time."""
    if not records:
        return pd.DataFrame()
    return pd.DataFrame([asdict(r) for r in records]).set_index("time")

from __future__ import annotations

import argparse
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Tuple

from .client import AlphaVantageClient
from .config import AlphaVantageConfig
from .logging_config import configure_logging
from .models import TimeInterval, TimeSeries


logger = logging.getLogger(__name__)

API_KEY_ENV = "ALPHA_VANTAGE_API_KEY"

Query = Tuple[str, Callable[[], list]]


def _maybe_load_dotenv() -> None:
    raw = os.environ.get("DISABLE_DOTENV")
    if raw is not None and raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}:
        return

    from dotenv import load_dotenv

    load_dotenv(override=False)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="av-client",
        description="Query every intraday interval and time series for a symbol concurrently.",
    )
    parser.add_argument("--apikey", default=None, help=f"Alpha Vantage API key (defaults to ${API_KEY_ENV}).")
    parser.add_argument("--symbol", default="GOOGL", help="Stock symbol to query.")
    parser.add_argument("--crypto", default=None, help="Digital currency to query as well (e.g. ETH).")
    parser.add_argument("--market", default="USD", help="Physical currency to value --crypto in.")
    parser.add_argument("--host", default=None, help="Override the API host.")
    parser.add_argument("--day-limit", type=int, default=None, help="Calls allowed per day (0 = no cap).")
    parser.add_argument("--second-limit", type=int, default=None, help="Calls allowed per second (0 = no cap).")
    parser.add_argument("--workers", type=int, default=4, help="Concurrent queries.")
    return parser


def _build_queries(client: AlphaVantageClient, symbol: str, crypto: Optional[str], market: str) -> List[Query]:
    queries: List[Query] = []
    for interval in TimeInterval:
        queries.append((f"{interval} {symbol}", lambda i=interval: client.stock_time_series_intraday(i, symbol)))
    for series in TimeSeries:
        queries.append((f"{series} {symbol}", lambda s=series: client.stock_time_series(s, symbol)))
    if crypto:
        queries.append((f"{crypto} => {market}", lambda: client.digital_currency(crypto, market)))
    return queries


def run_queries(queries: Sequence[Query], *, workers: int) -> int:
    """Run every query concurrently; return the number that failed."""
    failures = 0
    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = {executor.submit(fn): label for label, fn in queries}
        for future in as_completed(futures):
            label = futures[future]
            try:
                records = future.result()
            except Exception as exc:
                failures += 1
                logger.debug("Query failed: %s", label, exc_info=True)
                print(f"error loading {label}: {exc}", file=sys.stderr)
                continue
            print(f"{label} with {len(records)} records")
    return failures


def main(argv: Optional[Sequence[str]] = None, *, client: Optional[AlphaVantageClient] = None) -> int:
    _maybe_load_dotenv()
    configure_logging()
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    if client is None:
        api_key = args.apikey or os.environ.get(API_KEY_ENV) or ""
        if not api_key:
            print(f"Error: pass --apikey or set {API_KEY_ENV}.", file=sys.stderr)
            return 2
        try:
            cfg = AlphaVantageConfig(
                api_key=api_key,
                day_limit=args.day_limit,
                second_limit=args.second_limit,
                **({"host": args.host} if args.host else {}),
            )
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        client = AlphaVantageClient(cfg)

    with client:
        failures = run_queries(_build_queries(client, args.symbol, args.crypto, args.market), workers=args.workers)
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())

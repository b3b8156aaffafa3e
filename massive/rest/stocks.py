"""Stocks endpoints: reference data, aggregates, last trade/quote, snapshots and indicators."""

from __future__ import annotations

from typing import Any

from .client import ApiResponse, RestClient
from .query import (
    AGGREGATE_OPTIONS,
    LIST_OPTIONS,
    PREVIOUS_CLOSE_OPTIONS,
    TICKER_OPTIONS,
    aggregates_path,
    build_query,
)

INDICATOR_OPTIONS = ("timestamp", "timespan", "adjusted", "window", "series_type")
MACD_OPTIONS = (
    "timestamp",
    "timespan",
    "adjusted",
    "short_window",
    "long_window",
    "signal_window",
    "series_type",
)


def get_ticker(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Get details for a specific ticker."""

    return client.get(f"/v3/reference/tickers/{ticker}", build_query(options, TICKER_OPTIONS))


def list_tickers(client: RestClient, **options: Any) -> ApiResponse:
    """List available stock tickers."""

    return client.get("/v3/reference/tickers", build_query(options, LIST_OPTIONS))


def get_aggregates(
    client: RestClient,
    ticker: str,
    multiplier: int,
    timespan: str,
    from_: str,
    to: str,
    **options: Any,
) -> ApiResponse:
    """Get OHLC aggregate bars for a ticker over a date range."""

    path = aggregates_path(ticker, multiplier, timespan, from_, to)
    return client.get(path, build_query(options, AGGREGATE_OPTIONS))


def get_previous_close(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Get the previous day's open, high, low and close."""

    return client.get(f"/v2/aggs/ticker/{ticker}/prev", build_query(options, PREVIOUS_CLOSE_OPTIONS))


def get_last_trade(client: RestClient, ticker: str) -> ApiResponse:
    return client.get(f"/v2/last/trade/{ticker}")


def get_last_quote(client: RestClient, ticker: str) -> ApiResponse:
    """Get the last NBBO quote."""

    return client.get(f"/v2/last/nbbo/{ticker}")


def get_snapshot(client: RestClient, ticker: str) -> ApiResponse:
    return client.get(f"/v2/snapshot/locale/us/markets/stocks/tickers/{ticker}")


def get_all_snapshots(client: RestClient, **options: Any) -> ApiResponse:
    """Get snapshots for every ticker, or a comma separated ``tickers`` subset."""

    return client.get("/v2/snapshot/locale/us/markets/stocks/tickers", build_query(options, ("tickers",)))


def get_sma(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Simple moving average."""

    return client.get(f"/v1/indicators/sma/{ticker}", build_query(options, INDICATOR_OPTIONS))


def get_ema(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Exponential moving average."""

    return client.get(f"/v1/indicators/ema/{ticker}", build_query(options, INDICATOR_OPTIONS))


def get_macd(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Moving average convergence/divergence."""

    return client.get(f"/v1/indicators/macd/{ticker}", build_query(options, MACD_OPTIONS))


def get_rsi(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Relative strength index."""

    return client.get(f"/v1/indicators/rsi/{ticker}", build_query(options, INDICATOR_OPTIONS))

"""Crypto endpoints."""

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


def get_ticker(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    """Get details for a crypto pair such as ``X:BTCUSD``."""

    return client.get(f"/v3/reference/tickers/{ticker}", build_query(options, TICKER_OPTIONS))


def list_tickers(client: RestClient, **options: Any) -> ApiResponse:
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
    path = aggregates_path(ticker, multiplier, timespan, from_, to)
    return client.get(path, build_query(options, AGGREGATE_OPTIONS))


def get_previous_close(client: RestClient, ticker: str, **options: Any) -> ApiResponse:
    return client.get(f"/v2/aggs/ticker/{ticker}/prev", build_query(options, PREVIOUS_CLOSE_OPTIONS))


def get_snapshot(client: RestClient, ticker: str) -> ApiResponse:
    return client.get(f"/v2/snapshot/locale/global/markets/crypto/tickers/{ticker}")


def get_last_trade(client: RestClient, from_: str, to: str) -> ApiResponse:
    """Get the last trade for a pair given as base and quote symbols, e.g. ``BTC``/``USD``."""

    return client.get(f"/v1/last/crypto/{from_}/{to}")

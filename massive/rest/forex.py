"""Foreign exchange endpoints."""

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
    return client.get(f"/v3/reference/tickers/{ticker}", build_query(options, TICKER_OPTIONS))


def list_tickers(client: RestClient, **options: Any) -> ApiResponse:
    return client.get("/v3/reference/tickers", build_query(options, LIST_OPTIONS))


def convert_currency(client: RestClient, from_: str, to: str, **options: Any) -> ApiResponse:
    """Convert ``amount`` of one currency into another at the latest rate."""

    return client.get(f"/v1/conversion/{from_}/{to}", build_query(options, ("amount", "precision")))


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
    return client.get(f"/v2/snapshot/locale/global/markets/forex/tickers/{ticker}")


def get_last_quote(client: RestClient, from_: str, to: str) -> ApiResponse:
    return client.get(f"/v1/last_quote/currencies/{from_}/{to}")

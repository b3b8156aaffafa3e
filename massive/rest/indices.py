"""Market index endpoints."""

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
    """Get details for an index ticker such as ``I:SPX``."""

    return client.get(f"/v3/reference/tickers/{ticker}", build_query(options, TICKER_OPTIONS))


def list_indices(client: RestClient, **options: Any) -> ApiResponse:
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
    return client.get(f"/v3/snapshot/indices/{ticker}")

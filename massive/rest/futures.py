"""Futures contract endpoints."""

from __future__ import annotations

from typing import Any

from .client import ApiResponse, RestClient
from .query import AGGREGATE_OPTIONS, PREVIOUS_CLOSE_OPTIONS, TICKER_OPTIONS, aggregates_path, build_query

LIST_CONTRACT_OPTIONS = ("underlying_ticker", "expiration_date", "limit")


def get_contract(client: RestClient, futures_ticker: str, **options: Any) -> ApiResponse:
    return client.get(f"/v3/reference/futures/contracts/{futures_ticker}", build_query(options, TICKER_OPTIONS))


def list_contracts(client: RestClient, **options: Any) -> ApiResponse:
    return client.get("/v3/reference/futures/contracts", build_query(options, LIST_CONTRACT_OPTIONS))


def get_aggregates(
    client: RestClient,
    futures_ticker: str,
    multiplier: int,
    timespan: str,
    from_: str,
    to: str,
    **options: Any,
) -> ApiResponse:
    path = aggregates_path(futures_ticker, multiplier, timespan, from_, to)
    return client.get(path, build_query(options, AGGREGATE_OPTIONS))


def get_previous_close(client: RestClient, futures_ticker: str, **options: Any) -> ApiResponse:
    return client.get(f"/v2/aggs/ticker/{futures_ticker}/prev", build_query(options, PREVIOUS_CLOSE_OPTIONS))


def get_snapshot(client: RestClient, futures_ticker: str) -> ApiResponse:
    return client.get(f"/v3/snapshot/futures/{futures_ticker}")


def get_last_trade(client: RestClient, futures_ticker: str) -> ApiResponse:
    return client.get(f"/v2/last/trade/{futures_ticker}")

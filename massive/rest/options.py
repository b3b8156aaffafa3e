"""Options contract endpoints."""

from __future__ import annotations

from typing import Any

from .client import ApiResponse, RestClient
from .query import AGGREGATE_OPTIONS, PREVIOUS_CLOSE_OPTIONS, TICKER_OPTIONS, aggregates_path, build_query

LIST_CONTRACT_OPTIONS = ("underlying_ticker", "expiration_date", "strike_price", "contract_type", "limit")
CHAIN_OPTIONS = ("strike_price", "expiration_date", "contract_type")


def get_contract(client: RestClient, options_ticker: str, **options: Any) -> ApiResponse:
    """Get details for an options contract such as ``O:AAPL230616C00150000``."""

    return client.get(f"/v3/reference/options/contracts/{options_ticker}", build_query(options, TICKER_OPTIONS))


def list_contracts(client: RestClient, **options: Any) -> ApiResponse:
    return client.get("/v3/reference/options/contracts", build_query(options, LIST_CONTRACT_OPTIONS))


def get_aggregates(
    client: RestClient,
    options_ticker: str,
    multiplier: int,
    timespan: str,
    from_: str,
    to: str,
    **options: Any,
) -> ApiResponse:
    path = aggregates_path(options_ticker, multiplier, timespan, from_, to)
    return client.get(path, build_query(options, AGGREGATE_OPTIONS))


def get_previous_close(client: RestClient, options_ticker: str, **options: Any) -> ApiResponse:
    return client.get(f"/v2/aggs/ticker/{options_ticker}/prev", build_query(options, PREVIOUS_CLOSE_OPTIONS))


def get_snapshot(client: RestClient, options_ticker: str) -> ApiResponse:
    return client.get(f"/v3/snapshot/options/{options_ticker}")


def get_option_chain(client: RestClient, underlying_ticker: str, **options: Any) -> ApiResponse:
    """Get the snapshot of every contract for an underlying ticker."""

    return client.get(f"/v3/snapshot/options/{underlying_ticker}", build_query(options, CHAIN_OPTIONS))


def get_last_trade(client: RestClient, options_ticker: str) -> ApiResponse:
    return client.get(f"/v2/last/trade/{options_ticker}")

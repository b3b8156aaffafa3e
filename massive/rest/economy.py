"""Economic indicator endpoints."""

from __future__ import annotations

from typing import Any

from .client import ApiResponse, RestClient
from .query import build_query

RANGE_OPTIONS = ("date", "start_date", "end_date")


def get_treasury_yields(client: RestClient, **options: Any) -> ApiResponse:
    return client.get("/v1/indicators/treasury/yields", build_query(options, ("date", "yield_curve")))


def get_inflation_data(client: RestClient, indicator: str, **options: Any) -> ApiResponse:
    return client.get(f"/v1/indicators/inflation/{indicator}", build_query(options, RANGE_OPTIONS))


def get_inflation_expectations(client: RestClient, **options: Any) -> ApiResponse:
    return client.get("/v1/indicators/inflation/expectations", build_query(options, RANGE_OPTIONS))

"""Allow-list filtering of caller options into query parameters."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping


def build_query(options: Mapping[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep only allowed, non-``None`` options, preserving caller order."""

    permitted = set(allowed)
    query: Dict[str, Any] = {}
    for key, value in options.items():
        if key not in permitted or value is None:
            continue
        # the API expects lowercase booleans
        query[key] = ("true" if value else "false") if isinstance(value, bool) else value
    return query


AGGREGATE_OPTIONS = ("adjusted", "sort", "limit")
PREVIOUS_CLOSE_OPTIONS = ("adjusted",)
TICKER_OPTIONS = ("date",)
LIST_OPTIONS = ("limit", "sort", "order")


def aggregates_path(ticker: str, multiplier: int, timespan: str, from_: str, to: str) -> str:
    return f"/v2/aggs/ticker/{ticker}/range/{multiplier}/{timespan}/{from_}/{to}"


__all__ = [
    "build_query",
    "aggregates_path",
    "AGGREGATE_OPTIONS",
    "PREVIOUS_CLOSE_OPTIONS",
    "TICKER_OPTIONS",
    "LIST_OPTIONS",
]

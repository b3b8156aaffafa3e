"""REST endpoint wrappers grouped by asset class."""

from . import crypto, economy, forex, futures, indices, options, stocks
from .client import ApiResponse, RestClient
from .query import build_query

__all__ = [
    "ApiResponse",
    "RestClient",
    "build_query",
    "crypto",
    "economy",
    "forex",
    "futures",
    "indices",
    "options",
    "stocks",
]

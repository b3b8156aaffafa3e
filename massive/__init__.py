"""Python SDK for the Massive financial market data API.

Usage::

    import massive
    from massive.rest import stocks

    client = massive.client(api_key="...")
    response = stocks.get_ticker(client, "AAPL")
    print(response.body["results"]["name"])
"""

from typing import Any, Optional

from .errors import (
    ConfigurationError,
    DecompressionError,
    FlatFilesError,
    MassiveError,
    RequestError,
    StreamTimeoutError,
)
from .flatfiles import FlatFilesClient
from .infra.config import MassiveConfig, load_config
from .rest.client import ApiResponse, RestClient
from .stream import BaseStreamHandler, StreamHandler, StreamSession

__version__ = "0.1.0"


def client(api_key: Optional[str] = None, config: Optional[MassiveConfig] = None, **kwargs: Any) -> RestClient:
    """Create a REST client, either from an explicit key or a loaded config."""

    if config is not None:
        return RestClient.from_config(config, **kwargs)
    return RestClient(api_key=api_key, **kwargs)


__all__ = [
    "client",
    "ApiResponse",
    "RestClient",
    "FlatFilesClient",
    "MassiveConfig",
    "load_config",
    "BaseStreamHandler",
    "StreamHandler",
    "StreamSession",
    "MassiveError",
    "ConfigurationError",
    "RequestError",
    "FlatFilesError",
    "DecompressionError",
    "StreamTimeoutError",
]

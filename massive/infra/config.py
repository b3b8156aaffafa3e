"""Config loading utilities for REST clients, stream sessions and flat files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_BASE_URL = "https://api.massive.com"
DEFAULT_BUCKET = "flatfiles.massive.com"
DEFAULT_REGION = "us-east-1"


@dataclass
class BackoffConfig:
    """Configuration for reconnection backoff."""

    initial: float = 1.0
    maximum: float = 60.0
    factor: float = 2.0
    jitter: float = 0.25


@dataclass
class StreamConfig:
    realtime: bool = False
    url: Optional[str] = None
    reconnect: bool = True
    query_timeout: float = 5.0
    backoff: BackoffConfig = field(default_factory=BackoffConfig)


@dataclass
class FlatFilesConfig:
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: str = DEFAULT_REGION
    bucket: str = DEFAULT_BUCKET
    endpoint_url: Optional[str] = None


@dataclass
class MassiveConfig:
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    stream: StreamConfig = field(default_factory=StreamConfig)
    flat_files: FlatFilesConfig = field(default_factory=FlatFilesConfig)


def _backoff_from_config(raw: Mapping[str, Any]) -> BackoffConfig:
    return BackoffConfig(
        initial=float(raw.get("initial", BackoffConfig.initial)),
        maximum=float(raw.get("maximum", BackoffConfig.maximum)),
        factor=float(raw.get("factor", BackoffConfig.factor)),
        jitter=float(raw.get("jitter", BackoffConfig.jitter)),
    )


def config_from_dict(raw: Mapping[str, Any]) -> MassiveConfig:
    """Build a :class:`MassiveConfig` from a parsed mapping."""

    stream = raw.get("stream") or {}
    flat_files = raw.get("flat_files") or {}

    return MassiveConfig(
        api_key=raw.get("api_key"),
        base_url=raw.get("base_url", DEFAULT_BASE_URL),
        timeout=float(raw.get("timeout", 30.0)),
        stream=StreamConfig(
            realtime=bool(stream.get("realtime", False)),
            url=stream.get("url"),
            reconnect=bool(stream.get("reconnect", True)),
            query_timeout=float(stream.get("query_timeout", 5.0)),
            backoff=_backoff_from_config(stream.get("backoff") or {}),
        ),
        flat_files=FlatFilesConfig(
            access_key_id=flat_files.get("access_key_id"),
            secret_access_key=flat_files.get("secret_access_key"),
            region=flat_files.get("region", DEFAULT_REGION),
            bucket=flat_files.get("bucket", DEFAULT_BUCKET),
            endpoint_url=flat_files.get("endpoint_url"),
        ),
    )


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> MassiveConfig:
    """Build a configuration purely from ``MASSIVE_*`` environment variables."""

    env = os.environ if environ is None else environ
    return MassiveConfig(
        api_key=env.get("MASSIVE_API_KEY"),
        base_url=env.get("MASSIVE_BASE_URL", DEFAULT_BASE_URL),
        flat_files=FlatFilesConfig(
            access_key_id=env.get("MASSIVE_S3_ACCESS_KEY_ID"),
            secret_access_key=env.get("MASSIVE_S3_SECRET_ACCESS_KEY"),
            region=env.get("MASSIVE_S3_REGION", DEFAULT_REGION),
            bucket=env.get("MASSIVE_S3_BUCKET", DEFAULT_BUCKET),
            endpoint_url=env.get("MASSIVE_S3_ENDPOINT_URL"),
        ),
    )


def load_config(path: str | Path, environ: Optional[Mapping[str, str]] = None) -> MassiveConfig:
    """Load configuration from YAML, falling back to the environment for secrets.

    A missing file yields the defaults. Credentials left empty in the file are
    filled from the matching ``MASSIVE_*`` variables.
    """

    resolved = Path(path).expanduser().resolve()
    raw: Dict[str, Any] = {}
    if resolved.exists():
        with resolved.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    else:
        logging.getLogger(__name__).warning("Config file %s not found, using defaults", resolved)

    config = config_from_dict(raw)
    env_config = config_from_env(environ)

    if not config.api_key:
        config.api_key = env_config.api_key
    if not config.flat_files.access_key_id:
        config.flat_files.access_key_id = env_config.flat_files.access_key_id
    if not config.flat_files.secret_access_key:
        config.flat_files.secret_access_key = env_config.flat_files.secret_access_key
    return config


__all__ = [
    "BackoffConfig",
    "StreamConfig",
    "FlatFilesConfig",
    "MassiveConfig",
    "config_from_dict",
    "config_from_env",
    "load_config",
    "DEFAULT_BASE_URL",
    "DEFAULT_BUCKET",
    "DEFAULT_REGION",
]

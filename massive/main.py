"""Command line entry point for streaming, flat-file listing and raw REST calls."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .flatfiles import FlatFilesClient
from .infra.config import MassiveConfig, load_config
from .infra.logging import configure_logging
from .infra.metrics import MetricsSink
from .rest.client import RestClient
from .stream.session import StreamSession

DEFAULT_CONFIG_PATH = Path(os.getenv("MASSIVE_CONFIG", "config/massive.yaml"))


class LoggingStreamHandler:
    """Logs every market event and resubscribes after each handshake."""

    def __init__(self, channels: Sequence[str], logger: Optional[logging.Logger] = None) -> None:
        self.channels = list(channels)
        self.session: Optional[StreamSession] = None
        self.logger = logger or logging.getLogger("massive.stream")

    def on_connect(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if self.session is not None and self.channels:
            self.session.subscribe(self.channels)
        return {**state, "connects": state.get("connects", 0) + 1}

    def on_message(self, message: Dict[str, Any], state: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.info("market event", extra={"event": "market_event", "data": message})
        return {**state, "messages": state.get("messages", 0) + 1}

    def on_disconnect(self, reason: Any, state: Dict[str, Any]) -> None:
        self.logger.warning("Stream disconnected: %s", reason, extra={"event": "disconnect"})


async def run_stream(config: MassiveConfig, channels: Sequence[str]) -> None:
    """Stream the given channels until SIGINT/SIGTERM."""

    logger = logging.getLogger("massive.stream")
    handler = LoggingStreamHandler(channels, logger=logger)
    metrics = MetricsSink()
    session = StreamSession.from_config(config, handler, metrics_callback=metrics)
    handler.session = session

    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            asyncio.get_running_loop().add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows/limited environments
            pass

    await session.start()
    stopped = asyncio.create_task(stop_event.wait())
    failed = asyncio.create_task(session.wait_closed())
    try:
        await asyncio.wait({stopped, failed}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopped.cancel()
        await session.close()
        logger.info("Stream finished", extra={"event": "stream_summary", **metrics.export()})
    # re-raises a handler failure that stopped the session
    await failed


def list_flat_files(config: MassiveConfig, args: argparse.Namespace) -> List[Dict[str, Any]]:
    client = FlatFilesClient(config.flat_files)
    files = client.list_files(
        asset_class=args.asset_class,
        data_type=args.data_type,
        date=args.date,
        prefix=args.prefix,
        max_keys=args.max_keys,
    )
    return [{"key": info.key, "size": info.size} for info in files]


def _parse_params(pairs: Sequence[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Expected key=value, got {pair!r}")
        params[key] = value
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="massive", description="Massive market data client")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    # --config is also accepted after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=argparse.SUPPRESS)
    commands = parser.add_subparsers(dest="command", required=True)

    stream = commands.add_parser("stream", parents=[common], help="Stream channels such as AM.AAPL or T.*")
    stream.add_argument("channels", nargs="+")
    stream.add_argument("--realtime", action="store_true", help="Use the realtime feed instead of the delayed one")
    stream.add_argument("--url", help="Override the WebSocket address")

    files = commands.add_parser("files", parents=[common], help="List flat files")
    files.add_argument("--asset-class")
    files.add_argument("--data-type")
    files.add_argument("--date", help="YYYY-MM-DD")
    files.add_argument("--prefix")
    files.add_argument("--max-keys", type=int, default=1000)

    get = commands.add_parser(
        "get", parents=[common], help="Issue a raw GET, e.g. /v3/reference/tickers/AAPL date=2023-01-01"
    )
    get.add_argument("path")
    get.add_argument("params", nargs="*")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging()
    config = load_config(args.config)

    if args.command == "stream":
        if args.realtime:
            config.stream.realtime = True
        if args.url:
            config.stream.url = args.url
        asyncio.run(run_stream(config, args.channels))
    elif args.command == "files":
        json.dump(list_flat_files(config, args), sys.stdout, indent=2)
        sys.stdout.write("\n")
    elif args.command == "get":
        with RestClient.from_config(config) as client:
            response = client.get(args.path, _parse_params(args.params))
        json.dump({"status": response.status, "body": response.body}, sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()

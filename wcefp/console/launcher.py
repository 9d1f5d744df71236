"""Command line entry point: watch realtime updates or filter a catalog export."""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Sequence

from urllib import error, request

from wcefp.client.catalog import CatalogView, card_from_mapping
from wcefp.client.config import load_settings
from wcefp.client.logging import get_logger, setup_logging
from wcefp.client.realtime import RealtimeClient
from wcefp.client.scheduling import ThreadingScheduler
from wcefp.client.state import build_initial_filters
from wcefp.client.transport import HttpAjaxTransport
from wcefp.sandbox.api import AJAX_PATH
from wcefp.sandbox.config import load_settings as load_sandbox_settings
from wcefp.sandbox.security import create_nonce

logger = get_logger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[2]

WATCHED_EVENTS = (
    "connected",
    "disconnected",
    "connection_error",
    "max_reconnects_reached",
    "booking_update",
    "availability_update",
    "notification",
    "update",
)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="wcefp", description="WCEventsFP client toolkit")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="print realtime updates as JSON lines")
    watch.add_argument("--server", default="http://127.0.0.1:8000")
    watch.add_argument("--nonce", default=None)
    watch.add_argument("--start-sandbox", action="store_true")
    watch.add_argument("--duration", type=float, default=60.0)

    catalog = subparsers.add_parser("catalog", help="filter and sort experiences from a JSON file")
    catalog.add_argument("file", type=Path)
    catalog.add_argument("--search", default="")
    catalog.add_argument("--category", default="")
    catalog.add_argument("--price", default="", choices=["", "0-50", "50-100", "100-200", "200+"])
    catalog.add_argument("--sort", default="")
    return parser.parse_args(argv)


def wait_for_server(server_url: str, timeout_s: float = 8.0) -> bool:
    start = time.time()
    while time.time() - start < timeout_s:
        try:
            with request.urlopen(f"{server_url}{AJAX_PATH}", timeout=0.5) as response:
                if int(response.status) < 500:
                    return True
        except error.HTTPError as exc:
            # admin-ajax answers a bare GET with 400 "0"
            if exc.code < 500:
                return True
        except (error.URLError, TimeoutError):
            pass
        time.sleep(0.2)
    return False


def maybe_start_sandbox(server_url: str) -> subprocess.Popen[str] | None:
    env = os.environ.copy()
    host_port = server_url.removeprefix("http://")
    host, port = host_port.split(":", maxsplit=1)
    command = [
        sys.executable,
        "-m",
        "uvicorn",
        "wcefp.sandbox.api:app",
        "--host",
        host,
        "--port",
        port,
    ]
    process = subprocess.Popen(command, cwd=str(ROOT_DIR), env=env)
    if wait_for_server(server_url):
        return process
    process.terminate()
    return None


def _json_line(event: str, data: Any) -> str:
    if hasattr(data, "model_dump"):
        data = data.model_dump(exclude_none=True)
    return json.dumps({"event": event, "data": data}, default=str, ensure_ascii=False)


def run_watch(args: argparse.Namespace) -> int:
    settings = load_settings()
    sandbox_process: subprocess.Popen[str] | None = None
    if args.start_sandbox:
        sandbox_process = maybe_start_sandbox(args.server)
        if sandbox_process is None:
            print("Impossibile avviare il sandbox.", file=sys.stderr)
            return 1
    elif not wait_for_server(args.server):
        print("Server non raggiungibile. Usa --start-sandbox o avvia uvicorn manualmente.", file=sys.stderr)
        return 1

    nonce = args.nonce or settings.nonce
    if not nonce and args.start_sandbox:
        nonce = create_nonce(load_sandbox_settings().secret)

    scheduler = ThreadingScheduler()
    transport = HttpAjaxTransport(ajax_url=f"{args.server}{AJAX_PATH}", nonce=nonce, timeout=settings.request_timeout)
    client = RealtimeClient.from_settings(transport, settings, scheduler=scheduler)
    for event in WATCHED_EVENTS:
        client.on(event, lambda data, event=event: print(_json_line(event, data), flush=True))

    try:
        client.connect()
        time.sleep(args.duration)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        client.disconnect()
        scheduler.cancel_all()
        transport.close()
        if sandbox_process is not None:
            sandbox_process.terminate()
    return 0


def run_catalog(args: argparse.Namespace) -> int:
    try:
        payload = json.loads(args.file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Impossibile leggere {args.file}: {exc}", file=sys.stderr)
        return 1
    if not isinstance(payload, list):
        print(f"{args.file} deve contenere una lista di esperienze", file=sys.stderr)
        return 1

    cards = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            print(f"Esperienza non valida in posizione {index}: atteso un oggetto", file=sys.stderr)
            return 1
        try:
            cards.append(card_from_mapping(item))
        except (TypeError, ValueError) as exc:
            print(f"Esperienza non valida in posizione {index} ({item.get('title', '')}): {exc}", file=sys.stderr)
            return 1

    view = CatalogView(cards, filters=build_initial_filters())
    if args.search:
        view.set_filter("search", args.search)
    if args.category:
        view.set_filter("category", args.category)
    if args.price:
        view.set_filter("price", args.price)
    render = view.set_sort(args.sort) if args.sort else view.render()

    print(render.result_count_text)
    if render.is_empty:
        print(render.empty_message)
    for card in render.cards:
        print(card.title)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(load_settings().log_level)
    if args.command == "watch":
        return run_watch(args)
    return run_catalog(args)


if __name__ == "__main__":
    raise SystemExit(main())

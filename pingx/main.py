"""Command line driver for pingx."""

from __future__ import annotations

import argparse
import threading
from typing import Optional, Sequence

from ._console import configure_logging, console, logger
from ._exceptions import ResolveError
from ._models import ProbeResult
from ._pinger import DEFAULT_INTERVAL, Pinger
from ._reporter import InterruptReporter
from ._session import DEFAULT_PAYLOAD_SIZE, DEFAULT_TIMEOUT, DEFAULT_TTL, ProbeSession
from ._stats import StatsSnapshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pingx",
        description="Send ICMP echo requests and report latency and payload loss.",
    )
    parser.add_argument("target", help="host name or IP address to ping")
    parser.add_argument(
        "-s",
        "--size",
        type=int,
        default=DEFAULT_PAYLOAD_SIZE,
        help="size (in bytes) of the echo payload (default: %(default)s)",
    )
    parser.add_argument(
        "-t",
        "--ttl",
        type=int,
        default=DEFAULT_TTL,
        help="time to live, number of L3 hops before the packet dies (default: %(default)s)",
    )
    parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=None,
        help="stop after COUNT probes (default: run until interrupted)",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL,
        help="seconds to wait between probes (default: %(default)s)",
    )
    parser.add_argument(
        "-W",
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="seconds to wait for each reply (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    parser.add_argument(
        "--tui", action="store_true", help="open the interactive terminal UI"
    )
    return parser


def print_result(result: ProbeResult) -> None:
    console.print(result, markup=False, highlight=False)


def print_report(snapshot: StatsSnapshot) -> None:
    console.print()
    console.print(snapshot, markup=False, highlight=False)


def _drive(pinger: Pinger, reporter: InterruptReporter) -> None:
    try:
        pinger.run()
    finally:
        reporter.request_report()


def run(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING")
    if args.count is not None and args.count < 1:
        parser.error(f"count must be >= 1, got {args.count}")

    if args.tui:
        from .tui import run as run_tui

        run_tui(
            target=args.target,
            payload_size=args.size,
            ttl=args.ttl,
            interval=args.interval,
            timeout=args.timeout,
            count=args.count,
        )
        return 0

    try:
        session = ProbeSession(
            args.target,
            payload_size=args.size,
            timeout=args.timeout,
            default_ttl=args.ttl,
        )
        pinger = Pinger(
            session,
            interval=args.interval,
            count=args.count,
            on_result=print_result,
        )
    except ResolveError as exc:
        logger.error(str(exc))
        return 1
    except ValueError as exc:
        parser.error(str(exc))

    console.print(f"PING {args.target} ({session.address})", markup=False)

    reporter = InterruptReporter(
        session.statistics, print_report, on_finished=pinger.stop.set
    )
    reporter.install()
    reporter.start()
    worker = threading.Thread(
        target=_drive, args=(pinger, reporter), name="pingx-probe", daemon=True
    )
    worker.start()
    try:
        reporter.wait()
    finally:
        reporter.restore()
    return 0


if __name__ == "__main__":
    raise SystemExit(run())

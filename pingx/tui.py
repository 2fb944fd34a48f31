"""Interactive Textual TUI for pingx."""

from __future__ import annotations

import math
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Footer, Input, Label, Static

from ._exceptions import ResolveError
from ._models import ProbeResult, ProbeStatus
from ._pinger import DEFAULT_INTERVAL, Pinger
from ._session import DEFAULT_PAYLOAD_SIZE, DEFAULT_TIMEOUT, DEFAULT_TTL, ProbeSession
from ._stats import StatsSnapshot

COLUMNS = ("Seq", "Reply IP", "Bytes", "Loss%", "RTT (ms)", "Status")


def _format_ms(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return "-"
    return f"{value:.2f}"


def _reset_table(table: DataTable, columns: tuple[str, ...]) -> None:
    """Clear table contents while ensuring columns remain present."""

    table.clear()
    if not getattr(table, "columns", None):
        table.add_columns(*columns)


def result_row(result: ProbeResult) -> tuple[str, ...]:
    if result.response is not None:
        return (
            str(result.sequence),
            result.response.addr,
            str(result.response.received_bytes),
            f"{result.response.loss_percent:.1f}",
            _format_ms(result.response.rtt),
            result.status.value,
        )
    source = result.received_packet.source if result.received_packet else "-"
    status = result.status.value
    if result.status is not ProbeStatus.TIMEOUT and result.error:
        status = f"{status}: {result.error}"
    return (str(result.sequence), source, "-", "-", _format_ms(result.rtt), status)


def summary_text(snapshot: StatsSnapshot) -> str:
    return (
        f"sent {snapshot.sent}  received {snapshot.received}  "
        f"loss {snapshot.loss_percent:.0f}%  "
        f"min/avg/max {_format_ms(snapshot.rtt_min)}/"
        f"{_format_ms(snapshot.rtt_avg)}/{_format_ms(snapshot.rtt_max)} ms"
    )


class PingView(Vertical):
    """Continuous ping form, per-probe table and running summary."""

    def __init__(
        self,
        *,
        target: str = "8.8.8.8",
        payload_size: int = DEFAULT_PAYLOAD_SIZE,
        ttl: int = DEFAULT_TTL,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        count: Optional[int] = None,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(id=id)
        self._defaults = (target, payload_size, ttl, interval, timeout)
        self._count = count
        self._pinger: Optional[Pinger] = None
        self._session: Optional[ProbeSession] = None

    def compose(self) -> ComposeResult:
        target, payload_size, ttl, interval, timeout = self._defaults
        with Vertical(id="ping-form"):
            yield Label(" Target")
            yield Input(placeholder="8.8.8.8", id="ping-target", value=target)
            with Horizontal(id="ping-options"):
                with Vertical():
                    yield Label("Size")
                    yield Input(value=str(payload_size), id="ping-size", compact=True)
                with Vertical():
                    yield Label("TTL")
                    yield Input(value=str(ttl), id="ping-ttl", compact=True)
                with Vertical():
                    yield Label("Interval (s)")
                    yield Input(value=str(interval), id="ping-interval", compact=True)
                with Vertical():
                    yield Label("Timeout (s)")
                    yield Input(value=str(timeout), id="ping-timeout", compact=True)
            with Horizontal():
                yield Button("Start", id="ping-start", flat=True)
                yield Button("Stop", id="ping-stop", flat=True)
        yield Static("", id="ping-summary")
        table = DataTable(id="ping-table")
        table.add_columns(*COLUMNS)
        yield table

    @on(Button.Pressed, "#ping-start")
    def start_ping(self) -> None:
        if self._pinger is not None:
            self.app.bell()
            return
        target = self.query_one("#ping-target", Input).value
        if not target:
            self.notify("Please enter a target address.")
            return
        try:
            payload_size = int(self.query_one("#ping-size", Input).value)
            ttl = int(self.query_one("#ping-ttl", Input).value)
            interval = float(self.query_one("#ping-interval", Input).value)
            timeout = float(self.query_one("#ping-timeout", Input).value)
            session = ProbeSession(
                target, payload_size=payload_size, timeout=timeout, default_ttl=ttl
            )
        except (ResolveError, ValueError) as exc:
            self.notify(f"Error: {exc}")
            return

        _reset_table(self.query_one("#ping-table", DataTable), COLUMNS)
        self._session = session
        self._pinger = Pinger(
            session,
            interval=interval,
            count=self._count,
            on_result=lambda result: self._call_ui(self.add_result, result),
        )
        self.perform_ping(self._pinger)

    @on(Button.Pressed, "#ping-stop")
    def stop_ping(self) -> None:
        if self._pinger is not None:
            self._pinger.stop.set()

    @work(thread=True, exclusive=True)
    def perform_ping(self, pinger: Pinger) -> None:
        try:
            pinger.run()
        finally:
            self._call_ui(self._clear_pinger)

    def _call_ui(self, callback, *args) -> None:
        try:
            self.app.call_from_thread(callback, *args)
        except RuntimeError:
            # the app exited while the last probe was still in flight
            self._pinger = None

    def _clear_pinger(self) -> None:
        self._pinger = None

    def add_result(self, result: ProbeResult) -> None:
        table = self.query_one("#ping-table", DataTable)
        table.add_row(*result_row(result))
        table.move_cursor(row=table.row_count - 1, scroll=True)
        if self._session is not None:
            self.query_one("#ping-summary", Static).update(
                summary_text(self._session.statistics.snapshot())
            )


class PingxApp(App):
    """Textual application hosting the ping view."""

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, **options) -> None:
        super().__init__()
        self._options = options

    def compose(self) -> ComposeResult:
        yield PingView(id="ping", **self._options)
        yield Footer()

    def action_quit(self) -> None:
        self.query_one(PingView).stop_ping()
        self.exit()


def run(**options) -> None:
    PingxApp(**options).run()


if __name__ == "__main__":
    run()

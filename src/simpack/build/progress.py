"""Artifact progress reporting for the write stage.

Artifact writers run concurrently in worker threads and report through the
ProgressCallback protocol. ArtifactProgressDisplay renders a Rich live table
with one line per output target:

    example-sim_en_phet.html        Writing   ⠹
    example-sim_all_phet_debug.html Done      ✓ 0.4s  1.2 MB

Thread-safe: worker threads call on_artifact() while the display renders in
the main thread.
"""

import threading
import time
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

_SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")


class ArtifactState(Enum):
    """Progress state of one output target."""

    WAITING = "waiting"
    WRITING = "writing"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@runtime_checkable
class ProgressCallback(Protocol):
    """Protocol for receiving artifact progress updates."""

    def register(self, name: str) -> None:
        """Called once per output target before any writer starts.

        Args:
            name: Output target filename (relative to the build directory)
        """
        ...

    def on_artifact(self, name: str, state: ArtifactState, detail: str) -> None:
        """Called when an output target changes state.

        Args:
            name: Output target filename (relative to the build directory)
            state: New state
            detail: Human-readable detail (size, skip reason, error)
        """
        ...


class NullCallback:
    """No-op callback for tests and non-interactive use."""

    def register(self, name: str) -> None:
        pass

    def on_artifact(self, name: str, state: ArtifactState, detail: str) -> None:
        pass


class _ArtifactDisplayState:
    __slots__ = ("name", "state", "detail", "elapsed", "start_time")

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = ArtifactState.WAITING
        self.detail = ""
        self.elapsed = 0.0
        self.start_time: float | None = None


class ArtifactProgressDisplay:
    """Live table of output targets using Rich.

    Args:
        console: Rich Console instance for rendering. If None, creates a new one.
        title: Header line (e.g. "example-sim (phet)").
        refresh_per_second: Display refresh rate.
    """

    def __init__(self, console: Console | None, title: str, refresh_per_second: int = 10) -> None:
        self._console = console if console is not None else Console()
        self._title = title
        self._refresh_per_second = refresh_per_second
        self._states: dict[str, _ArtifactDisplayState] = {}
        self._order: list[str] = []
        self._lock = threading.Lock()
        self._live: Live | None = None

    def register(self, name: str) -> None:
        """Register an output target before writing starts."""
        with self._lock:
            if name not in self._states:
                self._states[name] = _ArtifactDisplayState(name)
                self._order.append(name)

    def on_artifact(self, name: str, state: ArtifactState, detail: str) -> None:
        with self._lock:
            entry = self._states.get(name)
            if entry is None:
                entry = _ArtifactDisplayState(name)
                self._states[name] = entry
                self._order.append(name)

            if entry.state == ArtifactState.WAITING and state != ArtifactState.WAITING:
                entry.start_time = time.monotonic()
            entry.state = state
            entry.detail = detail
            if entry.start_time is not None:
                entry.elapsed = time.monotonic() - entry.start_time

        if self._live is not None:
            self._live.update(self._render_display())

    def start(self) -> None:
        self._live = Live(
            self._render_display(),
            console=self._console,
            refresh_per_second=self._refresh_per_second,
            transient=False,
        )
        self._live.start()

    def stop(self) -> None:
        if self._live is not None:
            self._live.update(self._render_display())
            self._live.stop()
            self._live = None

    def _render_display(self) -> Group:
        header = Text(f"\nWriting artifacts for {self._title}...\n", style="bold")
        return Group(header, self._render_table(), self._render_footer())

    def _render_table(self) -> Table:
        table = Table(show_header=False, show_edge=False, show_lines=False, box=None, padding=(0, 1), expand=False)
        table.add_column("Artifact", style="bold", no_wrap=True, min_width=36)
        table.add_column("State", no_wrap=True, min_width=9)
        table.add_column("Status", no_wrap=True, min_width=24)

        with self._lock:
            for name in self._order:
                entry = self._states[name]
                table.add_row(self._format_name(entry), self._format_state(entry), self._format_status(entry))
        return table

    def _render_footer(self) -> Text:
        with self._lock:
            total = len(self._states)
            counts = {state: 0 for state in ArtifactState}
            for entry in self._states.values():
                counts[entry.state] += 1

        parts = [f"{total} artifacts"]
        for state in (ArtifactState.WRITING, ArtifactState.DONE, ArtifactState.SKIPPED, ArtifactState.FAILED):
            if counts[state]:
                parts.append(f"{counts[state]} {state.value}")
        return Text(f"\n  {', '.join(parts)}", style="dim")

    def _format_name(self, entry: _ArtifactDisplayState) -> Text:
        styles = {
            ArtifactState.DONE: "green",
            ArtifactState.FAILED: "red",
            ArtifactState.WAITING: "dim",
            ArtifactState.SKIPPED: "dim",
        }
        return Text(entry.name, style=styles.get(entry.state, "bold cyan"))

    def _format_state(self, entry: _ArtifactDisplayState) -> Text:
        labels = {
            ArtifactState.WAITING: ("Waiting", "dim"),
            ArtifactState.WRITING: ("Writing", "blue"),
            ArtifactState.DONE: ("Done", "green"),
            ArtifactState.SKIPPED: ("Skipped", "yellow"),
            ArtifactState.FAILED: ("Failed", "red bold"),
        }
        label, style = labels[entry.state]
        return Text(label, style=style)

    def _format_status(self, entry: _ArtifactDisplayState) -> Text:
        if entry.state == ArtifactState.WRITING:
            spinner = _SPINNER_FRAMES[int(time.monotonic() * 8) % len(_SPINNER_FRAMES)]
            return Text(f"{spinner} {entry.detail}", style="blue")
        if entry.state == ArtifactState.DONE:
            return Text(f"✓ {entry.elapsed:.1f}s  {entry.detail}", style="green")
        if entry.state == ArtifactState.FAILED:
            return Text(f"✗ {entry.detail or 'Error'}", style="red")
        if entry.state == ArtifactState.SKIPPED:
            return Text(entry.detail, style="yellow")
        return Text("")

    def get_snapshot(self) -> list[dict[str, Any]]:
        """Current display states, for testing."""
        with self._lock:
            return [
                {"name": name, "state": self._states[name].state, "detail": self._states[name].detail}
                for name in self._order
            ]

    def __enter__(self) -> "ArtifactProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

"""Terminal output helpers shared by the commands."""

import sys
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

import click


def format_timestamp(ts: str | None, short: bool = False) -> str:
    """Render an ISO 8601 timestamp from the service in local time.

    ``short`` drops the year and seconds for table columns. Unparseable
    values are shown as received, cut to the width of a full timestamp.
    """
    if not ts:
        return ""
    try:
        moment = datetime.fromisoformat(ts.replace("Z", "+00:00")).astimezone()
    except ValueError:
        return ts[:16]
    return moment.strftime("%b %d %H:%M" if short else "%Y-%m-%d %H:%M:%S")


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s" if minutes else f"{secs}s"


def format_size(size_bytes: int) -> str:
    """Archive sizes: KB below 100 KB, MB above."""
    if size_bytes >= 100 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / 1024:.0f} KB"


@dataclass
class Step:
    """Handle for a running step; set ``detail`` to show it when the step ends."""

    label: str
    detail: str = ""


class StepProgress:
    """Numbered progress lines on stderr for a fixed sequence of steps.

    Each step prints one line, ``[2/3] Publishing @jane/my-app ✓ (3s)``. On
    a terminal the line shows a spinner while the step runs; elsewhere (CI
    logs, tests) only the finished line is written.

    Example::

        progress = StepProgress(total=3)
        with progress.step("Packaging project") as step:
            step.detail = "1.2 MB"
    """

    FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
    FRAME_INTERVAL = 0.08  # seconds

    def __init__(self, total: int, indent: int = 2) -> None:
        self.total = total
        self.completed = 0
        self._prefix = " " * indent

    @contextmanager
    def step(self, text: str) -> Iterator[Step]:
        """Run one step. A step that raises is marked failed and re-raised."""
        self.completed += 1
        step = Step(label=f"[{self.completed}/{self.total}] {text}")
        started = time.monotonic()
        stop = threading.Event()
        spinner = None
        if sys.stderr.isatty():
            spinner = threading.Thread(
                target=self._spin, args=(step.label, stop), daemon=True
            )
            spinner.start()

        ok = False
        try:
            yield step
            ok = True
        finally:
            stop.set()
            if spinner is not None:
                spinner.join(timeout=0.2)
            self._finish(step, ok, time.monotonic() - started)

    def _spin(self, label: str, stop: threading.Event) -> None:
        frame = 0
        while not stop.wait(self.FRAME_INTERVAL):
            glyph = self.FRAMES[frame % len(self.FRAMES)]
            sys.stderr.write(f"\r\033[K{self._prefix}{glyph} {label}")
            sys.stderr.flush()
            frame += 1

    def _finish(self, step: Step, ok: bool, elapsed: float) -> None:
        mark = click.style("✓", fg="green") if ok else click.style("✗", fg="red")
        details = [d for d in (step.detail, format_duration(elapsed)) if d]
        line = f"{self._prefix}{step.label} {mark} ({', '.join(details)})"
        if sys.stderr.isatty():
            line = "\r\033[K" + line
        click.echo(line, err=True)

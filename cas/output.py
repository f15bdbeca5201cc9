"""Output sinks for scaffolding progress.

The orchestrator reports every stage through an ``OutputSink`` instead of
writing to the console itself, so it can run headless (tests, library use)
or behind the Rich console used by the CLI.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape
from rich.status import Status

from cas.utils import console as default_console


class OutputSink(Protocol):
    """Receives progress events from a scaffolding run."""

    def action(self, message: str) -> None:
        """A stage has started performing *message*."""

    def success(self, message: str) -> None:
        """The current stage finished."""

    def failure(self, message: str) -> None:
        """The current stage failed fatally."""

    def warning(self, message: str) -> None:
        """The current stage finished with a non-fatal problem."""

    def dry_run(self, message: str) -> None:
        """A stage would have performed *message* outside dry-run mode."""

    def info(self, message: str) -> None:
        """Informational note that is not tied to a stage."""


class NullSink:
    """Discards every event."""

    def action(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def failure(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def dry_run(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass


class ConsoleSink:
    """Renders progress on a Rich console with a spinner per stage."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console
        self._status: Status | None = None

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def action(self, message: str) -> None:
        self._stop()
        self._status = self.console.status(f"{escape(_capitalize(message))}...")
        self._status.start()

    def success(self, message: str) -> None:
        self._stop()
        self.console.print(f"  [green]+[/green] {escape(message)}")

    def failure(self, message: str) -> None:
        self._stop()
        self.console.print(f"  [red]x[/red] {escape(message)}")

    def warning(self, message: str) -> None:
        self._stop()
        self.console.print(f"  [yellow]![/yellow] {escape(message)}")

    def dry_run(self, message: str) -> None:
        self._stop()
        self.console.print(f"[yellow]{escape('[dry-run]')} Would {escape(message)}[/yellow]")

    def info(self, message: str) -> None:
        self._stop()
        self.console.print(f"  [dim]{escape(message)}[/dim]")


def _capitalize(message: str) -> str:
    return message[:1].upper() + message[1:]

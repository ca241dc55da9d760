"""Percentage-to-tick conversion and terminal progress rendering."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from convert_to_blocks.migration.models import MigrationOptions

TICK = 1


def required_ticks(progress: int, total: int) -> int:
    """Ticks owed for ``progress`` percent of ``total`` units, floored and bounded."""

    if total <= 0:
        return 0
    bounded = min(max(progress, 0), 100)
    return bounded * total // 100


def tick_increments(ticks_emitted: int, required: int) -> Iterator[int]:
    """Yield one unit increment per tick needed to reach ``required``."""

    for _ in range(max(0, required - ticks_emitted)):
        yield TICK


class ProgressView(Protocol):
    """Presentation effects the supervisor drives."""

    def handoff(self, token: str, options: MigrationOptions) -> None:
        """Show the resume token the external driver must open."""
        raise NotImplementedError

    def begin(self, total: int) -> None:
        """Render the cycle-start marker for a run of ``total`` units."""
        raise NotImplementedError

    def tick(self) -> None:
        raise NotImplementedError

    def finish(self) -> None:
        raise NotImplementedError


class RichProgressView:
    """Progress bar on the terminal, hand-off text through click."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self._progress: Progress | None = None
        self._task_id: int | None = None

    def handoff(self, token: str, options: MigrationOptions) -> None:
        click.echo("Migration started...")
        click.echo(f"Options: {options.summary()}")
        click.echo("Please open the following URL in a browser to start the migration agent.")
        click.echo("")
        click.echo(token)
        click.echo("")

    def begin(self, total: int) -> None:
        self._progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(f"Converting {total} Posts ...", total=total)

    def tick(self) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.advance(self._task_id, TICK)

    def finish(self) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
        self._task_id = None

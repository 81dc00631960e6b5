"""Per-file timing and progress display for the CLI."""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

console = Console()


def format_duration(seconds: float) -> str:
    """Format *seconds* as ``0.5s`` or ``1m 5s``.

    >>> format_duration(65.3)
    '1m 5s'
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"


@dataclass
class StepTiming:
    """Duration of one step, with details filled in by the caller."""

    name: str
    duration: float = 0.0
    details: str = ""


@dataclass
class TimingReport:
    steps: list[StepTiming] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(step.duration for step in self.steps)

    def print_summary(self) -> None:
        for step in self.steps:
            details = f" [dim]{escape(step.details)}[/]" if step.details else ""
            console.print(
                f"[green]✓[/] {escape(step.name)} "
                f"[dim]({format_duration(step.duration)})[/]{details}"
            )
        if len(self.steps) > 1:
            console.print(
                f"[bold]{len(self.steps)} steps in {format_duration(self.total)}[/]"
            )


@contextmanager
def timed_step(name: str, report: TimingReport | None = None) -> Iterator[StepTiming]:
    """Time the enclosed block and append it to *report*.

    The yielded :class:`StepTiming` lets the block attach details such as
    the number of chapters found. It is recorded even when the block raises.
    """

    step = StepTiming(name=name)
    start = time.perf_counter()
    try:
        yield step
    finally:
        step.duration = time.perf_counter() - start
        if report is not None:
            report.steps.append(step)


def track_files(paths: Sequence[Path], *, disable: bool = False) -> Iterator[Path]:
    """Yield *paths* one by one while showing a progress bar on a TTY."""

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        disable=disable or not sys.stdout.isatty(),
    ) as progress:
        task_id = progress.add_task("Normalising", total=len(paths))
        for path in paths:
            progress.update(task_id, description=f"Normalising {escape(path.name)}")
            yield path
            progress.advance(task_id)

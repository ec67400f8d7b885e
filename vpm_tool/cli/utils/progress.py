# vpm_tool/cli/utils/progress.py
"""Progress display utilities"""

from contextlib import contextmanager
from typing import Callable, Generator

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeRemainingColumn,
)


class ProgressManager:
    """Centralized progress management"""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    @contextmanager
    def fraction_progress(self, description: str) -> Generator[Callable[[float], None], None, None]:
        """Progress bar driven by a [0, 1] fraction callback

        Yields:
            Callback to pass as ``on_progress``
        """
        with Progress(
                SpinnerColumn(),
                TextColumn("[bold]{task.description}"),
                BarColumn(),
                "[progress.percentage]{task.percentage:>3.0f}%",
                TimeRemainingColumn(),
                console=self.console,
        ) as progress:
            task = progress.add_task(description, total=1.0)

            def update(fraction: float) -> None:
                progress.update(task, completed=fraction)

            yield update

"""
Rich console output: one aligned row per result plus a live progress bar.
"""

from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, Progress as ProgressBar, TaskID, TextColumn
from rich.text import Text

from ..fuzzing.models import FuzzResult, Progress
from .export_formats import ResultWriter

COLUMN_WIDTH = 13
SEPARATOR = "-" * 81
HEADER = ["Chars(-hh)", "Words(-hw)", "Lines(-hl)", "Header(-hr)", "Code(-hc)", "Payload"]


def status_style(status_code: int) -> str:
    if status_code >= 500:
        return "red"
    if status_code >= 400:
        return "yellow"
    if status_code >= 300:
        return "blue"
    return "green"


class ConsoleWriter(ResultWriter):
    """Writes results to the terminal as they arrive."""

    def __init__(self, console: Optional[Console] = None, show_progress: bool = True):
        self.console = console or Console()
        self.show_progress = show_progress
        self._progress_bar: Optional[ProgressBar] = None
        self._task_id: Optional[TaskID] = None

    def open(self) -> None:
        self.console.print(SEPARATOR, highlight=False)
        self.console.print(
            Text("".join(f"{name:<{COLUMN_WIDTH}}" for name in HEADER[:-1]) + HEADER[-1], style="bold")
        )
        self.console.print(SEPARATOR, highlight=False)

        if self.show_progress:
            self._progress_bar = ProgressBar(
                TextColumn("~{task.completed:.0f}/{task.fields[approx]}"),
                BarColumn(),
                TextColumn("({task.fields[percent]:>3}%)"),
                console=self.console,
                transient=True
            )
            self._task_id = self._progress_bar.add_task("requests", total=None, approx="?", percent=0)
            self._progress_bar.start()

    def write(self, result: FuzzResult) -> None:
        row = Text()
        for value in (result.content_length, result.word_count, result.line_count, result.header_size):
            row.append(f"{value:<{COLUMN_WIDTH}}")
        row.append(f"{result.status_code:<{COLUMN_WIDTH}}", style=status_style(result.status_code))
        row.append(result.display_payload)
        self.console.print(row, highlight=False)

    def write_progress(self, progress: Progress) -> None:
        if self._progress_bar is None or self._task_id is None:
            return
        self._progress_bar.update(
            self._task_id,
            total=progress.approx_requests,
            completed=progress.done_requests,
            approx=progress.approx_requests,
            percent=progress.percent
        )

    def close(self) -> None:
        # Transient bar: stopping clears the last progress line
        if self._progress_bar is not None:
            self._progress_bar.stop()
            self._progress_bar = None

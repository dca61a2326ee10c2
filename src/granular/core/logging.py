# src/granular/core/logging.py
"""Console logging with rich markup.

Messages go through the stdlib ``granular`` logger so applications (and
pytest's ``caplog``) can capture them; the default handler renders them on
a rich console.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import GranularConfig

console = Console(stderr=True)


def _style(style: str) -> Callable[[str], str]:
    return lambda text: f"[{style}]{text}[/{style}]"


color_palette: Dict[str, Callable[[str], str]] = {
    "entity": _style("bold cyan"),
    "table": _style("blue"),
    "column": _style("green"),
    "relation": _style("magenta"),
    "driver": _style("yellow"),
    "value": _style("white"),
}


class Logger:
    """Thin wrapper adding sections, timing and indentation to a stdlib logger."""

    def __init__(self, name: str = "granular", level: str = "WARNING"):
        self._logger = logging.getLogger(name)
        self._indent = 0
        if not self._logger.handlers:
            handler = RichHandler(
                console=console,
                markup=True,
                show_path=False,
                rich_tracebacks=True,
            )
            self._logger.addHandler(handler)
        self.set_level(level)

    def set_level(self, level: str) -> None:
        self._logger.setLevel(level.upper())

    def _fmt(self, message: str) -> str:
        return f"{'  ' * self._indent}{message}"

    def debug(self, message: str) -> None:
        self._logger.debug(self._fmt(message))

    def info(self, message: str) -> None:
        self._logger.info(self._fmt(message))

    def success(self, message: str) -> None:
        self._logger.info(self._fmt(f"[green]✓[/green] {message}"))

    def warn(self, message: str) -> None:
        self._logger.warning(self._fmt(message))

    def error(self, message: str) -> None:
        self._logger.error(self._fmt(message))

    def section(self, title: str) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            console.rule(f"[bold]{title}[/bold]")

    def table(self, headers: List[str], rows: List[List[object]], title: Optional[str] = None) -> None:
        if not self._logger.isEnabledFor(logging.INFO):
            return
        table = Table(title=title)
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(str(cell) for cell in row))
        console.print(table)

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._indent += 1
        try:
            yield
        finally:
            self._indent -= 1

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.debug(f"{label} took {(time.perf_counter() - start) * 1000:.2f}ms")


log = Logger(level=GranularConfig().log_level)

"""
CLI Output Formatting Module (SSOT)

This module provides consistent, ASCII-safe terminal output formatting.
Elevated PowerShell consoles on Windows can break UTF-8 encoding, so symbols
come from ConsoleStyle with ASCII fallbacks. Rendering goes through a rich
Console so tables line up and tests can capture output from a StringIO.

Usage:
    from mediadrive.cli_output import CLIOutput

    out = CLIOutput.detect()
    out.info("Storage group saved")
    out.warn("Drive not attached")
    out.error("Write failed!")
    out.section("STORAGE GROUPS")
    out.table(["#", "Drive"], [["1", "E:"]])
"""

import shutil
from typing import IO, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from mediadrive.constants import ConsoleStyle


class CLIOutput:
    """
    SSOT for consistent CLI output formatting.

    Features:
    - ASCII-safe mode for broken consoles
    - Consistent info/warn/error prefixes
    - rich tables for drive and group listings
    """

    def __init__(
        self,
        style: Optional[ConsoleStyle] = None,
        width: int = 70,
        indent: int = 2,
        stream: Optional[IO[str]] = None,
    ):
        """
        Initialize CLI output formatter.

        Args:
            style: ConsoleStyle (default: auto-detect)
            width: Target line width for separators and tables
            indent: Left margin indent (spaces)
            stream: Output stream (default: stdout); pass a StringIO in tests
        """
        self.style = style or ConsoleStyle.detect()
        self.width = width
        self.indent = indent
        self._prefix = " " * indent
        if stream is not None:
            self.console = Console(file=stream, width=width, color_system=None, highlight=False, emoji=False)
            self.err_console = self.console
        else:
            self.console = Console(width=width, highlight=False, emoji=False)
            self.err_console = Console(stderr=True, width=width, highlight=False, emoji=False)

    @classmethod
    def detect(cls, width: Optional[int] = None) -> "CLIOutput":
        """Auto-detect console capabilities and return appropriate formatter."""
        if width is None:
            width = min(shutil.get_terminal_size((80, 24)).columns, 120)
        return cls(style=ConsoleStyle.detect(), width=width)

    @property
    def ascii(self) -> bool:
        return self.style.mode == ConsoleStyle.ASCII

    def _print(self, msg: str, err: bool = False):
        console = self.err_console if err else self.console
        try:
            console.print(msg, markup=False, highlight=False, soft_wrap=True)
        except UnicodeEncodeError:
            safe_msg = msg.encode("ascii", errors="replace").decode("ascii")
            console.print(safe_msg, markup=False, highlight=False, soft_wrap=True)

    def info(self, message: str):
        self._print(f"{self._prefix}{self.style.SUCCESS} {message}")

    def note(self, message: str):
        """Neutral information line."""
        self._print(f"{self._prefix}{self.style.INFO} {message}")

    def warn(self, message: str):
        self._print(f"{self._prefix}{self.style.WARNING} {message}")

    def error(self, message: str):
        self._print(f"{self._prefix}{self.style.FAILURE} {message}", err=True)

    def log(self, message: str):
        """Print plain message with indent."""
        self._print(f"{self._prefix}{message}")

    def section(self, title: str):
        """Print section header."""
        sep = self.style.symbol("MENU_DOUBLE") or "="
        self.blank()
        self._print(sep * self.width)
        self._print(f"  {title}")
        self._print(sep * self.width)

    def blank(self):
        self._print("")

    def table(self, headers: Sequence[str], rows: Sequence[Sequence], title: Optional[str] = None):
        """
        Print a table.

        Args:
            headers: Column header strings
            rows: Row sequences (values are converted with str())
            title: Optional table title
        """
        table = Table(title=title, box=box.ASCII if self.ascii else box.SQUARE, expand=False)
        for header in headers:
            table.add_column(Text(str(header)))
        for row in rows:
            table.add_row(*(Text("" if v is None else str(v)) for v in row))
        self.console.print(table)

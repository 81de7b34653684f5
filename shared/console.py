"""
Graft Console Interface
========================

Rich-powered console abstraction giving every Graft command the same
presentation: section rules, severity-coloured status messages, tables
and a findings table.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

_GRAFT_THEME = Theme(
    {
        "graft.section": "bold bright_magenta",
        "graft.success": "bold green",
        "graft.warning": "bold yellow",
        "graft.error": "bold red",
        "graft.info": "bold bright_blue",
        "graft.critical": "bold white on red",
        "graft.high": "bold red",
        "graft.medium": "bold yellow",
        "graft.low": "bold bright_cyan",
        "graft.informational": "bold bright_blue",
    }
)

_SEVERITY_STYLES: dict[str, str] = {
    "CRITICAL": "graft.critical",
    "HIGH": "graft.high",
    "MEDIUM": "graft.medium",
    "LOW": "graft.low",
    "INFO": "graft.informational",
}


class GraftConsole:
    """Unified console interface for Graft commands.

    Message text passed to the helpers is escaped, so names read from a
    binary can never be interpreted as Rich markup.

    Usage::

        con = GraftConsole()
        con.section("Image layout")
        con.success("Stub file written")
    """

    def __init__(self, *, quiet: bool = False, record: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for HTML / text export.
        """
        self._console = Console(
            theme=_GRAFT_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
        )

    # ------------------------------------------------------------------ #
    #  Sections
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(
            f"  {escape(title)}  ",
            style="graft.section",
            characters="─",
        )

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[graft.success][+][/graft.success] {escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[graft.info][*][/graft.info] {escape(message)}")

    def warning(self, message: str) -> None:
        self._console.print(f"[graft.warning][!] WARNING:[/graft.warning] {escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[graft.error][-] ERROR:[/graft.error] {escape(message)}")

    def item(self, text: str, indent: int = 2) -> None:
        """Print one indented list entry, never wrapped."""
        self._console.print(f"{' ' * indent}{escape(text)}", soft_wrap=True)

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table; every cell is stringified and escaped."""
        tbl = Table(
            title=title,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(escape(str(cell)) for cell in row))

        self._console.print(tbl)

    def findings_table(self, findings: Sequence[Any]) -> None:
        """Render findings with severity colouring.

        Expects objects with ``severity``, ``title`` and ``description``
        attributes (e.g. :class:`shared.models.Finding`).
        """
        tbl = Table(
            title="Findings",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Severity", width=10)
        tbl.add_column("Title")
        tbl.add_column("Description", ratio=2)

        for idx, finding in enumerate(findings, start=1):
            sev = getattr(finding, "severity", "INFO")
            sev_name = sev.value if hasattr(sev, "value") else str(sev).upper()
            sev_style = _SEVERITY_STYLES.get(sev_name, "")
            sev_cell = f"[{sev_style}]{sev_name}[/{sev_style}]" if sev_style else sev_name
            tbl.add_row(
                str(idx),
                sev_cell,
                escape(str(getattr(finding, "title", ""))),
                escape(str(getattr(finding, "description", ""))),
            )

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()

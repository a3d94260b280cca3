"""Rich output helpers for the gem2arch CLI.

Notice kinds are colour coded:
    missing / build-failed / upload-failed = bold red,
    unsatisfied = yellow, out-of-date = cyan, no-releases = dim
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from gem2arch.core.notices import NoticeKind, NoticeLog

_KIND_STYLES: dict[NoticeKind, str] = {
    NoticeKind.MISSING: "bold red",
    NoticeKind.BUILD_FAILED: "bold red",
    NoticeKind.UPLOAD_FAILED: "bold red",
    NoticeKind.UNSATISFIED: "yellow",
    NoticeKind.OUT_OF_DATE: "cyan",
    NoticeKind.NO_RELEASES: "dim",
}

console = Console()
err_console = Console(stderr=True)


def kind_style(kind: NoticeKind) -> str:
    """Return the Rich style string for a notice kind."""
    return _KIND_STYLES.get(kind, "white")


def setup_logging(verbosity: int) -> None:
    """Route log records through Rich: WARNING, INFO with ``-v``, DEBUG with ``-vv``."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def print_notices(notices: NoticeLog) -> None:
    """Print all notices of a run as one table."""
    if not len(notices):
        return

    table = Table(title="gem2arch Notices", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Kind", justify="center")
    table.add_column("Message")
    table.add_column("URL", style="dim")

    for notice in notices:
        table.add_row(
            notice.package,
            Text(notice.kind.value, style=kind_style(notice.kind)),
            notice.message,
            notice.url or "-",
        )
    console.print(table)


def print_run_summary(processed: list[str], notices: NoticeLog) -> None:
    """Print a one-line summary after the notices table."""
    parts = [f"[bold]{len(processed)}[/bold] packages changed"]
    missing = len(notices.of_kind(NoticeKind.MISSING))
    if missing:
        parts.append(f"[red]{missing} missing[/red]")
    outdated = len(notices.of_kind(NoticeKind.OUT_OF_DATE))
    if outdated:
        parts.append(f"[cyan]{outdated} out-of-date[/cyan]")
    console.print(" | ".join(parts))

"""Shared utility functions for the FSH scaffolder.

Provides file-system helpers for writing generated projects, duration
formatting, and Rich-based console output for the CLI.  The scaffolding and
upgrade cores never print; everything user-facing goes through here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.scaffolder.engine import GeneratedFile
from src.scaffolder.validator import Finding, Severity
from src.upgrade.versions import VersionDiff

console = Console()

# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def resolve_output_path(root: str | Path, relative: str) -> Path:
    """Join a generated file's POSIX path onto *root*.

    Raises:
        ValueError: The path is absolute or escapes *root*.
    """
    posix = PurePosixPath(relative)
    if posix.is_absolute() or ".." in posix.parts:
        raise ValueError(f"Refusing to write outside the output root: {relative}")
    return Path(root).joinpath(*posix.parts)


async def write_generated_files(
    files: Iterable[GeneratedFile],
    root: str | Path,
    overwrite: bool = False,
) -> list[Path]:
    """Write generated files beneath *root*.

    Every target is checked before anything is written, so an existing file
    (without *overwrite*) or an unsafe path leaves the directory untouched.
    The writes themselves run in a thread-pool executor.

    Returns:
        The written paths, in input order.

    Raises:
        FileExistsError: A target exists and *overwrite* is ``False``.
        ValueError: A file path is absolute or escapes *root*.
    """
    planned = [(resolve_output_path(root, f.path), f.content) for f in files]
    if not overwrite:
        existing = [str(path) for path, _ in planned if path.exists()]
        if existing:
            raise FileExistsError(f"Refusing to overwrite existing files: {', '.join(existing)}")

    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps the template's line endings as rendered.
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    loop = asyncio.get_running_loop()
    for path, content in planned:
        await loop.run_in_executor(None, _write, path, content)
    return [path for path, _ in planned]


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.42)  -> "420ms"
        format_duration(3.7)   -> "3.7s"
        format_duration(65.2)  -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    minutes = int(seconds // 60)
    if minutes == 0:
        return f"{seconds:.1f}s"
    return f"{minutes}m {int(seconds % 60)}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.INFO: "dim",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), escape(str(value)))

    console.print(table)
    console.print()


def print_diff_table(result: VersionDiff, title: str = "Package changes") -> None:
    """Print added, removed and updated packages, breaking updates in red."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("", no_wrap=True)
    table.add_column("Package")
    table.add_column("Current")
    table.add_column("Latest")

    for change in result.added:
        table.add_row("[green]+[/green]", change.package, "", change.version)
    for change in result.removed:
        table.add_row("[red]-[/red]", change.package, change.version, "")
    for update in result.updated:
        marker = "[red]![/red]" if update.is_breaking else "[yellow]~[/yellow]"
        latest = f"[red]{update.to_version}[/red]" if update.is_breaking else update.to_version
        table.add_row(marker, update.package, update.from_version, latest)

    console.print(table)
    console.print()


def print_findings(findings: Iterable[Finding]) -> None:
    """Print validation findings, one per line."""
    for finding in findings:
        style = SEVERITY_STYLES.get(finding.severity, "white")
        where = finding.identifier or "?"
        if finding.line:
            where = f"{where}:{finding.line}"
        console.print(
            f"[{style}]{finding.severity.value}[/{style}] [dim]{escape(where)}[/dim] "
            f"{finding.code}: {escape(finding.message)}"
        )


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message.  *message* is shown literally, not as markup."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")

# Rich-based console for thread-safe, colored terminal output.
#
# This module provides a centralized console for all housekeeping output.
#
# Features:
# - Thread-safe output (no interleaving)
# - Colored status messages
# - Live progress bar for batch identity resolution
# - Rich tables for resolution results

import threading
from contextlib import contextmanager
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

# Global console instance - thread-safe by default
console = Console(highlight=False)

# Lock for complex multi-line output
_output_lock = threading.RLock()

# Kind -> style used in result tables
KIND_STYLES = {
    "user": "green",
    "group": "cyan",
    "computer": "blue",
    "organizationalUnit": "magenta",
    "msDS-GroupManagedServiceAccount": "yellow",
    "wellKnownPrincipal": "bold white",
    "notFound": "dim",
    "unsupported": "red",
}


# =============================================================================
# Verbosity
# =============================================================================

_VERBOSE = False
_DEBUG = False


def set_verbosity(verbose: bool, debug: bool):
    """Set verbosity levels."""
    global _VERBOSE, _DEBUG
    _VERBOSE = verbose
    _DEBUG = debug


def _is_verbose() -> bool:
    return _VERBOSE or _DEBUG


def _is_debug() -> bool:
    return _DEBUG


# =============================================================================
# Status Messages (thread-safe)
# =============================================================================

def _emit(prefix: str, msg: str, verbose_only: bool = False):
    if verbose_only and not _is_verbose():
        return
    with _output_lock:
        console.print(f"{prefix} {msg}" if prefix else msg)


def status(msg: str):
    """Always visible."""
    _emit("", msg)


def good(msg: str, verbose_only: bool = False):
    _emit("[green][+][/]", msg, verbose_only)


def warn(msg: str, verbose_only: bool = False):
    """Print a warning in yellow.

    Args:
        msg: Message to print
        verbose_only: If True, only print in verbose mode
    """
    _emit("[yellow][!][/]", msg, verbose_only)


def error(msg: str):
    _emit("[red][-][/]", msg)


def info(msg: str, verbose_only: bool = False):
    _emit("[blue][*][/]", msg, verbose_only)


def debug(msg: str, exc_info: bool = False):
    """Dim [DEBUG] line, plus the active traceback when exc_info is set."""
    if not _is_debug():
        return
    with _output_lock:
        console.print(f"[dim][DEBUG][/] {msg}")
        if exc_info:
            console.print_exception()


# =============================================================================
# Progress Bar for Batch Resolution
# =============================================================================

@contextmanager
def resolve_progress(total: int, description: str = "Resolving", enabled: bool = True):
    """
    Context manager for showing a progress bar while resolving a batch of identities.

    Usage:
        with resolve_progress(len(identities)) as update:
            for identity in identities:
                result = resolver.resolve(identity)
                update(identity, success=result.found)

    Args:
        total: Total number of identities to resolve
        description: Description shown in progress bar
        enabled: If False, yields a no-op update function

    Yields:
        update function that takes (current_item, success=True, error_msg=None)
    """
    if not enabled:
        yield lambda item, success=True, error_msg=None: None
        return

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TextColumn("[dim]{task.fields[last]}"),
        console=console,
    )
    task_id = progress.add_task(description, total=total, last="")
    resolved = unresolved = 0

    def update(item: str, success: bool = True, error_msg: Optional[str] = None):
        nonlocal resolved, unresolved
        if success:
            resolved += 1
            last = f"[green][+][/] {item}"
        else:
            unresolved += 1
            last = f"[red][-][/] {item}"
            if error_msg:
                last += f": {error_msg[:30]}"
        progress.update(task_id, advance=1, last=last)

    try:
        with progress:
            yield update
    finally:
        if unresolved:
            console.print(
                f"\n[green][+] {resolved}[/] resolved, "
                f"[red][-] {unresolved}[/] unresolved out of {resolved + unresolved} identities"
            )


# =============================================================================
# Result Tables
# =============================================================================

def print_resolution_table(rows: List[Dict]):
    """
    Print resolved identities as a rich table.

    Args:
        rows: Result dicts as produced by ResolvedDirectoryObject.to_dict()
    """
    if not rows:
        return

    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
        box=None,
    )

    table.add_column("Identity", style="white", no_wrap=True)
    table.add_column("Kind", justify="center")
    table.add_column("Handle", style="white")
    table.add_column("Detail", style="dim")

    for row in rows:
        kind = row.get("kind", "")
        style = KIND_STYLES.get(kind, "white")
        detail = row.get("reason") or row.get("name") or ""
        if len(detail) > 60:
            detail = detail[:57] + "..."
        table.add_row(
            str(row.get("identity", "")),
            f"[{style}]{kind}[/]",
            row.get("handle") or "",
            detail,
        )

    console.print()
    console.print(
        Panel(
            table,
            title="[bold]IDENTITY RESOLUTION[/]",
            border_style="cyan",
        )
    )


def print_check_table(rows: List[Dict]):
    """
    Print offline validator results as a rich table.

    Args:
        rows: Dicts with value, classification, dn, sid, guid keys
    """
    if not rows:
        return

    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
        box=None,
    )

    table.add_column("Value", style="white", no_wrap=True)
    table.add_column("Classification", style="cyan")
    table.add_column("DN", justify="center")
    table.add_column("SID", justify="center")
    table.add_column("GUID", justify="center")

    def mark(flag: bool) -> str:
        return "[green]yes[/]" if flag else "[dim]no[/]"

    for row in rows:
        table.add_row(
            row["value"],
            row["classification"],
            mark(row["dn"]),
            mark(row["sid"]),
            mark(row["guid"]),
        )

    console.print()
    console.print(
        Panel(
            table,
            title="[bold]FORMAT CHECK[/]",
            border_style="dim",
        )
    )


def print_resolution_complete(resolved: int, unresolved: int, total_time: float):
    """Print batch completion summary."""
    console.print()

    content_lines = [
        f"  [green][+][/] Resolved: [bold]{resolved}[/]",
        f"  [red][-][/] Unresolved: [bold]{unresolved}[/]",
        f"  [dim]Total time: {total_time:.2f}s[/]",
    ]

    console.print(
        Panel(
            "\n".join(content_lines),
            title="[bold]RESOLUTION COMPLETE[/]",
            border_style="green" if unresolved == 0 else "yellow",
        )
    )


def print_guid_table(rows: List[Dict]):
    """
    Print schema / extended-right GUID lookups.

    Args:
        rows: Dicts with name, source and guid keys (guid None when unknown)
    """
    if not rows:
        return

    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
        box=None,
    )

    table.add_column("Name", style="white", no_wrap=True)
    table.add_column("Source", style="cyan")
    table.add_column("GUID")

    for row in rows:
        guid = row.get("guid")
        table.add_row(
            row["name"],
            row.get("source") or "",
            guid if guid else "[red]unknown[/]",
        )

    console.print()
    console.print(
        Panel(
            table,
            title="[bold]SCHEMA GUIDS[/]",
            border_style="dim",
        )
    )

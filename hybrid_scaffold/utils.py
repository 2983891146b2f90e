"""Shared helpers: external commands and Rich console output."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import NamedTuple

from rich.console import Console
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# External commands
# ---------------------------------------------------------------------------


class CommandResult(NamedTuple):
    returncode: int
    stdout: str
    stderr: str


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 300,
    env: dict[str, str] | None = None,
    label: str | None = None,
) -> CommandResult:
    """Run *cmd* to completion and capture its output.

    Args:
        cmd: Program and arguments; no shell is involved.
        cwd: Working directory for the child process.
        timeout: Seconds before the process is killed.
        env: Extra variables layered over ``os.environ``.
        label: When given, ``<label>:`` and the command line are echoed
            before the process starts.

    Returns:
        ``CommandResult``; a timeout yields returncode ``-1``.
    """
    if label:
        console.print(f"{label}:\n$ {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env={**os.environ, **env} if env else None,
    )
    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(-1, "", f"{' '.join(cmd)} did not finish within {timeout}s (timed out)")

    return CommandResult(
        process.returncode or 0,
        (out or b"").decode("utf-8", errors="replace").strip(),
        (err or b"").decode("utf-8", errors="replace").strip(),
    )


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

_ACTION_STYLES = {
    "written": "green",
    "unchanged": "dim",
    "skipped": "yellow",
}


def print_file_action(action: str, path: str) -> None:
    """Print one scaffolded file with its outcome (written/unchanged/skipped)."""
    style = _ACTION_STYLES.get(action, "white")
    console.print(f"  [{style}]{action:>9}[/{style}] {path}")


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value table followed by a blank line."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Field", style="dim", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]{message}[/bold yellow]")

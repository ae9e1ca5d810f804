"""Shared utility functions for federated-scaffold.

Provides async command execution, Angular-style name helpers and
Rich-based console reporting.  Every stage prints through the single
module-level ``console`` so output can be captured in tests.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: Sequence[str],
    cwd: str | Path | None = None,
    timeout: int = 300,
) -> tuple[int, str, str]:
    """Run *cmd* (no shell) and capture its output.

    Returns ``(returncode, stdout, stderr)`` with both streams decoded and
    stripped.  A command still running after *timeout* seconds is killed
    and reported with return code ``-1``.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    return (
        process.returncode or 0,
        (stdout_bytes or b"").decode("utf-8", errors="replace").strip(),
        (stderr_bytes or b"").decode("utf-8", errors="replace").strip(),
    )


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def dasherize(value: str) -> str:
    """Convert a name to lower dash-case, Angular style.

    Examples::

        dasherize("myTerminal")    -> "my-terminal"
        dasherize("My Terminal")   -> "my-terminal"
        dasherize("inner_html")    -> "inner-html"
        dasherize("src/app/myFeature") -> "src/app/my-feature"
    """
    decamelized = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", value).lower()
    return re.sub(r"[ _]", "-", decamelized)


def classify(value: str) -> str:
    """Convert a name to PascalCase class form.

    Examples::

        classify("my-terminal")  -> "MyTerminal"
        classify("my_terminal")  -> "MyTerminal"
        classify("myTerminal")   -> "MyTerminal"
    """
    parts = re.split(r"[-_\s.]+", value)
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(name: str) -> None:
    """Print a rule announcing a pipeline stage."""
    console.print(Rule(f"[bold bright_cyan] {name} [/bold bright_cyan]", style="bright_cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_info(message: str) -> None:
    """Print a plain informational line."""
    console.print(message)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"

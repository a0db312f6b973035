"""
Drift comparison between two fingerprints.

Canonical fingerprints are line oriented, so a line diff points at the
node or attribute that changed. Masked values only show that a secret
changed, never what it changed from or to.
"""

import difflib
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..masking.encoder import MASKED_VALUE_PATTERN

console = Console()


@dataclass
class FlowDrift:
    """Differences between a baseline and a current fingerprint."""

    baseline: str
    current: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def identical(self) -> bool:
        return not self.added and not self.removed

    @property
    def masked_changes(self) -> int:
        """Number of changed lines that carry a masked value."""
        return sum(1 for line in self.added if MASKED_VALUE_PATTERN.search(line))

    def unified_diff(self, context: int = 3) -> list[str]:
        """Unified diff from baseline to current."""
        return list(
            difflib.unified_diff(
                self.baseline.splitlines(),
                self.current.splitlines(),
                fromfile="baseline",
                tofile="current",
                n=context,
                lineterm="",
            )
        )


def compare_fingerprints(baseline: str, current: str) -> FlowDrift:
    """
    Compare two fingerprints line by line.

    Args:
        baseline: Earlier fingerprint
        current: Later fingerprint

    Returns:
        Drift with added and removed lines
    """
    drift = FlowDrift(baseline=baseline, current=current)
    if baseline == current:
        return drift

    matcher = difflib.SequenceMatcher(a=baseline.splitlines(), b=current.splitlines(), autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("replace", "delete"):
            drift.removed.extend(line.strip() for line in matcher.a[i1:i2])
        if tag in ("replace", "insert"):
            drift.added.extend(line.strip() for line in matcher.b[j1:j2])

    return drift


def render_drift(drift: FlowDrift, output: Optional[Console] = None, max_lines: int = 20) -> None:
    """
    Print a drift summary.

    Args:
        drift: Drift to render
        output: Console to print to
        max_lines: Maximum changed lines to list per side
    """
    output = output or console

    output.print(Panel.fit("[bold]🔄 Flow Fingerprint Comparison[/bold]", border_style="cyan"))

    table = Table(show_header=False, box=None)
    table.add_column("", style="bold", width=20)
    table.add_column("")

    if drift.identical:
        table.add_row("[green]✅ Status:[/green]", "[green]identical[/green]")
        output.print(table)
        return

    table.add_row("[yellow]⚠️ Status:[/yellow]", "[yellow]drifted[/yellow]")
    table.add_row("[red]➖ Removed:[/red]", f"[red]{len(drift.removed)}[/red]")
    table.add_row("[green]➕ Added:[/green]", f"[green]{len(drift.added)}[/green]")
    table.add_row("🔒 Masked changes:", str(drift.masked_changes))
    output.print(table)

    if drift.removed:
        output.print()
        output.print("[bold red]Removed:[/bold red]")
        for line in drift.removed[:max_lines]:
            output.print(f"  - {line}", markup=False)

    if drift.added:
        output.print()
        output.print("[bold green]Added:[/bold green]")
        for line in drift.added[:max_lines]:
            output.print(f"  + {line}", markup=False)

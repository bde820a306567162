"""Terminal output for the clusterops CLI, rendered with rich."""

from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from clusterops.cluster.models import Cluster
from clusterops.runtime.registry import RegistryConfig
from clusterops.runtime.reset import ResetReport


class CLIFormatter:
    """Handles all terminal output formatting."""

    def __init__(self, console: Optional[Console] = None, err_console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    # ── topology ─────────────────────────────────────────────────────

    def print_cluster(self, cluster: Cluster) -> None:
        """Print the membership of both host groups."""
        table = Table(
            title=f"Cluster {cluster.name} ({cluster.provider.value})",
            box=box.ROUNDED,
            border_style="cyan",
        )
        table.add_column("Role", style="bold")
        table.add_column("Members")

        for role, group in (("masters", cluster.masters), ("nodes", cluster.nodes)):
            if cluster.provider.uses_ip_list:
                members = ", ".join(group.ip_list) or "-"
            else:
                members = f"count {group.count or 0}"
            table.add_row(role, members)

        self.console.print(table)

    # ── reset report ─────────────────────────────────────────────────

    def print_reset_report(self, report: ResetReport) -> None:
        """Print which hosts were reset and which failed."""
        if not report.failures:
            self.success(f"reset {len(report.attempted)} hosts")
        else:
            table = Table(title="Reset failures", box=box.ROUNDED, border_style="red", show_lines=True)
            table.add_column("Host", style="bold")
            table.add_column("Role")
            table.add_column("Error")
            for failure in report.failures:
                table.add_row(failure.host, failure.role, failure.error)
            self.console.print(table)
            self.warning(f"{len(report.failures)} of {len(report.attempted)} hosts failed to reset")

        if report.registry_deleted:
            self.success("registry deleted")

    def print_registry(self, cf: RegistryConfig) -> None:
        auth = "basic-auth" if cf.auth_enabled else "no auth"
        self.success(f"registry {cf.address} on {cf.host_ip} ({auth})")

    # ── messages ─────────────────────────────────────────────────────

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]✗[/bold red] {message}")

"""
ConsoleUI - Rich-based console interface.

Renders profiles, directives and results for the operator.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..protocol.context import HardwareProfile
from ..protocol.tuning import Tier, ConfigDocument, ApplyResult
from ..protocol.result import RollbackAction, RollbackResult, RunSummary
from ..tuning.tiers import tier_range
from .. import __version__


class ConsoleUI:
    """
    Rich console interface for bbr_tuner.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = console or Console(stderr=True)

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    def print_header(self, title: str):
        """Print a section header."""
        if self.quiet:
            return
        self.console.print()
        self.console.rule(f"[bold blue]{title}[/]")

    def print_banner(self):
        """Print application banner."""
        if self.quiet:
            return

        banner = f"""
[bold cyan]Linux TCP/IP & BBR Tuner[/] [dim]v{__version__}[/]
[dim]Hardware-tiered kernel network parameters[/]
        """
        self.console.print(Panel(banner.strip(), border_style="cyan"))

    def print_success(self, message: str):
        self.print(f"[green]✓[/] {message}")

    def print_warning(self, message: str):
        """Warnings go to stderr and are printed even in quiet mode."""
        self.err_console.print(f"[yellow]⚠[/] {message}")

    def print_error(self, message: str):
        """Errors are printed even in quiet mode."""
        self.err_console.print(f"[bold red]✗ Error:[/] {message}")

    def print_profile(self, profile: HardwareProfile, tier: Tier):
        """Display detected hardware and the selected tier."""
        if self.quiet:
            return

        self.print_header("System Information")
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Memory", f"[yellow]{profile.total_memory_mb} MB[/]")
        table.add_row("CPU cores", f"[yellow]{profile.cpu_cores}[/]")
        table.add_row("Virtualization", f"[yellow]{profile.virtualization}[/]")
        table.add_row("Tier", f"[bold cyan]{tier.label}[/] [dim]({tier_range(tier)})[/]")

        self.console.print(table)

    def print_directives(self, document: ConfigDocument):
        """Display the directives a document sets."""
        if self.quiet:
            return

        self.print_header("Kernel Parameters")
        table = Table(show_lines=False)
        table.add_column("Parameter", style="cyan")
        table.add_column("Value", style="bold")
        table.add_column("Purpose", style="dim")

        for directive in document.directives:
            table.add_row(directive.key, directive.rendered_value, directive.comment)

        self.console.print(table)

    def print_document(self, document: ConfigDocument, path: Path):
        """Display the full rendered file (dry-run)."""
        if self.quiet:
            return

        self.print_header(f"Would write {path}")
        self.console.print(Syntax(document.to_text(), "ini", theme="ansi_dark"))

    def print_apply_result(self, result: ApplyResult):
        """Display verification of the watched keys."""
        if self.quiet:
            return

        self.print_header("Verification")
        for key, expected in result.expected_values.items():
            actual = result.effective_values.get(key)
            if key in result.mismatches:
                self.console.print(
                    f"[yellow]⚠[/] {key} = [red]{actual or 'unreadable'}[/] "
                    f"[dim](expected {expected})[/]"
                )
            else:
                self.console.print(f"[green]✓[/] {key} = [green]{actual}[/]")

    def print_summary(self, summary: RunSummary):
        """Display the outcome of a full apply run."""
        self.print_profile(summary.profile, summary.tier)
        self.print_directives(summary.document)

        self.print_header("Configuration")
        if summary.snapshot:
            self.print_success(f"Backed up previous file to {summary.snapshot.path}")
        else:
            self.print(f"[dim]No previous {summary.conf_path}, nothing backed up[/]")
        if summary.prune and summary.prune.removed:
            self.print(f"[dim]Removed {len(summary.prune.removed)} old backup(s)[/]")
        self.print_success(f"Wrote {summary.conf_path}")

        if summary.apply:
            self.print_apply_result(summary.apply)

        for warning in summary.warnings:
            self.print_warning(warning)

        if summary.verified:
            self.print("\n[bold green]All optimizations applied and active.[/]")
        else:
            self.print(
                "\n[bold yellow]Configuration written, but not every setting is live.[/]"
            )

    def print_rollback(self, result: RollbackResult):
        """Display the outcome of a rollback."""
        self.print_header("Rollback")
        if result.action == RollbackAction.RESTORED:
            self.print_success(f"Restored {result.conf_path} from {result.snapshot}")
        elif result.action == RollbackAction.DELETED:
            self.print_success(f"No backup found, removed {result.conf_path}")
            self.print(
                "[dim]Settings already loaded stay in effect until reboot "
                "or until they are reset by hand.[/]"
            )
        else:
            self.print(f"[dim]Nothing to roll back: {result.conf_path} does not exist[/]")

        if result.reloaded:
            self.print_success("Reloaded sysctl configuration")

    def print_snapshots(self, snapshots: List[Path]):
        """List available backups, newest last."""
        if self.quiet:
            return

        self.print_header("Backups")
        if not snapshots:
            self.print("[dim]No backups[/]")
            return
        for index, path in enumerate(snapshots):
            marker = " [cyan](latest)[/]" if index == len(snapshots) - 1 else ""
            self.print(f"  {path}{marker}")

    def print_live_diff(self, differences: Dict[str, Tuple[str, Optional[str]]], total: int):
        """Display how the live kernel differs from the intended values."""
        if self.quiet:
            return

        self.print_header("Live Kernel")
        if not differences:
            self.print_success(f"All {total} parameters match the running kernel")
            return

        table = Table()
        table.add_column("Parameter", style="cyan")
        table.add_column("Intended")
        table.add_column("Live", style="yellow")
        for key, (intended, live) in differences.items():
            table.add_row(key, intended, live or "unreadable")
        self.console.print(table)
        self.print(f"[dim]{len(differences)} of {total} parameters differ[/]")

    def print_tips(self, conf_path: Path):
        """Post-apply hints."""
        if self.quiet:
            return

        tips = f"""
[bold]Useful commands[/]
  Check congestion control:  [cyan]sysctl net.ipv4.tcp_congestion_control[/]
  Check queueing discipline: [cyan]sysctl net.core.default_qdisc[/]
  Inspect the managed file:  [cyan]cat {conf_path}[/]
  Undo these changes:        [cyan]bbr-tuner revert[/]
        """
        self.console.print(Panel(tips.strip(), border_style="dim"))

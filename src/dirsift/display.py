"""Rich terminal display for dirsift."""

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from dirsift.models import (
    AnalysisSnapshot,
    CleanupRecommendation,
    DeleteResult,
    DirectoryInfo,
    DiskUsage,
    RiskLevel,
    ScanStatus,
    SystemFolderAnalysis,
    format_size,
)

console = Console()

RISK_COLORS = {
    RiskLevel.SAFE: "green",
    RiskLevel.LOW: "cyan",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}


def risk_icon(risk: RiskLevel) -> str:
    """Get icon for risk level."""
    icons = {
        RiskLevel.SAFE: "[green]✓[/green]",
        RiskLevel.LOW: "[cyan]✓[/cyan]",
        RiskLevel.MEDIUM: "[yellow]![/yellow]",
        RiskLevel.HIGH: "[red]✗[/red]",
        RiskLevel.CRITICAL: "[bold red]✗[/bold red]",
    }
    return icons.get(risk, "?")


def risk_label(risk: RiskLevel) -> str:
    """Get styled label for risk level."""
    color = RISK_COLORS.get(risk, "white")
    return f"[{color}]{risk.value.capitalize()}[/{color}]"


def show_status(disk_usage: DiskUsage) -> None:
    """Display quick status."""
    used_percent = disk_usage.used_percent

    if used_percent >= 90:
        status = "[red]CRITICAL[/red]"
    elif used_percent >= 75:
        status = "[yellow]WARNING[/yellow]"
    else:
        status = "[green]OK[/green]"

    console.print(f"Disk Status: {status}")
    console.print(f"  Total: {disk_usage.total_gb:.0f} GB")
    console.print(f"  Used:  {disk_usage.used_gb:.0f} GB ({used_percent:.0f}%)")
    console.print(f"  Free:  {disk_usage.free_gb:.0f} GB")


def show_scanning_progress() -> Progress:
    """Create progress bar for a scan session (percent of used space)."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )


def show_analysis(snapshot: AnalysisSnapshot, top_n: int = 10) -> None:
    """Display per-root results of a finished session."""
    table = Table(title="Scanned Directories", show_header=True, header_style="bold")
    table.add_column("Directory")
    table.add_column("Size", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Note")

    ordered = sorted(snapshot.directories.values(), key=lambda d: d.size, reverse=True)
    for info in ordered[:top_n]:
        table.add_row(info.path, info.size_human, str(info.file_count), _note(info))

    console.print(table)

    if snapshot.truncated_roots:
        console.print(
            f"[yellow]! {len(snapshot.truncated_roots)} root(s) hit a limit; "
            "their sizes are lower bounds[/yellow]"
        )

    status_color = {
        ScanStatus.COMPLETED: "green",
        ScanStatus.CANCELLED: "yellow",
        ScanStatus.FAILED: "red",
    }.get(snapshot.status, "white")
    console.print(
        Panel(
            f"[bold]Analyzed:[/bold] {format_size(snapshot.analyzed_size)} "
            f"of {format_size(snapshot.used_size)} used ({snapshot.analyzed_percent:.0f}%)\n"
            f"[bold]Status:[/bold] [{status_color}]{snapshot.status.value}[/{status_color}]",
            title="Summary",
            border_style="blue",
        )
    )


def _note(info: DirectoryInfo) -> str:
    if info.error:
        return f"[red]{info.error}[/red]"
    if info.truncated:
        return "[yellow]partial[/yellow]"
    return ""


def show_recommendations(recommendations: list[CleanupRecommendation]) -> None:
    """Display classified directories."""
    if not recommendations:
        console.print("[dim]No recommendations.[/dim]")
        return

    table = Table(title="Recommendations", show_header=True, header_style="bold")
    table.add_column("", width=3)
    table.add_column("Path")
    table.add_column("Size", justify="right")
    table.add_column("Category")
    table.add_column("Risk")
    table.add_column("Reason")

    for rec in recommendations:
        table.add_row(
            risk_icon(rec.risk),
            rec.path,
            rec.size_human,
            rec.category.value,
            risk_label(rec.risk),
            rec.reason,
        )

    console.print(table)


def show_folder_analysis(analysis: SystemFolderAnalysis) -> None:
    """Display a system folder breakdown."""
    if not analysis.available:
        console.print(f"[yellow]{analysis.summary}[/yellow]")
        return

    console.print(
        Panel(
            f"[bold]{analysis.path}[/bold]\n"
            f"Total: {format_size(analysis.total_size)}\n"
            f"Reclaimable: [green]{format_size(analysis.deletable_size)}[/green] "
            f"({analysis.deletable_percent:.0f}%)",
            border_style="blue",
        )
    )

    if analysis.breakdown:
        table = Table(title="Breakdown", show_header=True, header_style="bold")
        table.add_column("Kind")
        table.add_column("Size", justify="right")
        for label, size in sorted(analysis.breakdown.items(), key=lambda kv: kv[1], reverse=True):
            table.add_row(label, format_size(size))
        console.print(table)

    if analysis.recommendations:
        table = Table(show_header=True, header_style="bold")
        table.add_column("", width=3)
        table.add_column("Item")
        table.add_column("Size", justify="right")
        table.add_column("Reclaimable", justify="right")
        table.add_column("Risk")
        table.add_column("Details")
        for rec in analysis.recommendations:
            table.add_row(
                risk_icon(rec.risk),
                rec.title,
                rec.size_human,
                format_size(rec.deletable_size),
                risk_label(rec.risk),
                rec.description,
            )
        console.print(table)

    if analysis.summary:
        console.print(Panel(analysis.summary, title="Summary", border_style="cyan"))


def show_delete_result(result: DeleteResult) -> None:
    """Display result of a single delete."""
    if result.success:
        where = "moved to Trash" if result.trashed else "deleted"
        console.print(
            f"  [green]✓[/green] {result.path}: {format_size(result.bytes_freed)} {where}"
        )
    else:
        console.print(f"  [red]✗[/red] {result.path}: {result.error}")


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)

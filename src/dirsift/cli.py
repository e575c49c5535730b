"""CLI interface for dirsift."""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer
from rich.logging import RichHandler

from dirsift import __version__
from dirsift.aggregator import expand_directory
from dirsift.analyzer import analyze_disk, estimate_cleanup_savings, get_recommendations
from dirsift.classifier import classify, recommend_all
from dirsift.cleaner import delete_path
from dirsift.config import expand_path, load_config
from dirsift.display import (
    confirm_action,
    console,
    show_analysis,
    show_delete_result,
    show_folder_analysis,
    show_recommendations,
    show_scanning_progress,
    show_status,
)
from dirsift.models import AnalysisSnapshot, ScanStatus, format_size
from dirsift.orchestrator import ScanOrchestrator, get_disk_usage
from dirsift.system_analyzer import SystemFolderAnalyzer

app = typer.Typer(
    name="dirsift",
    help="Find what fills your Mac's disk and what is safe to remove",
    add_completion=False,
)


def setup_logging(verbose: bool = False) -> None:
    """Send dirsift log records to the rich console."""
    logger = logging.getLogger("dirsift")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False, markup=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def cancel_on_interrupt(orchestrator: ScanOrchestrator) -> Iterator[None]:
    """
    Turn the first Ctrl+C into a session cancel that keeps partial results.

    A second Ctrl+C raises KeyboardInterrupt as usual.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handle_interrupt(signum, frame):
        if orchestrator.cancel_event.is_set():
            signal.default_int_handler(signum, frame)
        orchestrator.cancel_analysis()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"dirsift version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """dirsift - disk usage analysis and cleanup recommendations."""
    setup_logging()
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@app.command()
def status() -> None:
    """Show current disk usage summary."""
    try:
        disk_usage = get_disk_usage()
    except OSError as e:
        console.print(f"[red]Cannot read disk usage: {e}[/red]")
        raise typer.Exit(1)
    show_status(disk_usage)


@app.command()
def analyze(
    roots: Optional[List[str]] = typer.Argument(
        None, help="Directories to scan (default: home folders and system folders)"
    ),
    top: Optional[int] = typer.Option(None, "--top", "-n", help="Number of largest roots to classify"),
    verbose: bool = typer.Option(False, "--verbose", help="Show progress log lines"),
) -> None:
    """Scan directories and show cleanup recommendations."""
    setup_logging(verbose)
    config = load_config()
    top_n = top or config.top_n
    scan_roots = [str(expand_path(r)) for r in roots] if roots else None
    orchestrator = ScanOrchestrator(config)

    console.print("[bold blue]Analyzing disk usage...[/bold blue]")
    console.print("[dim]Press Ctrl+C to stop and keep the results so far[/dim]\n")

    with show_scanning_progress() as progress:
        task = progress.add_task("Starting...", total=100)

        def on_update(snapshot: AnalysisSnapshot) -> None:
            description = (
                f"Scanning {snapshot.current_directory}"
                if snapshot.current_directory
                else "Scanning..."
            )
            progress.update(task, completed=snapshot.analyzed_percent, description=description)

        with cancel_on_interrupt(orchestrator):
            snapshot = analyze_disk(config, scan_roots, on_update, orchestrator=orchestrator)

    if snapshot.status == ScanStatus.FAILED:
        console.print(f"[red]Analysis failed: {snapshot.error}[/red]")
        raise typer.Exit(1)
    if snapshot.status == ScanStatus.CANCELLED:
        console.print(
            "[yellow]Analysis cancelled. Partial results for roots scanned so far: "
            f"{len(snapshot.directories)}[/yellow]"
        )

    console.print()
    show_analysis(snapshot, top_n)

    recommendations = get_recommendations(snapshot, top_n)
    console.print()
    show_recommendations(recommendations)

    savings = estimate_cleanup_savings(recommendations)
    if savings:
        console.print(f"\n[green]Estimated safe to reclaim: {format_size(savings)}[/green]")
        console.print("[dim]Run [bold]dirsift inspect <path>[/bold] for a detailed breakdown[/dim]")


@app.command(name="classify")
def classify_command(
    path: str = typer.Argument(..., help="Directory to classify"),
    top: int = typer.Option(10, "--top", "-n", help="Number of largest children to classify"),
) -> None:
    """Classify a directory and its largest children."""
    target = expand_path(path)
    if not target.exists():
        console.print(f"[red]Path does not exist: {target}[/red]")
        raise typer.Exit(1)

    info = expand_directory(str(target))
    if info.error:
        console.print(f"[red]Cannot read {target}: {info.error}[/red]")
        raise typer.Exit(1)

    recommendations = classify(info)
    children = {child.path: child for child in info.subdirectories}
    recommendations.extend(recommend_all(children, top))
    show_recommendations(recommendations)


@app.command()
def inspect(
    path: str = typer.Argument(..., help="System folder to break down, e.g. ~/Library/Caches"),
    stale: bool = typer.Option(False, "--stale", help="Also list items untouched for a year"),
) -> None:
    """Show a detailed breakdown of a well-known system folder."""
    target = expand_path(path)
    if not target.exists():
        console.print(f"[red]Path does not exist: {target}[/red]")
        raise typer.Exit(1)

    analyzer = SystemFolderAnalyzer()
    with console.status(f"Inspecting {target}..."):
        analysis = analyzer.analyze(str(target))
    show_folder_analysis(analysis)

    if stale:
        old_items = analyzer.find_old_items(str(target))
        console.print()
        if not old_items:
            console.print("[dim]No stale items found.[/dim]")
        for item in old_items:
            console.print(f"  • {item.title}: {item.size_human} ({item.description})")


@app.command()
def delete(
    path: str = typer.Argument(..., help="File or directory to delete"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
    no_trash: bool = typer.Option(False, "--no-trash", help="Delete permanently instead of moving to Trash"),
) -> None:
    """Delete a file or directory (moved to Trash by default)."""
    config = load_config()
    target = expand_path(path)
    use_trash = config.use_trash and not no_trash

    if not yes:
        action = "Move to Trash" if use_trash else "Permanently delete"
        if not confirm_action(f"{action} {target}?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    result = delete_path(target, use_trash=use_trash)
    show_delete_result(result)

    if not result.success:
        if result.needs_elevation:
            console.print(
                "[yellow]Permission denied. Grant Full Disk Access to your terminal "
                "or delete it as an administrator.[/yellow]"
            )
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

"""
EVA QA - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--max-depth, --viewport, etc.)
    2. Environment variables (EVA_QA__EXPLORATION__MAX_DEPTH, etc.)
    3. Config file (eva-qa.yaml)

Usage:
    eva-qa explore http://localhost:5173
    eva-qa explore http://localhost:5173 --viewport mobile --max-depth 3 --visible

Exit codes:
    0   exploration passed the severity threshold
    1   threshold failed or the browser could not be started
    2   invalid configuration
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from eva_qa.browsers.playwright_browser import PlaywrightBrowser
from eva_qa.config import Settings, load_config
from eva_qa.core.events import ISSUE_FOUND, STATE_VISITED
from eva_qa.core.explorer import Explorer
from eva_qa.core.models import ExplorationResult
from eva_qa.exceptions import BrowserLaunchError, ConfigurationError
from eva_qa.interfaces.browser import BrowserType
from eva_qa.reporting import ExplorationReport, summarize_issues
from eva_qa.utils.logging import setup_logging

# Create the CLI app
app = typer.Typer(
    name="eva-qa",
    help="Explore a web application and validate every state it reaches",
    add_completion=False,
)

console = Console()

EXIT_THRESHOLD_FAILED = 1
EXIT_CONFIG_ERROR = 2


@app.callback()
def main() -> None:
    """EVA QA - explore, validate, analyze."""


def _build_overrides(
    base_url: str,
    max_depth: Optional[int],
    max_states: Optional[int],
    viewports: Optional[List[str]],
    visible: bool,
    output: Optional[str],
    verbose: bool,
) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {"base_url": base_url}
    exploration: Dict[str, Any] = {}
    if max_depth is not None:
        exploration["max_depth"] = max_depth
    if max_states is not None:
        exploration["max_states"] = max_states
    if viewports:
        exploration["viewports"] = viewports
    if exploration:
        overrides["exploration"] = exploration
    if visible:
        overrides["headless"] = False
    if output:
        overrides["output"] = {"dir": output}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}
    return overrides


@app.command()
def explore(
    base_url: str = typer.Argument(..., help="Base URL of the application to explore"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", "-d", help="Maximum exploration depth"),
    max_states: Optional[int] = typer.Option(None, "--max-states", "-s", help="Maximum number of states"),
    viewport: Optional[List[str]] = typer.Option(
        None, "--viewport", help="Viewport preset (repeatable): mobile, tablet, desktop, wide"
    ),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Report output directory"),
    max_critical: int = typer.Option(0, "--max-critical", help="Critical issues allowed before failing"),
    max_serious: int = typer.Option(0, "--max-serious", help="Serious issues allowed before failing"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Explore an application and report issues.

    Examples:
        eva-qa explore http://localhost:3000
        eva-qa explore https://staging.example.com --viewport mobile --max-states 50
    """
    overrides = _build_overrides(base_url, max_depth, max_states, viewport, visible, output, verbose)

    try:
        settings = load_config(config_path=config, **overrides)
        settings.resolve_start_urls()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    setup_logging(settings.logging.level, settings.logging.file, console=console)

    console.print(Panel.fit(
        f"[bold blue]EVA QA[/bold blue]\n"
        f"[dim]Target:[/dim] {settings.base_url}\n"
        f"[dim]Viewports:[/dim] {', '.join(settings.exploration.viewports)}\n"
        f"[dim]Limits:[/dim] depth {settings.exploration.max_depth}, "
        f"{settings.exploration.max_states} states",
        border_style="blue",
    ))

    try:
        result = asyncio.run(_explore_async(settings))
    except BrowserLaunchError as e:
        console.print(f"[red]Could not start browser: {e.message}[/red]")
        raise typer.Exit(EXIT_THRESHOLD_FAILED)

    report = ExplorationReport(result)
    report_path = report.export_json(Path(settings.output.dir) / "exploration.json")
    _print_summary(result)
    console.print(f"\n[dim]Report written to {report_path}[/dim]")

    if not report.passed(max_critical=max_critical, max_serious=max_serious):
        console.print("[red]✗ Issue threshold exceeded[/red]")
        raise typer.Exit(EXIT_THRESHOLD_FAILED)
    console.print("[green]✓ Passed[/green]")


async def _explore_async(settings: Settings) -> ExplorationResult:
    """Launch the browser, explore, and always close the browser."""
    browser = PlaywrightBrowser()
    explorer = Explorer(settings, browser)
    explorer.on(STATE_VISITED, lambda e: console.print(
        f"[cyan]●[/cyan] {e['state'].path} [dim]({e['state'].viewport}, depth {e['depth']})[/dim]"
    ))
    explorer.on(ISSUE_FOUND, lambda e: console.print(
        f"  [yellow]![/yellow] {e['issue'].severity.value}: {e['issue'].description}"
    ))

    await browser.launch(headless=settings.headless, browser_type=BrowserType(settings.browser))
    try:
        return await explorer.explore()
    finally:
        await browser.close()


def _print_summary(result: ExplorationResult) -> None:
    summary = result.summary
    table = Table(title="Exploration summary", show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value")
    table.add_row("States", str(summary.states_explored))
    table.add_row("Actions", str(summary.actions_performed))
    table.add_row("Failed actions", str(summary.failed_actions))
    table.add_row("States skipped", str(summary.states_skipped))
    table.add_row("Duration", f"{summary.duration_ms / 1000:.1f}s")
    for severity, count in summarize_issues(result.issues).items():
        table.add_row(f"Issues ({severity})", str(count))
    console.print()
    console.print(table)

    for error in result.errors:
        console.print(f"[red]✗ {error}[/red]")


if __name__ == "__main__":
    app()

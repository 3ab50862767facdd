#!/usr/bin/env python3
"""
Azure VM Image Browser CLI - browse the VM image catalog and report on one image.

Features:
- Paginated, filterable browsing of publishers, offers and SKUs
- Automatic resolution of the latest image version
- Markdown report with image reference, versions, metadata and deployment snippets

Usage:
    python main.py
    python main.py --region westeurope --page-size 30
    python main.py browse --region westeurope --page-size 30
    python main.py browse --microsoft-only --publisher-search windows
"""
import logging
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.markup import escape
from rich import box
from dotenv import load_dotenv

from config import Settings, APP_VERSION
from catalog_client import CatalogClient, PrerequisiteMissing
from workflow import ImageBrowser, WorkflowResult
from report_exporter import export_report


# Load environment variables
load_dotenv()

app = typer.Typer(
    name="vm-image-browser",
    help="""Azure VM Image Browser

Browse publishers, offers and SKUs interactively and generate a Markdown
report for the selected image.

[bold]Quick Start:[/bold]
  Run without arguments to browse with defaults:
    python main.py

  Or pick a region:
    python main.py browse -r eastus""",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=False,
)
console = Console()


def configure_logging(verbose: bool = False):
    """Configure root logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()],
        force=True,
    )


def create_header():
    """Print the tool banner."""
    console.print()
    console.print(f"  [bold bright_cyan]Azure VM Image Browser[/] [dim]v{APP_VERSION}[/]")
    console.print()


def create_result_panel(result: WorkflowResult) -> Panel:
    """Create a summary panel for a finished browse run."""
    s = result.selection
    detail_status = "[green]available[/green]" if s.detail else "[yellow]unavailable (N/A placeholders)[/yellow]"
    content = f"""
[bold]Publisher:[/bold] {escape(s.publisher)}
[bold]Offer:[/bold] {escape(s.offer)}
[bold]SKU:[/bold] {escape(s.sku)}
[bold]Version:[/bold] {escape(s.version)} ({len(s.versions)} listed)
[bold]Region:[/bold] {escape(s.region)}
[bold]Details:[/bold] {detail_status}

[bold cyan]Quick URI[/bold cyan]
  {escape(s.quick_uri)}

[bold cyan]Report[/bold cyan]
  {escape(result.report_path)}
"""
    return Panel(
        content,
        title="[bold]Image Report[/bold]",
        border_style="green",
        box=box.ROUNDED,
    )


@app.command()
def browse(
    region: Optional[str] = typer.Option(
        None, "--region", "-r",
        help="Azure region to browse (default: westeurope or IMAGE_BROWSER_REGION)",
    ),
    page_size: Optional[int] = typer.Option(
        None, "--page-size", "-p", min=1,
        help="Number of items shown per page (default: 20)",
    ),
    microsoft_only: bool = typer.Option(
        False, "--microsoft-only", "-m",
        help="Only list publishers whose name starts with 'Microsoft'",
    ),
    publisher_search: str = typer.Option(
        "", "--publisher-search", "-s",
        help="Only list publishers whose name contains this text",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", "-o",
        help="Directory the Markdown report is written to (default: current directory)",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable debug logging",
    ),
):
    """
    Browse the VM image catalog and write a report for the chosen image.

    Walks publisher -> offer -> SKU, resolves the newest version, and writes
    <prefix>-<publisher>-<offer>-<sku>-<date>.md.

    Navigation: enter a number to select, n/p for next/previous page,
    s to select by number, f to filter, q to quit.
    """
    configure_logging(verbose)
    create_header()

    settings = Settings()
    region = region or settings.region
    page_size = page_size or settings.page_size
    output_dir = output_dir or settings.output_dir

    client = CatalogClient(az_path=settings.az_cli_path)
    try:
        with console.status("[cyan]Checking Azure CLI login...[/cyan]"):
            account = client.check_prerequisites()
    except PrerequisiteMissing as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    account_name = account.get("name") if isinstance(account, dict) else None
    if account_name:
        console.print(f"[dim]Using subscription:[/dim] {escape(account_name)}")
    console.print(f"[dim]Region:[/dim] {escape(region)}")

    browser = ImageBrowser(
        client,
        region=region,
        report_writer=export_report,
        page_size=page_size,
        microsoft_only=microsoft_only,
        publisher_search=publisher_search,
        output_dir=output_dir,
        report_prefix=settings.report_prefix,
        recent_versions=settings.recent_versions,
        console=console,
    )
    try:
        result = browser.run()
    except OSError as e:
        console.print(f"[red]Error writing report: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not result.succeeded:
        raise typer.Exit(result.exit_code)

    console.print()
    console.print(create_result_panel(result))


@app.command()
def version():
    """Show version information."""
    console.print("\n[bold cyan]Azure VM Image Browser[/bold cyan]")
    console.print(f"Version: {APP_VERSION}")
    console.print()


def main():
    """Main entry point."""
    args = sys.argv[1:]
    # Without a command, browse; options alone are browse options
    if not args or (args[0].startswith("-") and args[0] != "--help"):
        app(args=["browse"] + args)
    else:
        app()


if __name__ == "__main__":
    main()

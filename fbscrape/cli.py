"""
CLI interface for fbscrape.

Provides a command-line front end over the scraper tools:
- Backend status table
- Page / post / comments scraping
- Search
- Offline URL classification and HTML extraction

Results are printed to stdout as JSON; logs go to stderr.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .config import Config, STRATEGIES
from .errors import ConfigurationError
from .tools import ScraperTools

console = Console()
err_console = Console(stderr=True)

strategy_option = click.option(
    '--strategy', '-s',
    type=click.Choice(list(STRATEGIES)),
    default=None,
    help='Force one backend (default: config default_strategy)',
)


def setup_logging(level: str, log_file: Optional[str] = None) -> None:
    """Configure logging."""
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


async def _call_tool(config: Config, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    tools = ScraperTools.create(config)
    try:
        return await tools.call(name, arguments)
    finally:
        # Runs on Ctrl+C too: asyncio.run cancels the task
        await tools.close()


def _run_tool(ctx, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Run one tool call, print its JSON result, exit 1 on failure."""
    config = ctx.obj['config']
    try:
        result = asyncio.run(_call_tool(config, name, arguments))
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        raise SystemExit(130)

    console.print_json(data=result)
    if not result.get("success", False):
        if result.get("kind") == "delegation_required":
            err_console.print("[yellow]Delegation required: run the returned instructions in a browser[/yellow]")
        raise SystemExit(1)
    return result


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True), help='Config file path')
@click.option('--log-level', '-l', default=None, help='Log level')
@click.option('--log-file', type=click.Path(), default=None, help='Also log to this file')
@click.pass_context
def cli(ctx, config, log_level, log_file):
    """
    fbscrape - Resilient Facebook Public Content Scraper

    Scrapes public posts, pages, comments and search results through
    Bright Data, Firecrawl, a delegated Playwright MCP or a local browser,
    falling back between them automatically.
    """
    ctx.ensure_object(dict)

    try:
        if config:
            ctx.obj['config'] = Config.from_file(Path(config))
        else:
            ctx.obj['config'] = Config.from_env()
    except ConfigurationError as e:
        for error in e.errors:
            err_console.print(f"[red]Config error: {error}[/red]")
        raise SystemExit(2)

    if log_level:
        ctx.obj['config'].log_level = log_level
    if log_file:
        ctx.obj['config'].log_file = log_file

    errors = ctx.obj['config'].validate()
    if errors:
        for error in errors:
            err_console.print(f"[red]Config error: {error}[/red]")
        raise SystemExit(2)

    setup_logging(ctx.obj['config'].log_level, ctx.obj['config'].log_file)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@click.pass_context
def status(ctx, as_json):
    """Show detected backends and configuration."""
    config = ctx.obj['config']
    result = asyncio.run(_call_tool(config, "fb_status", {}))

    if as_json:
        console.print_json(data=result)
        return

    table = Table(title=f"fbscrape {result['version']} backends")
    table.add_column("Priority", style="cyan", justify="right")
    table.add_column("Backend", style="bold")
    table.add_column("Available")
    table.add_column("Reason", style="dim")

    for backend in result['backends']:
        available = "[green]yes[/green]" if backend['available'] else "[red]no[/red]"
        table.add_row(str(backend['priority']), backend['name'], available, backend['reason'])

    console.print(table)
    console.print(f"Fallback order: [cyan]{' -> '.join(result['priority_order'])}[/cyan]")
    console.print(f"Default strategy: [cyan]{result['config']['default_strategy']}[/cyan]")


@cli.command()
@click.argument('page_url')
@click.option('--limit', '-n', type=click.IntRange(1, 50), default=20, help='Maximum posts')
@strategy_option
@click.pass_context
def page(ctx, page_url, limit, strategy):
    """
    Scrape posts from a public page or profile.

    Examples:

        fbscrape page https://www.facebook.com/nasa

        fbscrape page https://www.facebook.com/nasa --limit 5 --strategy firecrawl
    """
    _run_tool(ctx, "fb_scrape_page", {"page_url": page_url, "limit": limit, "strategy": strategy})


@cli.command()
@click.argument('post_url')
@click.option('--comments/--no-comments', default=False, help='Also extract comments')
@strategy_option
@click.pass_context
def post(ctx, post_url, comments, strategy):
    """Scrape a single post."""
    _run_tool(ctx, "fb_scrape_post", {
        "post_url": post_url,
        "include_comments": comments,
        "strategy": strategy,
    })


@cli.command()
@click.argument('post_url')
@click.option('--limit', '-n', type=click.IntRange(1, 100), default=50, help='Maximum comments')
@strategy_option
@click.pass_context
def comments(ctx, post_url, limit, strategy):
    """Scrape comments from a post."""
    _run_tool(ctx, "fb_scrape_comments", {"post_url": post_url, "limit": limit, "strategy": strategy})


@cli.command()
@click.argument('query')
@click.option('--type', '-t', 'search_type',
              type=click.Choice(['posts', 'pages', 'groups', 'events', 'marketplace']),
              default='posts', help='What to search for')
@click.option('--limit', '-n', type=click.IntRange(1, 50), default=10, help='Maximum results')
@strategy_option
@click.pass_context
def search(ctx, query, search_type, limit, strategy):
    """
    Search public content.

    Examples:

        fbscrape search "climate change"

        fbscrape search "running club" --type groups --limit 20
    """
    _run_tool(ctx, "fb_search", {
        "query": query,
        "type": search_type,
        "limit": limit,
        "strategy": strategy,
    })


@cli.command(name='parse-url')
@click.argument('url')
@click.pass_context
def parse_url(ctx, url):
    """Classify a Facebook URL (no network access)."""
    _run_tool(ctx, "fb_parse_url", {"url": url})


@cli.command()
@click.argument('html_file', type=click.File('r', encoding='utf-8'))
@click.option('--type', '-t', 'extract_type',
              type=click.Choice(['posts', 'page', 'comments']),
              default='posts', help='What to extract')
@click.pass_context
def extract(ctx, html_file, extract_type):
    """
    Extract structured data from saved HTML (use - for stdin).

    Examples:

        fbscrape extract page.html

        curl -s ... | fbscrape extract - --type comments
    """
    _run_tool(ctx, "fb_extract_data", {"html": html_file.read(), "type": extract_type})


@cli.command()
@click.pass_context
def init(ctx):
    """Create a configuration file interactively."""
    console.print(Panel.fit(
        "[bold blue]fbscrape Setup[/bold blue]\n\n"
        "Credentials are optional: without them only the local browser\n"
        "backend is used.",
        title="Welcome"
    ))

    config = Config(
        brightdata_token=Prompt.ask("Bright Data API token", default="") or None,
        firecrawl_api_key=Prompt.ask("Firecrawl API key", default="") or None,
        playwright_mcp_enabled=Confirm.ask("Enable delegated Playwright MCP?", default=False),
        default_strategy=Prompt.ask("Default strategy", choices=list(STRATEGIES), default="auto"),
        headless=Confirm.ask("Run the local browser headless?", default=True),
    )

    config_path = Path("fbscrape_config.json")
    config.to_file(config_path)

    console.print(f"\n[green]Configuration saved to: {config_path}[/green]")
    console.print("\nYou can now run:")
    console.print(f"  [cyan]fbscrape -c {config_path} status[/cyan]")


def main():
    """Entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()

"""
SiteFeed command line interface.

Usage:
    sitefeed enhance                     # Enhance dist/rss.xml after a build
    sitefeed enhance --last-build-time 2024-05-01T00:00:00Z
    sitefeed check-config                # Show and validate configuration
    sitefeed clear-cache                 # Drop all cached sanitized content
    sitefeed media-container --ratio 16:9 '<img src="/a.png">'
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from sitefeed.cache.post_cache import PostCache
from sitefeed.components.media_container import MediaContainer, stylesheet
from sitefeed.config.settings import EnhancerSettings, SiteFeedSettings, get_settings
from sitefeed.feed.document import parse_timestamp
from sitefeed.processing.feed_enhancer import EnhancementReport, FeedContentEnhancer
from sitefeed.utils.exceptions import SiteFeedError, get_user_friendly_message
from sitefeed.utils.logging import configure_application_logging
from sitefeed.utils.process_lock import build_lock

console = Console()
err_console = Console(stderr=True)


def _load_settings() -> SiteFeedSettings:
    try:
        return get_settings()
    except SiteFeedError as e:
        err_console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)


def _configure_logging(settings: SiteFeedSettings, debug: bool) -> None:
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


def _parse_build_time(ctx, param, value: Optional[str]):
    if value is None:
        return None
    timestamp = parse_timestamp(value)
    if timestamp is None:
        raise click.BadParameter(f"not an ISO-8601 or RFC-2822 timestamp: {value!r}")
    return timestamp


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """SiteFeed - build-time RSS content enhancement."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--dist-dir', help='Build output directory')
@click.option('--cache-dir', help='Sanitized content cache directory')
@click.option('--last-build-time', callback=_parse_build_time,
              help='Timestamp of the previous build (ISO-8601)')
@click.option('--strict', is_flag=True, help='Exit with status 2 when any item fails')
@click.pass_context
def enhance(ctx, dist_dir, cache_dir, last_build_time, strict):
    """Attach sanitized post content to every feed item."""
    settings = _load_settings()
    _configure_logging(settings, ctx.obj.get('debug', False))

    overrides = {
        key: value
        for key, value in (
            ("dist_dir", dist_dir),
            ("cache_dir", cache_dir),
            ("last_build_time", last_build_time),
        )
        if value is not None
    }
    enhancer_settings = EnhancerSettings(**{**settings.enhancer.model_dump(), **overrides})

    try:
        with build_lock(enhancer_settings.cache_dir):
            report = FeedContentEnhancer(enhancer_settings).run()
    except SiteFeedError as e:
        err_console.print(f"[bold red]❌ {e}[/bold red]")
        sys.exit(1)

    console.print(_report_table(report))

    if report.failed:
        console.print(f"[bold yellow]⚠️  {len(report.failed)} items kept their original content[/bold yellow]")
        if strict:
            sys.exit(2)
    else:
        console.print("[bold green]✅ Feed enhanced[/bold green]")


def _report_table(report: EnhancementReport) -> Table:
    table = Table(title="Feed Enhancement")
    table.add_column("Item", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for slug in report.sanitized:
        table.add_row(slug, "[green]sanitized[/green]", "")
    for slug in report.from_cache:
        table.add_row(slug, "[blue]cached[/blue]", "")
    for slug, message in report.failed.items():
        table.add_row(slug, "[red]failed[/red]", message)

    if report.duration_seconds is not None:
        table.caption = f"{report.total_items} items in {report.duration_seconds:.2f}s"
    return table


@cli.command('check-config')
def check_config():
    """Show effective configuration and validate it."""
    settings = _load_settings()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    enhancer = settings.enhancer
    table.add_row("Feed document", str(enhancer.feed_path))
    table.add_row("Post pages", str(enhancer.posts_path))
    table.add_row("Cache directory", enhancer.cache_dir)
    table.add_row("Last build time", enhancer.last_build_time.isoformat() if enhancer.last_build_time else "not set")
    table.add_row("Description length", str(enhancer.description_length))
    table.add_row("Asset prefix", enhancer.asset_prefix)
    table.add_row("Log level", settings.get_effective_log_level())
    table.add_row("Log file", settings.logging.file_path or "console only")
    console.print(table)

    if not enhancer.feed_path.is_file():
        console.print(f"[bold yellow]⚠️  Feed document not found yet: {enhancer.feed_path}[/bold yellow]")
    console.print("[bold green]✅ Configuration is valid[/bold green]")


@cli.command('clear-cache')
@click.option('--cache-dir', help='Sanitized content cache directory')
def clear_cache(cache_dir):
    """Remove every cached sanitized fragment."""
    settings = _load_settings()
    target = cache_dir or settings.enhancer.cache_dir

    try:
        with build_lock(target):
            removed = PostCache(target).clear()
    except SiteFeedError as e:
        err_console.print(f"[bold red]❌ {e}[/bold red]")
        sys.exit(1)

    console.print(f"🧹 Removed {removed} cache entries from {target}")


@cli.command('media-container')
@click.argument('children', required=False, default="")
@click.option('--ratio', help='Aspect ratio as W:H, e.g. 16:9')
@click.option('--on-click', help='JavaScript run on click')
@click.option('--class-name', help='Extra CSS classes')
@click.option('--css', is_flag=True, help='Print the container stylesheet instead')
def media_container(children, ratio, on_click, class_name, css):
    """Render a media container around CHILDREN markup."""
    if css:
        click.echo(stylesheet())
        return

    try:
        container = MediaContainer(aspect_ratio=ratio, on_click=on_click, class_name=class_name)
        click.echo(container.render(children))
    except SiteFeedError as e:
        raise click.UsageError(get_user_friendly_message(e))


def main() -> None:
    cli(obj={})


if __name__ == '__main__':
    main()

"""Click CLI for inspecting and editing a tiercache directory."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tiercache.cache.disk import validate_key
from tiercache.cache.engine import TieredCache
from tiercache.cache.keys import key_for
from tiercache.config.schema import load_settings
from tiercache.errors.exceptions import InvalidKeyError

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    level = getattr(logging, default_level, logging.WARNING)
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _check_key(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_key(value)
    except InvalidKeyError as e:
        raise click.BadParameter(e.message) from e


def _open_cache(ctx: click.Context) -> TieredCache:
    """Build the cache for a command that needs one; closed when the command ends."""
    cache = TieredCache.from_settings(ctx.obj["settings"])
    ctx.call_on_close(cache.close)
    return cache


@click.group()
@click.version_option(package_name="tiercache")
@click.option(
    "--cache-dir", type=click.Path(file_okay=False), default=None, help="Cache directory."
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, cache_dir: str | None, verbose: int) -> None:
    """tiercache — two-tier memory + disk key-value cache."""
    settings = load_settings(cache_dir=cache_dir)
    _setup_logging(verbose, settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command("key")
@click.argument("prefix")
@click.argument("identifier")
def key_cmd(prefix: str, identifier: str) -> None:
    """Print the cache key derived from PREFIX and IDENTIFIER."""
    console.print(key_for(prefix, identifier), highlight=False, soft_wrap=True)


@cli.command("set")
@click.argument("key", callback=_check_key)
@click.argument("value")
@click.option("--ttl", type=float, default=None, help="Seconds until expiry (0 = never).")
@click.pass_context
def set_cmd(ctx: click.Context, key: str, value: str, ttl: float | None) -> None:
    """Store VALUE as text under KEY."""
    cache = _open_cache(ctx)
    cache.set_string(key, value, ttl=ttl, use_memory=False)
    cache.flush()
    console.print(f"[green]Stored {key}[/green]")


@cli.command("get")
@click.argument("key", callback=_check_key)
@click.pass_context
def get_cmd(ctx: click.Context, key: str) -> None:
    """Print the text stored under KEY."""
    cache = _open_cache(ctx)
    value = cache.get_string(key, use_memory=False)
    cache.flush()
    if value is None:
        error_console.print(f"[yellow]No entry for {key}[/yellow]")
        sys.exit(1)
    console.print(value, highlight=False, markup=False, soft_wrap=True)


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("key", callback=_check_key)
@click.option("--ttl", type=float, default=None, help="Seconds until expiry (0 = never).")
@click.pass_context
def import_cmd(ctx: click.Context, path: str, key: str, ttl: float | None) -> None:
    """Copy the file at PATH into the cache under KEY."""
    cache = _open_cache(ctx)
    cache.copy_file(path, key, ttl=ttl)
    cache.flush()
    console.print(f"[green]Imported {path} as {key}[/green]")


@cli.command("export")
@click.argument("key", callback=_check_key)
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def export_cmd(ctx: click.Context, key: str, path: str) -> None:
    """Write the raw bytes stored under KEY to PATH."""
    cache = _open_cache(ctx)
    data = cache.get_data(key, use_memory=False)
    cache.flush()
    if data is None:
        error_console.print(f"[yellow]No entry for {key}[/yellow]")
        sys.exit(1)
    Path(path).write_bytes(data)
    console.print(f"[green]Written to {path}[/green]")


@cli.command("has")
@click.argument("key", callback=_check_key)
@click.pass_context
def has_cmd(ctx: click.Context, key: str) -> None:
    """Exit 0 if KEY has an unexpired entry, 1 otherwise."""
    cache = _open_cache(ctx)
    if cache.has(key):
        console.print("yes")
        return
    console.print("no")
    sys.exit(1)


@cli.command("rm")
@click.argument("key", callback=_check_key)
@click.pass_context
def rm_cmd(ctx: click.Context, key: str) -> None:
    """Remove the entry for KEY."""
    cache = _open_cache(ctx)
    cache.remove(key)
    cache.flush()
    console.print(f"[green]Removed {key}[/green]")


@cli.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
@click.pass_context
def clear_cmd(ctx: click.Context) -> None:
    """Delete every cached entry."""
    cache = _open_cache(ctx)
    cache.clear()
    cache.flush()
    console.print("[green]Cache cleared.[/green]")


@cli.command("stats")
@click.pass_context
def stats_cmd(ctx: click.Context) -> None:
    """Show cache statistics."""
    cache = _open_cache(ctx)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    stats = cache.stats()
    table.add_row("Directory", str(cache.cache_dir))
    table.add_row("Entries", str(stats.disk_entries))
    table.add_row("Size (MB)", f"{stats.disk_size_mb:.1f}")
    table.add_row("Default TTL (s)", f"{cache.default_ttl:g}")

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()

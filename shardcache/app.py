# ==============================================================================
# shardcache CLI
# ==============================================================================
"""
Command-line interface for operating a sharded cache.

Usage:
    shardcache --help
    shardcache status
    shardcache config show
    shardcache route user:1
    shardcache get cart:7 --field sku:9
    shardcache evict user:1 user:2
"""

import os

import typer

from shardcache.cli.shared import configure_logging

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="shardcache",
    help="Sharded Redis cache operations CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def _main() -> None:
    """Sharded Redis cache operations CLI"""
    configure_logging()


config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# config show
from shardcache.cli.config import config_show

config_app.command("show")(config_show)

# Shard health
from shardcache.cli.status import show_status

app.command("status")(show_status)

# Key-level commands
from shardcache.cli.cache import cache_evict, cache_get, cache_route

app.command("route")(cache_route)
app.command("get")(cache_get)
app.command("evict")(cache_evict)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

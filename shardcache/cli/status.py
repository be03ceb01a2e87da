# ==============================================================================
# Status Command
# ==============================================================================
"""
`shardcache status`: ping every configured shard.

Each shard gets up to 3 attempts. Exits with code 1 if any shard is down.
"""

import json
from typing import Annotated

import typer

from shardcache.cli.shared import badge, panel
from shardcache.infrastructure.cache import check_shard_connections
from shardcache.infrastructure.pool import ShardedRedisPool
from shardcache.utils.config import get_settings


def show_status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output status as JSON")] = False,
) -> None:
    """Check connectivity of every shard."""
    pool = ShardedRedisPool.from_settings(get_settings().redis)
    try:
        reachable = check_shard_connections(pool)
    finally:
        pool.close()
    healthy = all(reachable.values())

    if json_output:
        shards = [{"name": s.name, "url": s.url, "reachable": reachable[s.name]} for s in pool.shards]
        print(json.dumps({"shards": shards, "healthy": healthy}, indent=2))
    else:
        rows = [
            f"{s.name:<14}{s.url:<40}{badge(reachable[s.name], 'up' if reachable[s.name] else 'down')}"
            for s in pool.shards
        ]
        print(panel("shard status", rows))

    if not healthy:
        raise typer.Exit(code=1)

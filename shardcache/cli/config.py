# ==============================================================================
# Config Command
# ==============================================================================
"""
`shardcache config show`: print the effective shard and cache settings.
"""

import json
from typing import Annotated

import typer

from shardcache.cli.shared import S, panel
from shardcache.utils.config import Settings, get_settings


def _as_dict(settings: Settings) -> dict:
    redis = settings.redis
    return {
        "shards": [{"name": s.name, "url": s.url, "weight": s.weight} for s in redis.shard_infos],
        "pool": {
            "max_active": redis.max_active,
            "borrow_timeout": redis.borrow_timeout,
            "max_connections": redis.max_connections,
            "socket_timeout": redis.socket_timeout,
            "health_check_interval": redis.health_check_interval,
            "key_tag_pattern": redis.key_tag_pattern,
        },
        "cache": {"hash_expire": settings.cache.hash_expire},
        "log_level": settings.log_level,
        "debug": settings.debug,
    }


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration."""
    config = _as_dict(get_settings())
    if json_output:
        print(json.dumps(config, indent=2))
        return

    pool = config["pool"]
    hash_expire = config["cache"]["hash_expire"]
    rows = [f"{S.BOLD}{s['name']:<14}{S.RESET}{s['url']}  x{s['weight']}" for s in config["shards"]]
    rows += [
        "",
        f"{S.DIM}handles{S.RESET}       {pool['max_active']}, waiting up to {pool['borrow_timeout']}s",
        f"{S.DIM}connections{S.RESET}   {pool['max_connections']} per shard, {pool['socket_timeout']}s timeout",
        f"{S.DIM}key tags{S.RESET}      {pool['key_tag_pattern'] or 'off'}",
        f"{S.DIM}hash ttl{S.RESET}      {f'{hash_expire}s' if hash_expire >= 0 else 'per entry'}",
    ]
    print(panel("shardcache config", rows))

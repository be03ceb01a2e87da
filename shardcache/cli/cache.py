# ==============================================================================
# Cache Commands
# ==============================================================================
"""
Key-level commands for the shardcache CLI: route, get and evict.
"""

import json
from typing import Annotated, Optional

import typer

from shardcache.cli.shared import G, S
from shardcache.core.exceptions import ConnectionCenterError
from shardcache.core.models import make_cache_key
from shardcache.core.results import OpStatus
from shardcache.infrastructure.cache import get_sharded_cache_manager
from shardcache.infrastructure.sharding import ShardRing
from shardcache.utils.config import get_settings

NamespaceOption = Annotated[
    Optional[str], typer.Option("--namespace", "-n", help="Namespace prefix of the key")
]
FieldOption = Annotated[
    Optional[str], typer.Option("--field", "-f", help="Hash field (selects the hash layout)")
]


def cache_route(
    key: Annotated[str, typer.Argument(help="Cache key")],
    namespace: NamespaceOption = None,
) -> None:
    """Show which shard owns a key (no connection is made)."""
    settings = get_settings()
    ring = ShardRing(settings.redis.shard_infos, key_tag_pattern=settings.redis.key_tag_pattern)
    cache_key = make_cache_key(key, namespace=namespace)
    shard = ring.get_shard_info(cache_key.cache_key)
    print(f"{cache_key.cache_key} {G.ARROW} {S.BOLD}{shard.name}{S.RESET} ({shard.url})")


def cache_get(
    key: Annotated[str, typer.Argument(help="Cache key")],
    field: FieldOption = None,
    namespace: NamespaceOption = None,
) -> None:
    """Read an entry and print it as JSON."""
    manager = get_sharded_cache_manager()
    try:
        wrapper = manager.get(make_cache_key(key, field=field, namespace=namespace))
    except ConnectionCenterError as e:
        print(f"{S.RED}{G.CROSS} No shard connection available: {e}{S.RESET}")
        raise typer.Exit(code=1)
    finally:
        manager.pool.close()

    if wrapper is None:
        print(f"{S.YELLOW}(miss){S.RESET}")
        raise typer.Exit(code=1)
    print(json.dumps(wrapper.model_dump(mode="json"), indent=2))


def cache_evict(
    keys: Annotated[list[str], typer.Argument(help="Cache keys to delete")],
    field: FieldOption = None,
    namespace: NamespaceOption = None,
) -> None:
    """Delete one or more keys (or one field of each, with --field)."""
    manager = get_sharded_cache_manager()
    try:
        result = manager.try_delete([make_cache_key(k, field=field, namespace=namespace) for k in keys])
    finally:
        manager.pool.close()

    if result.status is OpStatus.FATAL:
        print(f"{S.RED}{G.CROSS} No shard connection available: {result.error}{S.RESET}")
        raise typer.Exit(code=1)
    if result.error is not None:
        print(f"{S.RED}{G.CROSS} Evict failed: {result.error}{S.RESET}")
        raise typer.Exit(code=1)
    print(f"{S.GREEN}{G.CHECK} Evicted {len(keys)} key(s){S.RESET}")

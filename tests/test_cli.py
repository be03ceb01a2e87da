# ==============================================================================
# Tests for the CLI
# ==============================================================================
"""
Tests for the shardcache typer app, run through typer's CliRunner.

Settings come from SHARDCACHE_* environment variables; the cached
settings are cleared around every test.
"""

import json

import pytest
from typer.testing import CliRunner

from shardcache.app import app
from shardcache.core.exceptions import ConnectionCenterError
from shardcache.core.models import CacheWrapper, FlatKey, HashKey
from shardcache.infrastructure.sharding import ShardRing
from shardcache.utils.config import get_settings, parse_shard_spec

SHARD_SPEC = "s1=redis://shard-1:6379/0,s2=redis://shard-2:6379/0"

runner = CliRunner()


@pytest.fixture(autouse=True)
def shard_env(monkeypatch):
    """Point the CLI at the two test shards."""
    monkeypatch.setenv("SHARDCACHE_REDIS_SHARDS", SHARD_SPEC)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def cli_manager(manager, monkeypatch):
    """Make the key-level commands use the fakeredis-backed manager."""
    monkeypatch.setattr("shardcache.cli.cache.get_sharded_cache_manager", lambda: manager)
    return manager


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("config", "status", "route", "get", "evict"):
        assert command in result.output


def test_config_show_json():
    result = runner.invoke(app, ["config", "show", "--json"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert [s["name"] for s in config["shards"]] == ["s1", "s2"]
    assert config["cache"]["hash_expire"] == -1


def test_route_prints_owning_shard():
    expected = ShardRing(parse_shard_spec(SHARD_SPEC)).get_shard_info("user:1")

    result = runner.invoke(app, ["route", "1", "--namespace", "user"])

    assert result.exit_code == 0
    assert "user:1" in result.output
    assert expected.name in result.output
    assert expected.url in result.output


def test_get_prints_entry(cli_manager):
    cli_manager.set_cache(FlatKey("user:1"), CacheWrapper(cache_object={"name": "ada"}, expire=60))

    result = runner.invoke(app, ["get", "user:1"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["cache_object"] == {"name": "ada"}


def test_get_hash_field(cli_manager):
    cli_manager.set_cache(HashKey("cart:7", "sku:9"), CacheWrapper(cache_object=3))

    result = runner.invoke(app, ["get", "cart:7", "--field", "sku:9"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["cache_object"] == 3


def test_get_miss_exits_nonzero(cli_manager):
    result = runner.invoke(app, ["get", "absent"])

    assert result.exit_code == 1
    assert "miss" in result.output


def test_evict_deletes_keys(cli_manager, shard_clients):
    for key in ("user:1", "user:2"):
        cli_manager.set_cache(FlatKey(key), CacheWrapper(cache_object=key))

    result = runner.invoke(app, ["evict", "user:1", "user:2"])

    assert result.exit_code == 0
    assert "Evicted 2" in result.output
    assert all(client.dbsize() == 0 for client in shard_clients.values())


@pytest.mark.parametrize("reachable, exit_code", [({"s1": True, "s2": True}, 0), ({"s1": True, "s2": False}, 1)])
def test_status_json(monkeypatch, reachable, exit_code):
    monkeypatch.setattr("shardcache.cli.status.check_shard_connections", lambda pool: reachable)

    result = runner.invoke(app, ["status", "--json"])

    assert result.exit_code == exit_code
    status = json.loads(result.stdout)
    assert status["healthy"] is all(reachable.values())
    assert {s["name"]: s["reachable"] for s in status["shards"]} == reachable


@pytest.mark.parametrize("args", [["get", "user:1"], ["evict", "user:1"]])
def test_no_shard_connection_reported(cli_manager, args):
    cli_manager.pool.close()

    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert "No shard connection available" in result.output
    assert not isinstance(result.exception, ConnectionCenterError)

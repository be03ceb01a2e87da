# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv. The cache manager itself never reads settings;
only the factory functions and the CLI do.
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shardcache.infrastructure.sharding import ShardInfo

# Load .env file before any settings are instantiated
load_dotenv()


def parse_shard_spec(spec: str) -> list[ShardInfo]:
    """
    Parse a comma-separated shard list.

    Each entry is either a URL or name=URL. Unnamed shards are named
    shard-0, shard-1, ... by position.

    Args:
        spec: e.g. "a=redis://10.0.0.1:6379/0,redis://10.0.0.2:6379/0"

    Returns:
        ShardInfo for each entry, in order
    """
    shards = []
    for index, entry in enumerate(part.strip() for part in spec.split(",")):
        if not entry:
            continue
        name, sep, url = entry.partition("=")
        if not sep or "://" in name:
            name, url = f"shard-{index}", entry
        shards.append(ShardInfo(name=name.strip(), url=url.strip()))
    return shards


class RedisShardSettings(BaseSettings):
    """Redis shard connection settings."""

    model_config = SettingsConfigDict(env_prefix="SHARDCACHE_REDIS_")

    shards: str = Field(
        default="redis://localhost:6379/0",
        description="Comma-separated shard URLs, optionally prefixed with name=",
    )
    socket_timeout: int = Field(default=10, description="Socket timeout in seconds")
    max_connections: int = Field(default=50, description="Maximum connections per shard")
    max_active: int = Field(default=8, description="Maximum concurrently borrowed shard-set handles")
    borrow_timeout: float = Field(
        default=5.0, description="Seconds to wait for a shard-set handle before failing"
    )
    health_check_interval: int = Field(default=30, description="Health check interval in seconds")
    key_tag_pattern: Optional[str] = Field(
        default=None, description="Regex whose first group routes keys, e.g. '\\{(.+?)\\}'"
    )

    @property
    def shard_infos(self) -> list[ShardInfo]:
        """Parse the configured shard list."""
        return parse_shard_spec(self.shards)


class CacheSettings(BaseSettings):
    """Cache manager behaviour settings."""

    model_config = SettingsConfigDict(env_prefix="SHARDCACHE_CACHE_")

    hash_expire: int = Field(
        default=-1,
        description="TTL applied to hash containers; negative inherits the entry's expire",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SHARDCACHE_",
        extra="ignore",
    )

    # Nested settings
    redis: RedisShardSettings = Field(default_factory=RedisShardSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()

# ==============================================================================
# CLI Commands
# ==============================================================================
"""
Command implementations for the shardcache CLI. Wired up in shardcache.app.
"""

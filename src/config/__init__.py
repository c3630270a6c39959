"""Configuration loading for the replicator.

Usage:
    >>> from config import load_config
    >>> config = load_config()
    >>> config.search.index
    'products'

Settings come from ``config/config.yaml``; ``${VAR}`` placeholders are
expanded from the environment. Every required value is checked at load
time and the process refuses to start when one is missing.
"""

from config.config import (
    DeadLetterConfig,
    ReplicatorConfig,
    SearchConfig,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__ = [
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
    "ReplicatorConfig",
    "SearchConfig",
    "DeadLetterConfig",
]

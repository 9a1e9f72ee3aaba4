"""
govrelay Configuration

Loads the optional TOML file and the environment once at startup.
"""

from .loader import RelayerConfig, load_config, read_toml

__all__ = [
    "RelayerConfig",
    "load_config",
    "read_toml",
]

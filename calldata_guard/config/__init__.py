"""
Daemon configuration.
"""

from .settings import GuardConfig, get_config, get_version

__all__ = ["GuardConfig", "get_config", "get_version"]

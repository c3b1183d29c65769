"""
Protocol directory - registration lifecycle and persistence.
"""

from .directory import AllowlistRegistry, ProtocolEntry
from .store import RegistryStore

__all__ = [
    "AllowlistRegistry",
    "ProtocolEntry",
    "RegistryStore",
]

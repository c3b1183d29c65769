"""
Identity resolution for origins.
"""

from .resolver import IdentityResolver, StaticIdentityResolver, EnsIdentityResolver

__all__ = [
    "IdentityResolver",
    "StaticIdentityResolver",
    "EnsIdentityResolver",
]

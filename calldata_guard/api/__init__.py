"""
HTTP routes for the calldata guard daemon.
"""

from .allowlists import create_allowlist_routes

__all__ = ["create_allowlist_routes"]

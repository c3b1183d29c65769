"""
Identity resolution - map an origin name to the identity that controls it.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from web3 import Web3

from ...core.abi import ZERO_ADDRESS, normalize_identity
from ...core.errors import NotFoundError

logger = logging.getLogger("guard.identity")


class IdentityResolver(ABC):
    """Resolves `origin -> controlling identity`."""

    @abstractmethod
    def resolve_owner(self, origin: str) -> str:
        """
        Return the identity controlling `origin`.

        Raises NotFoundError if the origin cannot be resolved.
        """
        pass


class StaticIdentityResolver(IdentityResolver):
    """Resolver backed by a fixed origin -> owner mapping."""

    def __init__(self, owners: Optional[Dict[str, str]] = None):
        self._owners: Dict[str, str] = {
            origin: normalize_identity(owner) for origin, owner in (owners or {}).items()
        }

    def set_owner(self, origin: str, owner: str) -> None:
        self._owners[origin] = normalize_identity(owner)

    def resolve_owner(self, origin: str) -> str:
        owner = self._owners.get(origin)
        if owner is None:
            raise NotFoundError(f"Origin has no owner: {origin}")
        return owner

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticIdentityResolver":
        """Load a YAML mapping of `origin: owner`."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Owners file must be a mapping: {path}")
        logger.info(f"Loaded {len(data)} origin owners from {path}")
        return cls({str(k): str(v) for k, v in data.items()})


class EnsIdentityResolver(IdentityResolver):
    """Resolver using the ENS registry owner of the origin name."""

    def __init__(self, w3: Web3):
        self.w3 = w3

    def resolve_owner(self, origin: str) -> str:
        try:
            owner = self.w3.ens.owner(origin)
        except Exception as e:
            raise NotFoundError(f"ENS lookup failed for {origin}: {e}")

        if not owner or normalize_identity(owner) == ZERO_ADDRESS:
            raise NotFoundError(f"Origin has no ENS owner: {origin}")
        return normalize_identity(owner)

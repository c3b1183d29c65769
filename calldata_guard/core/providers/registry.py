"""
Provider registry - maps provider addresses back to provider objects.
"""

import logging
from typing import Dict, List, Optional

from ..abi import normalize_identity
from .base import ValidatorProvider

logger = logging.getLogger("guard.providers.registry")


class ProviderRegistry:
    """Known validator providers, keyed by address."""

    def __init__(self):
        self._providers: Dict[str, ValidatorProvider] = {}

    def register(self, provider: ValidatorProvider) -> None:
        """Register a provider under its address."""
        key = normalize_identity(provider.address)
        self._providers[key] = provider
        logger.info(f"Registered validator provider {key} ({type(provider).__name__})")

    def get(self, address: str) -> Optional[ValidatorProvider]:
        return self._providers.get(normalize_identity(address))

    def list_providers(self) -> List[Dict[str, object]]:
        return [
            {
                "address": address,
                "class": type(provider).__name__,
                "capabilities": provider.capabilities(),
            }
            for address, provider in self._providers.items()
        ]

    def __contains__(self, address: str) -> bool:
        return normalize_identity(address) in self._providers

    def __len__(self) -> int:
        return len(self._providers)

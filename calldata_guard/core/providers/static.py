"""
In-process validator providers backed by Python callables.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..abi import normalize_identity
from .base import ValidatorProvider

logger = logging.getLogger("guard.providers")

Predicate = Callable[[Any], bool]


class CallableValidatorProvider(ValidatorProvider):
    """Provider whose capabilities are plain Python predicates."""

    def __init__(self, address: str, predicates: Optional[Dict[str, Predicate]] = None):
        self.address = normalize_identity(address)
        self._predicates: Dict[str, Predicate] = dict(predicates or {})

    def register(self, name: str, predicate: Predicate) -> None:
        """Register (or replace) a capability."""
        self._predicates[name] = predicate
        logger.debug(f"Registered capability {name} on {self.address}")

    def has_capability(self, name: str) -> bool:
        return name in self._predicates

    def invoke(self, name: str, value: Any) -> bool:
        predicate = self._predicates.get(name)
        if predicate is None:
            return False
        return bool(predicate(value))

    def capabilities(self) -> List[str]:
        return list(self._predicates.keys())


class EmptyValidatorProvider(ValidatorProvider):
    """Provider exposing no capabilities; every referencing condition is invalid."""

    def __init__(self, address: str):
        self.address = normalize_identity(address)

    def has_capability(self, name: str) -> bool:
        return False

    def invoke(self, name: str, value: Any) -> bool:
        return False

"""
Base validator provider class.
"""

from abc import ABC, abstractmethod
from typing import Any, List


class ValidatorProvider(ABC):
    """
    A pluggable set of named boolean predicates.

    Allowlists reference providers by implementation id and only ever use
    this interface, so test doubles, in-process predicates and on-chain
    contracts are interchangeable.
    """

    address: str = ""

    @abstractmethod
    def has_capability(self, name: str) -> bool:
        """Check if the provider exposes a predicate called `name`."""
        pass

    @abstractmethod
    def invoke(self, name: str, value: Any) -> bool:
        """
        Evaluate predicate `name` against one value.

        Args:
            name: Capability name, e.g. "isVault"
            value: Call target or one decoded argument

        Returns:
            True if the value satisfies the predicate
        """
        pass

    def capabilities(self) -> List[str]:
        """List exposed capabilities, where the provider can enumerate them."""
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address!r})"

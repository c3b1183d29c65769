"""
On-chain validator provider.

Capabilities are single-argument view functions returning bool on a
deployed contract, e.g. `isVault(address)`. Introspection scans the
runtime bytecode for the PUSH4 of the function selector, the same way a
solidity dispatcher compares against it.
"""

import logging
from typing import Any, Dict, List, Optional

from eth_abi import decode, encode
from web3 import Web3

from ..abi import canonical_signature, method_selector, normalize_identity
from .base import ValidatorProvider

logger = logging.getLogger("guard.providers.contract")

PUSH4 = b"\x63"

# Argument types tried when introspecting a capability by name only
CANDIDATE_ARG_TYPES = ["address", "uint256", "bool", "bytes32", "bytes", "string"]


def infer_abi_type(value: Any) -> str:
    """Pick the ABI type used to pass a decoded value to a predicate."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "uint256" if value >= 0 else "int256"
    if isinstance(value, (bytes, bytearray)):
        return "bytes32" if len(value) == 32 else "bytes"
    if isinstance(value, str) and Web3.is_address(value):
        return "address"
    return "string"


class ContractValidatorProvider(ValidatorProvider):
    """Provider backed by a deployed predicate contract."""

    def __init__(
        self,
        w3: Web3,
        address: str,
        arg_types: Optional[Dict[str, str]] = None,
    ):
        self.w3 = w3
        self.address = normalize_identity(address)
        self._arg_types: Dict[str, str] = dict(arg_types or {})
        self._code: Optional[bytes] = None

    def _runtime_code(self) -> bytes:
        if self._code is None:
            self._code = bytes(self.w3.eth.get_code(self.address))
        return self._code

    def _implements(self, signature: str) -> bool:
        return PUSH4 + method_selector(signature) in self._runtime_code()

    def has_capability(self, name: str) -> bool:
        if name in self._arg_types:
            return self._implements(canonical_signature(name, [self._arg_types[name]]))

        return any(
            self._implements(canonical_signature(name, [arg_type]))
            for arg_type in CANDIDATE_ARG_TYPES
        )

    def invoke(self, name: str, value: Any) -> bool:
        arg_type = self._arg_types.get(name) or infer_abi_type(value)
        signature = canonical_signature(name, [arg_type])

        try:
            data = method_selector(signature) + encode([arg_type], [value])
            result = self.w3.eth.call({"to": self.address, "data": "0x" + data.hex()})
            (allowed,) = decode(["bool"], bytes(result))
            return bool(allowed)
        except Exception as e:
            # Reverts and malformed returns deny
            logger.warning(f"Predicate {signature} on {self.address} failed: {e}")
            return False

    def capabilities(self) -> List[str]:
        return sorted(self._arg_types.keys())

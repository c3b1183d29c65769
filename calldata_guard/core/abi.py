"""
ABI helpers - selectors, argument decoding, address normalization.

Thin wrappers around eth-abi and web3 so the rest of the package never
touches the encoding primitives directly.
"""

import logging
from typing import Any, Optional, Sequence, Tuple, Union

from eth_abi import decode, encode
from web3 import Web3

logger = logging.getLogger("guard.abi")

SELECTOR_LENGTH = 4
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def canonical_signature(method_name: str, param_types: Sequence[str]) -> str:
    """Build `name(type1,...,typeN)`."""
    return f"{method_name}({','.join(param_types)})"


def method_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 of a canonical signature."""
    return bytes(Web3.keccak(text=signature)[:SELECTOR_LENGTH])


def coerce_calldata(calldata: Union[bytes, bytearray, str]) -> Optional[bytes]:
    """
    Turn bytes or a hex string into bytes.

    Returns None for anything that is not valid hex, so callers on the
    read path can treat it as non-matching input.
    """
    if isinstance(calldata, (bytes, bytearray)):
        return bytes(calldata)

    if isinstance(calldata, str):
        text = calldata[2:] if calldata[:2].lower() == "0x" else calldata
        try:
            return bytes.fromhex(text)
        except ValueError:
            return None

    return None


def decode_arguments(
    param_types: Sequence[str], data: bytes
) -> Optional[Tuple[Any, ...]]:
    """
    Decode ABI-encoded arguments.

    Returns None on any decoding failure (short data, bad padding,
    unknown type string).
    """
    try:
        return tuple(decode(list(param_types), data))
    except Exception as e:
        logger.debug(f"Could not decode {list(param_types)}: {e}")
        return None


def encode_call(method_name: str, param_types: Sequence[str], args: Sequence[Any]) -> bytes:
    """Selector followed by the encoded arguments."""
    selector = method_selector(canonical_signature(method_name, param_types))
    return selector + encode(list(param_types), list(args))


def normalize_identity(value: Any) -> str:
    """Checksum addresses; leave other identities as plain strings."""
    text = str(value)
    if Web3.is_address(text):
        return Web3.to_checksum_address(text)
    return text


def same_identity(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return False
    return normalize_identity(a) == normalize_identity(b)

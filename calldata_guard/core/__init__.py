"""
Calldata policy core - conditions, allowlists and the validation algorithm.
"""

from .abi import (
    ZERO_ADDRESS,
    canonical_signature,
    method_selector,
    encode_call,
    normalize_identity,
)
from .condition import Condition, TargetCheck, ParamCheck, ValidationKind
from .allowlist import Allowlist
from .validation import validate_calldata, validate_calldata_by_allowlist
from .errors import (
    AllowlistError,
    UnauthorizedError,
    NotFoundError,
    NotRegisteredError,
    AlreadyExistsError,
    AlreadyRegisteredError,
    MalformedIdError,
    IndexOutOfRangeError,
    MissingCapabilityError,
    EmptyRuleSetError,
    InvalidConditionSetError,
    MalformedConditionError,
)

__all__ = [
    "ZERO_ADDRESS",
    "canonical_signature",
    "method_selector",
    "encode_call",
    "normalize_identity",
    "Condition",
    "TargetCheck",
    "ParamCheck",
    "ValidationKind",
    "Allowlist",
    "validate_calldata",
    "validate_calldata_by_allowlist",
    "AllowlistError",
    "UnauthorizedError",
    "NotFoundError",
    "NotRegisteredError",
    "AlreadyExistsError",
    "AlreadyRegisteredError",
    "MalformedIdError",
    "IndexOutOfRangeError",
    "MissingCapabilityError",
    "EmptyRuleSetError",
    "InvalidConditionSetError",
    "MalformedConditionError",
]

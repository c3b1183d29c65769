"""
Validator providers - named boolean predicates used by condition rules.
"""

from .base import ValidatorProvider
from .static import CallableValidatorProvider, EmptyValidatorProvider
from .contract import ContractValidatorProvider, infer_abi_type
from .registry import ProviderRegistry

__all__ = [
    "ValidatorProvider",
    "CallableValidatorProvider",
    "EmptyValidatorProvider",
    "ContractValidatorProvider",
    "infer_abi_type",
    "ProviderRegistry",
]

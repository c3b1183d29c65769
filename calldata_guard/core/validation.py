"""
Calldata validation - decide whether one call matches an allowlist.

Matching is an OR across conditions (first fully satisfied condition wins,
in insertion order) and an AND across the rules of a condition. Nothing in
the calldata can make this raise: undecodable input only makes a condition
not applicable.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from .abi import SELECTOR_LENGTH, coerce_calldata, decode_arguments
from .condition import Condition, ParamCheck, TargetCheck
from .providers import ValidatorProvider

if TYPE_CHECKING:
    from .allowlist import Allowlist

logger = logging.getLogger("guard.validation")


def _rule_passes(
    provider: ValidatorProvider,
    rule: Union[TargetCheck, ParamCheck],
    target: Any,
    args: Sequence[Any],
) -> bool:
    if isinstance(rule, TargetCheck):
        value = target
    else:
        if rule.param_index >= len(args):
            return False
        value = args[rule.param_index]

    try:
        return bool(provider.invoke(rule.capability_name, value))
    except Exception as e:
        logger.warning(
            f"Capability {rule.capability_name} on {provider.address} raised, denying: {e}"
        )
        return False


def condition_matches(
    condition: Condition,
    provider: Optional[ValidatorProvider],
    target: Any,
    calldata: bytes,
) -> bool:
    """
    Evaluate one condition against a call whose selector already matched.

    Returns False when arguments do not decode or the provider is missing.
    """
    args = decode_arguments(condition.param_types, calldata[SELECTOR_LENGTH:])
    if args is None:
        logger.debug(f"Condition {condition.id} not applicable: arguments do not decode")
        return False

    if provider is None:
        logger.debug(
            f"Condition {condition.id} not applicable: "
            f"no provider for {condition.implementation_id}"
        )
        return False

    for rule in condition.validations:
        if not _rule_passes(provider, rule, target, args):
            return False

    return True


def validate_calldata(
    allowlist: "Allowlist", target: Any, calldata: Union[bytes, str]
) -> bool:
    """Check whether `target` may be called with `calldata` under `allowlist`."""
    data = coerce_calldata(calldata)
    if data is None or len(data) < SELECTOR_LENGTH:
        return False

    incoming_selector = data[:SELECTOR_LENGTH]

    for condition in allowlist.conditions_list():
        if condition.selector != incoming_selector:
            continue

        provider = allowlist.get_implementation(condition.implementation_id)
        if condition_matches(condition, provider, target, data):
            logger.debug(f"Call to {target} allowed by condition {condition.id}")
            return True

    return False


def validate_calldata_by_allowlist(
    allowlist: "Allowlist", target: Any, calldata: Union[bytes, str]
) -> bool:
    """Standalone entry point: validate against an explicit allowlist instance."""
    return validate_calldata(allowlist, target, calldata)

"""
Allowlist - the rule set of one protocol.

Holds the ordered conditions a protocol permits and the validator
providers those conditions delegate to. Every mutation is owner-gated and
fully validated before any state changes, so a failed call is a no-op.
"""

import copy
import functools
import json
import logging
import uuid
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .abi import ZERO_ADDRESS, normalize_identity, same_identity
from .condition import Condition, ParamCheck, as_condition
from .errors import (
    AlreadyExistsError,
    IndexOutOfRangeError,
    InvalidConditionSetError,
    MalformedIdError,
    MissingCapabilityError,
    NotFoundError,
    UnauthorizedError,
)
from .providers import ValidatorProvider
from .validation import validate_calldata

logger = logging.getLogger("guard.allowlist")


def owner_only(method):
    """
    Require keyword `caller` to be the allowlist owner.

    The zero address never authorizes; templates and uninitialized clones
    are therefore immutable through this guard.
    """

    @functools.wraps(method)
    def wrapper(self, *args, caller, **kwargs):
        if same_identity(caller, ZERO_ADDRESS) or not same_identity(caller, self.owner_address):
            logger.warning(f"Rejected {method.__name__} on {self.name!r} from {caller}")
            raise UnauthorizedError(
                f"{caller} is not the owner of allowlist {self.name!r}"
            )
        return method(self, *args, **kwargs)

    return wrapper


def check_condition_id(condition_id: Any) -> None:
    if not isinstance(condition_id, str) or not condition_id:
        raise MalformedIdError("Condition id cannot be empty")
    if any(ch.isspace() for ch in condition_id):
        raise MalformedIdError(f"Condition id cannot contain whitespace: {condition_id!r}")


def check_param_indexes(condition: Condition) -> None:
    arity = len(condition.param_types)
    for rule in condition.validations:
        if isinstance(rule, ParamCheck) and rule.param_index >= arity:
            raise IndexOutOfRangeError(
                f"Condition {condition.id}: param index {rule.param_index} "
                f"out of range for {condition.signature}"
            )


class Allowlist:
    """
    Ordered, owner-controlled set of conditions for one origin.

    Conditions are keyed by their string id; positional access is derived
    from insertion order. Providers are keyed by implementation id.
    """

    def __init__(
        self,
        name: str = "",
        owner_address: str = ZERO_ADDRESS,
        implementations: Optional[Dict[str, ValidatorProvider]] = None,
    ):
        self.instance_id = uuid.uuid4().hex
        self._name = name
        self.owner_address = normalize_identity(owner_address)
        self._initialized = bool(name)
        self._implementations: "OrderedDict[str, ValidatorProvider]" = OrderedDict(
            implementations or {}
        )
        self._conditions: "OrderedDict[str, Condition]" = OrderedDict()

    # === Instantiation ===

    @property
    def name(self) -> str:
        return self._name

    def clone(self) -> "Allowlist":
        """
        Fresh, uninitialized instance sharing this template's providers.

        Conditions are never copied; each clone owns its own rule set.
        """
        instance = copy.copy(self)
        instance.instance_id = uuid.uuid4().hex
        instance._name = ""
        instance.owner_address = ZERO_ADDRESS
        instance._initialized = False
        instance._implementations = OrderedDict(self._implementations)
        instance._conditions = OrderedDict()
        return instance

    def initialize(self, name: str, owner_address: str) -> None:
        """Bind a cloned instance to its origin and owner, once."""
        if self._initialized:
            raise AlreadyExistsError(f"Allowlist {self._name!r} is already initialized")
        self._name = name
        self.owner_address = normalize_identity(owner_address)
        self._initialized = True
        logger.info(f"Initialized allowlist {name!r} owned by {self.owner_address}")

    # === Implementations ===

    @owner_only
    def set_implementation(self, implementation_id: str, provider: ValidatorProvider) -> None:
        """
        Add or replace a provider.

        Existing conditions are not re-validated here; conditions_valid()
        reflects the new provider the next time it is queried.
        """
        if not implementation_id:
            raise MalformedIdError("Implementation id cannot be empty")

        replaced = implementation_id in self._implementations
        self._implementations[implementation_id] = provider

        if replaced:
            stale = [
                c.id
                for c in self._conditions.values()
                if c.implementation_id == implementation_id and not self._is_valid(c)
            ]
            if stale:
                logger.warning(
                    f"Provider swap for {implementation_id} on {self._name!r} "
                    f"invalidates conditions: {stale}"
                )
        logger.info(
            f"{'Updated' if replaced else 'Added'} implementation {implementation_id} "
            f"-> {provider.address} on {self._name!r}"
        )

    def get_implementation(self, implementation_id: str) -> Optional[ValidatorProvider]:
        return self._implementations.get(implementation_id)

    def implementation_by_id(self, implementation_id: str) -> ValidatorProvider:
        provider = self._implementations.get(implementation_id)
        if provider is None:
            raise NotFoundError(f"Implementation not found: {implementation_id}")
        return provider

    def implementations_ids_list(self) -> List[str]:
        return list(self._implementations.keys())

    def implementations_list(self) -> List[Tuple[str, ValidatorProvider]]:
        return list(self._implementations.items())

    # === Condition checks ===

    def _check_structure(self, condition: Condition, existing: Iterable[str]) -> None:
        check_condition_id(condition.id)
        if condition.id in existing:
            raise AlreadyExistsError(f"Condition already exists: {condition.id}")

    def _check_implementation(self, condition: Condition) -> None:
        provider = self._implementations.get(condition.implementation_id)
        if provider is None:
            raise NotFoundError(
                f"Condition {condition.id}: implementation not found: "
                f"{condition.implementation_id}"
            )

        check_param_indexes(condition)

        for rule in condition.validations:
            if not provider.has_capability(rule.capability_name):
                raise MissingCapabilityError(
                    f"Condition {condition.id}: {provider.address} does not "
                    f"implement {rule.capability_name}"
                )

    def _is_valid(self, condition: Condition) -> bool:
        try:
            self._check_implementation(condition)
        except (NotFoundError, IndexOutOfRangeError, MissingCapabilityError):
            return False
        return True

    def _staged(
        self,
        conditions: Iterable[Any],
        validate: bool,
        base: Optional[Dict[str, Condition]] = None,
    ) -> "OrderedDict[str, Condition]":
        """Run checks for a batch and return the resulting condition map."""
        staged = OrderedDict(self._conditions if base is None else base)
        for raw in conditions:
            condition = as_condition(raw)
            self._check_structure(condition, staged)
            if validate:
                self._check_implementation(condition)
            else:
                check_param_indexes(condition)
            staged[condition.id] = condition
        return staged

    # === Mutations ===

    @owner_only
    def add_condition(self, condition: Union[Condition, tuple, dict]) -> Condition:
        """Validate and append one condition."""
        self._conditions = self._staged([condition], validate=True)
        added = next(reversed(self._conditions.values()))
        logger.info(f"Added condition {added.id} ({added.signature}) to {self._name!r}")
        return added

    @owner_only
    def add_conditions(self, conditions: List[Any]) -> None:
        """Validate and append several conditions, all or nothing."""
        self._conditions = self._staged(conditions, validate=True)
        logger.info(f"Added {len(conditions)} conditions to {self._name!r}")

    @owner_only
    def add_condition_without_validation(
        self, condition: Union[Condition, tuple, dict]
    ) -> Condition:
        """
        Append a condition with structural checks only.

        Id format, id uniqueness and param index bounds are enforced; the
        provider and its capabilities are not consulted.
        """
        self._conditions = self._staged([condition], validate=False)
        added = next(reversed(self._conditions.values()))
        logger.info(f"Staged condition {added.id} on {self._name!r} without validation")
        return added

    @owner_only
    def add_conditions_without_validation(self, conditions: List[Any]) -> None:
        self._conditions = self._staged(conditions, validate=False)
        logger.info(f"Staged {len(conditions)} conditions on {self._name!r} without validation")

    @owner_only
    def update_condition(
        self,
        condition: Union[Condition, tuple, dict],
        condition_id: Optional[str] = None,
    ) -> Condition:
        """
        Replace a condition in place.

        Looks up `condition_id` (defaults to the new condition's own id).
        When the ids differ the entry is re-keyed at the same position.
        """
        new = as_condition(condition)
        old_id = condition_id if condition_id is not None else new.id
        if old_id not in self._conditions:
            raise NotFoundError(f"Condition not found: {old_id}")

        others = [cid for cid in self._conditions if cid != old_id]
        self._check_structure(new, others)
        self._check_implementation(new)

        self._conditions = OrderedDict(
            (new.id, new) if cid == old_id else (cid, existing)
            for cid, existing in self._conditions.items()
        )
        logger.info(f"Updated condition {old_id} on {self._name!r}")
        return new

    @owner_only
    def replace_conditions(self, conditions: List[Any]) -> None:
        """Swap the entire rule set for a fully validated batch."""
        self._conditions = self._staged(conditions, validate=True, base={})
        logger.info(f"Replaced rule set of {self._name!r} with {len(conditions)} conditions")

    @owner_only
    def delete_condition(self, condition_id: str) -> None:
        if condition_id not in self._conditions:
            raise NotFoundError(f"Condition not found: {condition_id}")
        del self._conditions[condition_id]
        logger.info(f"Deleted condition {condition_id} from {self._name!r}")

    @owner_only
    def delete_conditions(self, condition_ids: List[str]) -> None:
        """Delete several conditions; any unknown id aborts the whole batch."""
        missing = [cid for cid in condition_ids if cid not in self._conditions]
        if missing:
            raise NotFoundError(f"Conditions not found: {missing}")

        doomed = set(condition_ids)
        self._conditions = OrderedDict(
            (cid, c) for cid, c in self._conditions.items() if cid not in doomed
        )
        logger.info(f"Deleted {len(doomed)} conditions from {self._name!r}")

    @owner_only
    def delete_all_conditions(self) -> None:
        count = len(self._conditions)
        self._conditions = OrderedDict()
        logger.info(f"Deleted all {count} conditions from {self._name!r}")

    # === Reads ===

    def conditions_length(self) -> int:
        return len(self._conditions)

    def conditions_list(self) -> List[Condition]:
        return list(self._conditions.values())

    def conditions_ids_list(self) -> List[str]:
        return list(self._conditions.keys())

    def conditions_ids(self, index: int) -> str:
        """Id of the condition at `index` in insertion order."""
        ids = self.conditions_ids_list()
        if not 0 <= index < len(ids):
            raise NotFoundError(f"No condition at position {index}")
        return ids[index]

    def condition_by_id(self, condition_id: str) -> Condition:
        condition = self._conditions.get(condition_id)
        if condition is None:
            raise NotFoundError(f"Condition not found: {condition_id}")
        return condition

    def condition_valid(self, condition_id: str) -> bool:
        return self._is_valid(self.condition_by_id(condition_id))

    def conditions_valid(self) -> bool:
        """Re-check every condition against the current providers."""
        return all(self._is_valid(c) for c in self._conditions.values())

    def validate_conditions(self) -> None:
        """Raise InvalidConditionSetError unless every condition is valid."""
        invalid = [c.id for c in self._conditions.values() if not self._is_valid(c)]
        if invalid:
            raise InvalidConditionSetError(
                f"Invalid conditions on {self._name!r}: {invalid}"
            )

    def conditions_json(self) -> str:
        return json.dumps(
            [c.to_dict() for c in self._conditions.values()],
            separators=(",", ":"),
        )

    def validate_calldata(self, target: Any, calldata: Union[bytes, str]) -> bool:
        return validate_calldata(self, target, calldata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "instance_id": self.instance_id,
            "owner_address": self.owner_address,
            "implementations": {
                impl_id: provider.address
                for impl_id, provider in self._implementations.items()
            },
            "conditions": [c.to_dict() for c in self._conditions.values()],
        }

    # === Restoration ===

    def restore(
        self,
        implementations: Dict[str, ValidatorProvider],
        conditions: List[Any],
    ) -> None:
        """
        Load persisted state without an owner check.

        Structural checks still apply; provider validity is left to
        conditions_valid().
        """
        staged = self._staged(conditions, validate=False, base={})
        self._implementations = OrderedDict(implementations)
        self._conditions = staged

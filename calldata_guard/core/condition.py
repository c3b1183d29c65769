"""
Condition and validation rule types.

A condition describes one permitted method signature plus the checks its
target and decoded arguments must pass. Conditions are immutable; an
update replaces the whole object.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple, Union

from .abi import canonical_signature, method_selector
from .errors import IndexOutOfRangeError, MalformedConditionError


class ValidationKind(str, Enum):
    """Wire tag of a validation rule."""

    TARGET = "target"  # Check the call target
    PARAM = "param"  # Check one decoded argument


@dataclass(frozen=True)
class TargetCheck:
    """Invoke `capability_name(target)`."""

    capability_name: str

    kind = ValidationKind.TARGET

    def to_list(self) -> List[str]:
        return [self.kind.value, self.capability_name]


@dataclass(frozen=True)
class ParamCheck:
    """Invoke `capability_name(decoded_args[param_index])`."""

    capability_name: str
    param_index: int

    kind = ValidationKind.PARAM

    def to_list(self) -> List[str]:
        return [self.kind.value, self.capability_name, str(self.param_index)]


Validation = Union[TargetCheck, ParamCheck]


def validation_from_list(raw: Sequence[Any]) -> Validation:
    """
    Parse the list form of a rule.

    `["target", "isVaultToken"]` or `["param", "isVault", "0"]`.
    """
    if isinstance(raw, (TargetCheck, ParamCheck)):
        return raw

    if not isinstance(raw, (list, tuple)) or not raw:
        raise MalformedConditionError(f"Validation rule must be a non-empty list: {raw!r}")

    try:
        kind = ValidationKind(str(raw[0]))
    except ValueError:
        raise MalformedConditionError(f"Unknown validation kind: {raw[0]!r}")

    if kind == ValidationKind.TARGET:
        if len(raw) != 2:
            raise MalformedConditionError(f"Target rule takes one capability name: {list(raw)}")
        return TargetCheck(str(raw[1]))

    if len(raw) != 3:
        raise MalformedConditionError(
            f"Param rule takes a capability name and an index: {list(raw)}"
        )
    try:
        index = int(raw[2])
    except (TypeError, ValueError):
        raise MalformedConditionError(f"Param index is not an integer: {raw[2]!r}")
    if index < 0:
        raise IndexOutOfRangeError(f"Param index cannot be negative: {index}")
    return ParamCheck(str(raw[1]), index)


@dataclass(frozen=True)
class Condition:
    """
    One permitted operation.

    Equality covers the five defining fields only; the signature and
    selector are derived once at construction.
    """

    id: str
    implementation_id: str
    method_name: str
    param_types: Tuple[str, ...] = ()
    validations: Tuple[Validation, ...] = ()

    signature: str = field(init=False, repr=False, compare=False)
    selector: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "param_types", tuple(self.param_types))
        object.__setattr__(
            self,
            "validations",
            tuple(validation_from_list(v) for v in self.validations),
        )
        signature = canonical_signature(self.method_name, self.param_types)
        object.__setattr__(self, "signature", signature)
        object.__setattr__(self, "selector", method_selector(signature))

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def with_id(self, condition_id: str) -> "Condition":
        return Condition(
            id=condition_id,
            implementation_id=self.implementation_id,
            method_name=self.method_name,
            param_types=self.param_types,
            validations=self.validations,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Reporting layout; key order is part of the contract."""
        return {
            "id": self.id,
            "implementation_id": self.implementation_id,
            "method_name": self.method_name,
            "param_types": list(self.param_types),
            "validations": [v.to_list() for v in self.validations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        try:
            return cls(
                id=data["id"],
                implementation_id=data["implementation_id"],
                method_name=data["method_name"],
                param_types=tuple(data.get("param_types") or []),
                validations=tuple(data.get("validations") or []),
            )
        except KeyError as e:
            raise MalformedConditionError(f"Condition is missing field {e}")
        except TypeError as e:
            raise MalformedConditionError(f"Malformed condition: {e}")

    def to_tuple(self) -> Tuple[Any, ...]:
        return (
            self.id,
            self.implementation_id,
            self.method_name,
            list(self.param_types),
            [v.to_list() for v in self.validations],
        )

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> "Condition":
        """Build from `(id, implementation_id, method_name, param_types, validations)`."""
        try:
            condition_id, implementation_id, method_name, param_types, validations = raw
            return cls(
                id=condition_id,
                implementation_id=implementation_id,
                method_name=method_name,
                param_types=tuple(param_types),
                validations=tuple(validations),
            )
        except (TypeError, ValueError) as e:
            raise MalformedConditionError(
                f"Condition tuple must be (id, implementation_id, method_name, "
                f"param_types, validations): {e}"
            )


def as_condition(value: Any) -> Condition:
    """Accept a Condition, its dict form, or its tuple form."""
    if isinstance(value, Condition):
        return value
    if isinstance(value, dict):
        return Condition.from_dict(value)
    if isinstance(value, (list, tuple)):
        return Condition.from_tuple(value)
    raise MalformedConditionError(f"Not a condition: {value!r}")

"""
Allowlist registry - per-origin directory and two-phase registration.

An origin moves Unregistered -> Draft -> Finalized:

- start_protocol_registration: the resolved owner of the origin gets a
  fresh allowlist (draft)
- finish_protocol_registration: the owner seals a non-empty, fully valid
  rule set (finalized, listed in registered_protocols_list)
- reregister_protocol: the owner swaps the rule set of a finalized origin
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ...core.abi import ZERO_ADDRESS, same_identity
from ...core.allowlist import Allowlist
from ...core.condition import Condition
from ...core.errors import (
    AlreadyRegisteredError,
    EmptyRuleSetError,
    NotRegisteredError,
    UnauthorizedError,
)
from ..identity import IdentityResolver

logger = logging.getLogger("guard.registry")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProtocolEntry:
    """Directory record for one origin."""

    origin_name: str
    allowlist: Allowlist
    finalized: bool = False
    started_at: str = field(default_factory=_now)
    finalized_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin_name": self.origin_name,
            "instance_id": self.allowlist.instance_id,
            "owner_address": self.allowlist.owner_address,
            "finalized": self.finalized,
            "started_at": self.started_at,
            "finalized_at": self.finalized_at,
            "conditions_length": self.allowlist.conditions_length(),
        }


class AllowlistRegistry:
    """
    Directory of protocol allowlists keyed by origin name.

    New allowlists are cloned from `template`, so providers configured on
    the template are available to every protocol from the start.
    """

    def __init__(self, resolver: IdentityResolver, template: Optional[Allowlist] = None):
        self.resolver = resolver
        self.template = template or Allowlist()
        self._entries: Dict[str, ProtocolEntry] = {}
        self._registered_origins: List[str] = []

        logger.info("AllowlistRegistry initialized")

    # === Lifecycle ===

    def clone_allowlist(self, origin: str, owner_address: Optional[str] = None) -> Allowlist:
        """
        Create an allowlist for `origin` outside the registration lifecycle.

        The owner is `owner_address` when given, else the resolved owner.
        The directory is not touched.
        """
        owner = owner_address or self.resolver.resolve_owner(origin)
        allowlist = self.template.clone()
        allowlist.initialize(origin, owner)
        return allowlist

    def start_protocol_registration(self, origin: str, *, caller: str) -> Allowlist:
        """Create a draft allowlist owned by the resolved owner of `origin`."""
        owner = self.resolver.resolve_owner(origin)
        if not same_identity(caller, owner):
            raise UnauthorizedError(f"{caller} does not control origin {origin}")

        if origin in self._entries:
            raise AlreadyRegisteredError(f"Origin already registered: {origin}")

        allowlist = self.clone_allowlist(origin, owner)
        self._entries[origin] = ProtocolEntry(origin_name=origin, allowlist=allowlist)

        logger.info(f"Started registration of {origin} (allowlist {allowlist.instance_id})")
        return allowlist

    def finish_protocol_registration(self, origin: str, *, caller: str) -> None:
        """Finalize a draft; requires at least one condition, all valid."""
        entry = self._entry(origin)
        allowlist = entry.allowlist

        if not same_identity(caller, allowlist.owner_address):
            raise UnauthorizedError(f"{caller} is not the owner of {origin}")

        if allowlist.conditions_length() == 0:
            raise EmptyRuleSetError(f"Cannot finish registration of {origin} without conditions")

        allowlist.validate_conditions()

        if not entry.finalized:
            entry.finalized = True
            entry.finalized_at = _now()
            self._registered_origins.append(origin)

        logger.info(
            f"Finished registration of {origin} with "
            f"{allowlist.conditions_length()} conditions"
        )

    def reregister_protocol(
        self,
        origin: str,
        conditions: List[Union[Condition, tuple, dict]],
        *,
        caller: str,
    ) -> None:
        """Replace the rule set of a finalized origin in one step."""
        entry = self._entries.get(origin)
        if entry is None or not entry.finalized:
            raise NotRegisteredError(f"Origin is not registered: {origin}")

        entry.allowlist.replace_conditions(conditions, caller=caller)
        logger.info(f"Re-registered {origin} with {len(conditions)} conditions")

    # === Lookups ===

    def _entry(self, origin: str) -> ProtocolEntry:
        entry = self._entries.get(origin)
        if entry is None:
            raise NotRegisteredError(f"Origin is not registered: {origin}")
        return entry

    def entry(self, origin: str) -> ProtocolEntry:
        return self._entry(origin)

    def entries(self) -> List[ProtocolEntry]:
        return list(self._entries.values())

    def registered_protocols_list(self) -> List[str]:
        return list(self._registered_origins)

    def registered_protocol(self, origin: str) -> bool:
        entry = self._entries.get(origin)
        return entry is not None and entry.finalized

    def allowlist_by_origin_name(self, origin: str) -> Allowlist:
        return self._entry(origin).allowlist

    def allowlist_address_by_origin_name(self, origin: str) -> str:
        """Instance handle of the allowlist, or the zero address if unknown."""
        entry = self._entries.get(origin)
        return entry.allowlist.instance_id if entry else ZERO_ADDRESS

    def conditions_by_origin_name(self, origin: str) -> List[Condition]:
        return self._entry(origin).allowlist.conditions_list()

    def protocol_owner_address_by_origin_name(self, origin: str) -> str:
        return self.resolver.resolve_owner(origin)

    def validate_calldata_by_origin(
        self, origin: str, target: Any, calldata: Union[bytes, str]
    ) -> bool:
        return self._entry(origin).allowlist.validate_calldata(target, calldata)

    # === Restoration ===

    def restore(self, entries: List[ProtocolEntry], registered_origins: List[str]) -> None:
        """
        Replace the directory with persisted entries.

        Listing order follows `registered_origins`; finalized entries it
        omits are appended so an origin is listed iff it is finalized.
        """
        self._entries = {entry.origin_name: entry for entry in entries}

        ordered = [
            origin
            for origin in dict.fromkeys(registered_origins)
            if origin in self._entries and self._entries[origin].finalized
        ]
        ordered += [
            entry.origin_name
            for entry in entries
            if entry.finalized and entry.origin_name not in ordered
        ]
        self._registered_origins = ordered

    def clear(self) -> None:
        self._entries.clear()
        self._registered_origins.clear()

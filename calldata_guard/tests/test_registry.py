"""
Tests for the allowlist registry and the registration lifecycle.
"""

import pytest

from calldata_guard.core import (
    AlreadyExistsError,
    AlreadyRegisteredError,
    EmptyRuleSetError,
    InvalidConditionSetError,
    MissingCapabilityError,
    NotFoundError,
    NotRegisteredError,
    UnauthorizedError,
    ZERO_ADDRESS,
)
from conftest import (
    ORIGIN_NAME,
    PROTOCOL_OWNER,
    YFI_ADDRESS,
    YFI_VAULT_ADDRESS,
    approve_calldata,
    condition,
)


def register(registry, owner, conditions=None):
    allowlist = registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
    allowlist.add_conditions(conditions or [condition()], caller=owner)
    registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)
    return allowlist


class TestStartRegistration:
    """Tests for creating drafts."""

    def test_start(self, registry, owner):
        allowlist = registry.start_protocol_registration(ORIGIN_NAME, caller=owner)

        assert allowlist.name == ORIGIN_NAME
        assert allowlist.owner_address == PROTOCOL_OWNER
        assert registry.allowlist_by_origin_name(ORIGIN_NAME) is allowlist
        assert registry.allowlist_address_by_origin_name(ORIGIN_NAME) == allowlist.instance_id

    def test_draft_is_not_listed(self, registry, owner):
        registry.start_protocol_registration(ORIGIN_NAME, caller=owner)

        assert registry.registered_protocols_list() == []
        assert registry.registered_protocol(ORIGIN_NAME) is False

    def test_only_origin_owner(self, registry, rando):
        with pytest.raises(UnauthorizedError):
            registry.start_protocol_registration(ORIGIN_NAME, caller=rando)
        assert registry.allowlist_address_by_origin_name(ORIGIN_NAME) == ZERO_ADDRESS

    def test_unresolvable_origin(self, registry, owner):
        with pytest.raises(NotFoundError):
            registry.start_protocol_registration("unknown.eth", caller=owner)

    def test_cannot_start_twice(self, registry, owner):
        registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        with pytest.raises(AlreadyRegisteredError):
            registry.start_protocol_registration(ORIGIN_NAME, caller=owner)

    def test_cannot_restart_finalized(self, registry, owner):
        register(registry, owner)
        with pytest.raises(AlreadyExistsError):
            registry.start_protocol_registration(ORIGIN_NAME, caller=owner)

    def test_drafts_inherit_template_providers(self, registry, owner, implementation_id):
        allowlist = registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        assert allowlist.implementations_ids_list() == [implementation_id]
        assert allowlist.conditions_length() == 0


class TestFinishRegistration:
    """Tests for sealing drafts."""

    def test_finish(self, registry, owner):
        register(registry, owner)

        assert registry.registered_protocols_list() == [ORIGIN_NAME]
        assert registry.registered_protocol(ORIGIN_NAME) is True
        assert registry.entry(ORIGIN_NAME).finalized_at is not None

    def test_finish_without_start(self, registry, owner):
        with pytest.raises(NotRegisteredError):
            registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)

    def test_only_owner(self, registry, owner, rando):
        allowlist = registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        allowlist.add_condition(condition(), caller=owner)

        with pytest.raises(UnauthorizedError):
            registry.finish_protocol_registration(ORIGIN_NAME, caller=rando)
        assert registry.registered_protocols_list() == []

    def test_empty_rule_set(self, registry, owner):
        registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        with pytest.raises(EmptyRuleSetError):
            registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)
        assert registry.registered_protocol(ORIGIN_NAME) is False

    def test_invalid_rule_set(self, registry, owner):
        allowlist = registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        allowlist.add_condition(condition(), caller=owner)
        allowlist.add_condition_without_validation(
            condition("INVALID", "deposit", ["uint256"], [["target", "invalid"]]), caller=owner
        )

        with pytest.raises(InvalidConditionSetError):
            registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)
        assert registry.registered_protocols_list() == []

        allowlist.delete_condition("INVALID", caller=owner)
        registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)
        assert registry.registered_protocols_list() == [ORIGIN_NAME]

    def test_finish_twice_lists_once(self, registry, owner):
        register(registry, owner)
        registry.finish_protocol_registration(ORIGIN_NAME, caller=owner)
        assert registry.registered_protocols_list() == [ORIGIN_NAME]

    def test_listing_order(self, registry, resolver, owner):
        resolver.set_owner("curve.fi", owner)
        resolver.set_owner("sushi.com", owner)

        for origin in ["sushi.com", ORIGIN_NAME, "curve.fi"]:
            allowlist = registry.start_protocol_registration(origin, caller=owner)
            allowlist.add_condition(condition(), caller=owner)

        for origin in [ORIGIN_NAME, "curve.fi", "sushi.com"]:
            registry.finish_protocol_registration(origin, caller=owner)

        assert registry.registered_protocols_list() == [ORIGIN_NAME, "curve.fi", "sushi.com"]


class TestReregister:
    """Tests for replacing a finalized rule set."""

    def test_reregister(self, registry, owner):
        allowlist = register(registry, owner)
        new_conditions = [
            condition("VAULT_DEPOSIT", "deposit", ["uint256"], [["target", "isVault"]]),
            condition("TOKEN_APPROVE_VAULT_V2"),
        ]

        registry.reregister_protocol(ORIGIN_NAME, new_conditions, caller=owner)

        assert allowlist.conditions_ids_list() == ["VAULT_DEPOSIT", "TOKEN_APPROVE_VAULT_V2"]
        assert registry.registered_protocols_list() == [ORIGIN_NAME]

    def test_reregister_draft(self, registry, owner):
        registry.start_protocol_registration(ORIGIN_NAME, caller=owner)
        with pytest.raises(NotRegisteredError):
            registry.reregister_protocol(ORIGIN_NAME, [condition()], caller=owner)

    def test_reregister_unknown(self, registry, owner):
        with pytest.raises(NotRegisteredError):
            registry.reregister_protocol("unknown.eth", [condition()], caller=owner)

    def test_reregister_only_owner(self, registry, owner, rando):
        allowlist = register(registry, owner)
        with pytest.raises(UnauthorizedError):
            registry.reregister_protocol(ORIGIN_NAME, [condition("OTHER")], caller=rando)
        assert allowlist.conditions_ids_list() == ["TOKEN_APPROVE_VAULT"]

    def test_reregister_invalid_batch_is_noop(self, registry, owner):
        allowlist = register(registry, owner)
        bad = [condition("OK"), condition("BAD", validations=[["target", "invalid"]])]

        with pytest.raises(MissingCapabilityError):
            registry.reregister_protocol(ORIGIN_NAME, bad, caller=owner)
        assert allowlist.conditions_ids_list() == ["TOKEN_APPROVE_VAULT"]


class TestLookups:
    """Tests for directory reads."""

    def test_conditions_by_origin(self, registry, owner):
        register(registry, owner)
        conditions = registry.conditions_by_origin_name(ORIGIN_NAME)
        assert [c.id for c in conditions] == ["TOKEN_APPROVE_VAULT"]

    def test_owner_lookup(self, registry):
        assert registry.protocol_owner_address_by_origin_name(ORIGIN_NAME) == PROTOCOL_OWNER

    def test_unknown_origin(self, registry):
        assert registry.allowlist_address_by_origin_name("unknown.eth") == ZERO_ADDRESS
        with pytest.raises(NotRegisteredError):
            registry.allowlist_by_origin_name("unknown.eth")
        with pytest.raises(NotFoundError):
            registry.conditions_by_origin_name("unknown.eth")

    def test_validate_by_origin(self, registry, owner):
        register(registry, owner)
        data = approve_calldata(YFI_VAULT_ADDRESS)
        assert registry.validate_calldata_by_origin(ORIGIN_NAME, YFI_ADDRESS, data) is True

    def test_ownership_change_follows_resolver(self, registry, resolver, owner, rando):
        """The directory reports the live owner; the allowlist keeps its own."""
        allowlist = register(registry, owner)
        resolver.set_owner(ORIGIN_NAME, rando)

        assert registry.protocol_owner_address_by_origin_name(ORIGIN_NAME) == rando
        assert allowlist.owner_address == owner

    def test_entry_to_dict(self, registry, owner):
        register(registry, owner)
        data = registry.entry(ORIGIN_NAME).to_dict()
        assert data["origin_name"] == ORIGIN_NAME
        assert data["finalized"] is True
        assert data["conditions_length"] == 1


class TestCloneAllowlist:
    """Tests for standalone allowlist creation."""

    def test_clone_with_resolved_owner(self, registry):
        allowlist = registry.clone_allowlist(ORIGIN_NAME)

        assert allowlist.name == ORIGIN_NAME
        assert allowlist.owner_address == PROTOCOL_OWNER
        assert registry.entries() == []

    def test_clone_with_explicit_owner(self, registry, rando, implementation_id):
        allowlist = registry.clone_allowlist(ORIGIN_NAME, rando)

        assert allowlist.owner_address == rando
        assert allowlist.implementations_ids_list() == [implementation_id]
        allowlist.add_condition(condition(), caller=rando)
        assert allowlist.conditions_length() == 1

    def test_clones_are_independent(self, registry, owner):
        first = registry.clone_allowlist(ORIGIN_NAME)
        second = registry.clone_allowlist(ORIGIN_NAME)

        first.add_condition(condition(), caller=owner)

        assert first.instance_id != second.instance_id
        assert second.conditions_length() == 0
        assert registry.template.conditions_length() == 0

    def test_clone_cannot_be_reinitialized(self, registry, rando):
        allowlist = registry.clone_allowlist(ORIGIN_NAME)
        with pytest.raises(AlreadyExistsError):
            allowlist.initialize("other.eth", rando)

    def test_clone_of_unknown_origin(self, registry, owner):
        with pytest.raises(NotFoundError):
            registry.clone_allowlist("unknown.eth")
        allowlist = registry.clone_allowlist("unknown.eth", owner)
        assert allowlist.name == "unknown.eth"

"""
Error taxonomy for allowlist mutations and directory lookups.

Every mutation raises one of these before touching state, so a failed
operation leaves the allowlist exactly as it was.
"""


class AllowlistError(Exception):
    """Base class for allowlist and registry failures."""

    pass


class UnauthorizedError(AllowlistError):
    """Caller is not the required owner or resolved identity."""

    pass


class NotFoundError(AllowlistError):
    """Unknown condition id, implementation id, or origin."""

    pass


class NotRegisteredError(NotFoundError):
    """Origin has no directory entry (or is not finalized where required)."""

    pass


class AlreadyExistsError(AllowlistError):
    """Duplicate condition id or duplicate registration."""

    pass


class AlreadyRegisteredError(AlreadyExistsError):
    """Origin already has a draft or finalized directory entry."""

    pass


class MalformedIdError(AllowlistError):
    """Condition id is empty or contains whitespace."""

    pass


class IndexOutOfRangeError(AllowlistError):
    """Param validation index is not below the declared arity."""

    pass


class MissingCapabilityError(AllowlistError):
    """Provider does not expose a referenced capability."""

    pass


class EmptyRuleSetError(AllowlistError):
    """Registration cannot be finished without conditions."""

    pass


class InvalidConditionSetError(AllowlistError):
    """At least one condition fails validation against current providers."""

    pass


class MalformedConditionError(AllowlistError):
    """Condition or rule input does not have the expected shape."""

    pass

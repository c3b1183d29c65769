"""
Shared fixtures: a vault-aware validator provider, identities, and a
registry with one draft registration.
"""

import pytest

from calldata_guard.core import Allowlist, Condition, encode_call, method_selector
from calldata_guard.core.providers import CallableValidatorProvider, EmptyValidatorProvider
from calldata_guard.service.identity import StaticIdentityResolver
from calldata_guard.service.registry import AllowlistRegistry

ORIGIN_NAME = "yearn.finance"
IMPLEMENTATION_ID = "VAULT_VALIDATIONS"

PROTOCOL_OWNER = "0xFEB4acf3df3cDEA7399794D0869ef76A6EfAff52"
RANDO = "0x83d95e0D5f402511dB06817Aff3f9eA88224B030"

YFI_ADDRESS = "0x0bc529c00C6401aEF6D220BE8C6Ea1667F6Ad93e"
USDC_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
YFI_VAULT_ADDRESS = "0xE14d13d8B3b85aF791b2AADD661cDBd5E6097Db1"
NOT_VAULT_ADDRESS = "0x83d95e0D5f402511dB06817Aff3f9eA88224B030"

MAX_UINT256 = 2**256 - 1

VAULTS = {YFI_VAULT_ADDRESS.lower()}
VAULT_TOKENS = {YFI_ADDRESS.lower(), USDC_ADDRESS.lower()}


def make_vault_provider(address: str = "0x1111111111111111111111111111111111111111"):
    """Provider exposing isVault and isVaultToken."""
    return CallableValidatorProvider(
        address,
        {
            "isVault": lambda value: str(value).lower() in VAULTS,
            "isVaultToken": lambda value: str(value).lower() in VAULT_TOKENS,
        },
    )


def fake_runtime_code(*signatures):
    """Dispatcher-like bytecode comparing against each selector."""
    code = b"\x60\x80\x60\x40\x52"
    for signature in signatures:
        code += b"\x80\x63" + method_selector(signature) + b"\x14\x61\x00\x00\x57"
    return code


def approve_calldata(spender: str, amount: int = MAX_UINT256) -> bytes:
    return encode_call("approve", ["address", "uint256"], [spender.lower(), amount])


def decimals_calldata() -> bytes:
    return encode_call("decimals", [], [])


def condition(
    condition_id: str = "TOKEN_APPROVE_VAULT",
    method_name: str = "approve",
    param_types=("address", "uint256"),
    validations=(["target", "isVaultToken"], ["param", "isVault", "0"]),
    implementation_id: str = IMPLEMENTATION_ID,
) -> Condition:
    return Condition(
        id=condition_id,
        implementation_id=implementation_id,
        method_name=method_name,
        param_types=tuple(param_types),
        validations=tuple(validations),
    )


@pytest.fixture
def owner():
    return PROTOCOL_OWNER


@pytest.fixture
def rando():
    return RANDO


@pytest.fixture
def origin_name():
    return ORIGIN_NAME


@pytest.fixture
def implementation_id():
    return IMPLEMENTATION_ID


@pytest.fixture
def implementation():
    return make_vault_provider()


@pytest.fixture
def empty_implementation():
    return EmptyValidatorProvider("0x2222222222222222222222222222222222222222")


@pytest.fixture
def resolver():
    return StaticIdentityResolver({ORIGIN_NAME: PROTOCOL_OWNER})


@pytest.fixture
def template(implementation):
    """Template allowlist carrying the default vault provider."""
    return Allowlist(implementations={IMPLEMENTATION_ID: implementation})


@pytest.fixture
def registry(resolver, template):
    return AllowlistRegistry(resolver, template=template)


@pytest.fixture
def allowlist(registry, owner):
    """Draft allowlist for yearn.finance."""
    return registry.start_protocol_registration(ORIGIN_NAME, caller=owner)

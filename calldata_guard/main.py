"""
Calldata Guard Daemon - Main Entry Point

Runs the calldata policy HTTP API (default port 8766).

Endpoints:
- GET  /health                                  - Health check
- GET  /api/v1/allowlists/protocols             - Registered origins
- GET  /api/v1/allowlists/protocols/{origin}    - Directory entry
- GET  /api/v1/allowlists/protocols/{origin}/conditions
- POST /api/v1/allowlists/validate              - Validate calldata
- GET  /api/v1/allowlists/selector              - Selector of a signature
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

import uvicorn
import yaml
from fastapi import FastAPI
from web3 import Web3

from .api import create_allowlist_routes
from .config import GuardConfig, get_config, get_version
from .core import Allowlist
from .core.providers import ContractValidatorProvider, ProviderRegistry, ValidatorProvider
from .service.identity import (
    EnsIdentityResolver,
    IdentityResolver,
    StaticIdentityResolver,
)
from .service.registry import AllowlistRegistry, RegistryStore

logger = logging.getLogger("guard.daemon")


def build_web3(config: GuardConfig) -> Optional[Web3]:
    if not config.web3_uri:
        return None
    return Web3(Web3.HTTPProvider(config.web3_uri))


def build_resolver(config: GuardConfig, w3: Optional[Web3] = None) -> IdentityResolver:
    """The static owners file when configured, else ENS through the web3 endpoint."""
    if config.owners_file:
        return StaticIdentityResolver.from_file(config.owners_file)

    if config.uses_ens and w3 is not None:
        logger.info(f"Resolving origin owners through ENS at {config.web3_uri}")
        return EnsIdentityResolver(w3)

    logger.warning("No identity source configured; no origin can register")
    return StaticIdentityResolver()


def build_providers(
    config: GuardConfig, w3: Optional[Web3] = None
) -> Tuple[ProviderRegistry, Dict[str, ValidatorProvider]]:
    """
    Register the predicate contracts listed in the providers file.

    The file maps a contract address to its settings:

        "0x7777...":
          implementation_id: VAULT_VALIDATIONS
          arg_types: {isVault: address, isVaultToken: address}

    Returns the provider registry used to resolve snapshot addresses and
    the implementations that new registrations start with (entries that
    name an implementation_id).
    """
    providers = ProviderRegistry()
    implementations: Dict[str, ValidatorProvider] = {}
    if not config.providers_file:
        return providers, implementations

    if w3 is None:
        logger.warning(
            f"Ignoring {config.providers_file}: contract providers need CALLDATA_GUARD_WEB3_URI"
        )
        return providers, implementations

    with open(config.providers_file) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Providers file must be a mapping: {config.providers_file}")

    for address, settings in data.items():
        settings = settings or {}
        provider = ContractValidatorProvider(w3, str(address), settings.get("arg_types"))
        providers.register(provider)
        if settings.get("implementation_id"):
            implementations[str(settings["implementation_id"])] = provider

    logger.info(f"Loaded {len(providers)} validator providers from {config.providers_file}")
    return providers, implementations


def create_app(
    config: Optional[GuardConfig] = None,
    registry: Optional[AllowlistRegistry] = None,
    providers: Optional[ProviderRegistry] = None,
    w3: Optional[Web3] = None,
) -> FastAPI:
    """Build the daemon app; the registry and providers come from config unless given."""
    config = config or get_config()
    if w3 is None:
        w3 = build_web3(config)
    implementations: Dict[str, ValidatorProvider] = {}
    if providers is None:
        providers, implementations = build_providers(config, w3)
    if registry is None:
        registry = AllowlistRegistry(
            build_resolver(config, w3),
            template=Allowlist(implementations=implementations),
        )
    store = RegistryStore(config.data_dir, providers)

    app = FastAPI(
        title="Calldata Guard Daemon",
        description="Calldata allowlist policy engine",
        version=get_version(),
    )
    app.state.config = config
    app.state.registry = registry
    app.state.providers = providers
    app.state.store = store

    app.include_router(create_allowlist_routes(registry))

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "calldata-guard-daemon",
            "version": get_version(),
            "protocols": len(registry.registered_protocols_list()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.on_event("startup")
    async def on_startup():
        """Restore the registry snapshot."""
        logger.info("Calldata guard daemon starting up...")
        await store.load(registry)

    @app.on_event("shutdown")
    async def on_shutdown():
        """Persist the registry."""
        logger.info("Calldata guard daemon shutting down...")
        if config.autosave:
            await store.save(registry)

    return app


def main():
    """Run the daemon."""
    config = get_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()

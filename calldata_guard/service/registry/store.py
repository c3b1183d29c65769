"""
Registry persistence - JSON snapshots of the directory on disk.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

import aiofiles
import aiofiles.os

from ...core.providers import ProviderRegistry, ValidatorProvider
from .directory import AllowlistRegistry, ProtocolEntry

logger = logging.getLogger("guard.registry.store")

SNAPSHOT_VERSION = 1


class RegistryStore:
    """
    Saves and restores an AllowlistRegistry.

    Providers are stored by address and resolved through `providers` on
    load. Unknown addresses are dropped so the conditions that use them
    show up as invalid rather than silently passing.
    """

    def __init__(self, data_dir: Union[str, Path], providers: ProviderRegistry):
        self.data_dir = Path(data_dir).expanduser()
        self.providers = providers

    @property
    def snapshot_file(self) -> Path:
        return self.data_dir / "registry.json"

    @property
    def corrupt_file(self) -> Path:
        return self.data_dir / "registry.json.corrupt"

    def snapshot(self, registry: AllowlistRegistry) -> Dict[str, Any]:
        protocols = []
        for entry in registry.entries():
            data = entry.allowlist.to_dict()
            data.update(
                {
                    "origin_name": entry.origin_name,
                    "finalized": entry.finalized,
                    "started_at": entry.started_at,
                    "finalized_at": entry.finalized_at,
                }
            )
            protocols.append(data)

        return {
            "version": SNAPSHOT_VERSION,
            "protocols": protocols,
            "registered_origins": registry.registered_protocols_list(),
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

    def _restore_entry(self, registry: AllowlistRegistry, data: Dict[str, Any]) -> ProtocolEntry:
        implementations: Dict[str, ValidatorProvider] = {}
        for impl_id, address in data.get("implementations", {}).items():
            provider = self.providers.get(address)
            if provider is None:
                logger.warning(
                    f"Unknown provider {address} for {impl_id} on {data['origin_name']}, skipping"
                )
                continue
            implementations[impl_id] = provider

        allowlist = registry.template.clone()
        allowlist.initialize(data["origin_name"], data["owner_address"])
        allowlist.instance_id = data.get("instance_id", allowlist.instance_id)
        allowlist.restore(implementations, data.get("conditions", []))

        return ProtocolEntry(
            origin_name=data["origin_name"],
            allowlist=allowlist,
            finalized=bool(data.get("finalized", False)),
            started_at=data.get("started_at") or datetime.now(timezone.utc).isoformat(),
            finalized_at=data.get("finalized_at"),
        )

    def restore(self, registry: AllowlistRegistry, data: Dict[str, Any]) -> None:
        entries: List[ProtocolEntry] = [
            self._restore_entry(registry, protocol) for protocol in data.get("protocols", [])
        ]
        registry.restore(entries, data.get("registered_origins", []))

    async def save(self, registry: AllowlistRegistry) -> bool:
        """Write the registry snapshot to disk, replacing the old one in a single step."""
        tmp_file = self.snapshot_file.with_name(self.snapshot_file.name + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_file, "w") as f:
                await f.write(json.dumps(self.snapshot(registry), indent=2))
            await aiofiles.os.replace(tmp_file, self.snapshot_file)

            logger.info(f"Saved {len(registry.entries())} protocols to {self.snapshot_file}")
            return True

        except Exception as e:
            logger.error(f"Error saving registry snapshot: {e}")
            return False

    async def load(self, registry: AllowlistRegistry) -> bool:
        """
        Restore the registry from disk; a missing snapshot leaves it untouched.

        An unreadable snapshot is moved to `corrupt_file` so a later save
        cannot overwrite the only copy of it.
        """
        if not self.snapshot_file.exists():
            return False

        try:
            async with aiofiles.open(self.snapshot_file, "r") as f:
                content = await f.read()

            self.restore(registry, json.loads(content))
            logger.info(f"Loaded {len(registry.entries())} protocols from {self.snapshot_file}")
            return True

        except Exception as e:
            logger.error(f"Error loading registry snapshot: {e}")
            await aiofiles.os.replace(self.snapshot_file, self.corrupt_file)
            logger.error(f"Moved unreadable snapshot to {self.corrupt_file}")
            return False

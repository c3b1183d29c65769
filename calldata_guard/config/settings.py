"""
Calldata Guard - Daemon Configuration

Environment Variables:
  CALLDATA_GUARD_HOST         - Bind address for the HTTP API
  CALLDATA_GUARD_PORT         - Port for the HTTP API
  CALLDATA_GUARD_DATA_DIR     - Directory for registry snapshots
  CALLDATA_GUARD_LOG_LEVEL    - Logging level name
  CALLDATA_GUARD_WEB3_URI     - JSON-RPC endpoint; enables ENS owner lookup
  CALLDATA_GUARD_OWNERS_FILE  - YAML `origin: owner` map; takes precedence over ENS
  CALLDATA_GUARD_PROVIDERS    - YAML map of predicate contract address to
                                `{arg_types, implementation_id}`; needs WEB3_URI
  CALLDATA_GUARD_AUTOSAVE     - Save the registry on shutdown (true/false)
"""

import os
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger("guard.config")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8766
DEFAULT_DATA_DIR = "~/.calldata-guard"


@dataclass
class GuardConfig:
    """Daemon configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_dir: str = DEFAULT_DATA_DIR
    log_level: str = "INFO"

    # Identity resolution
    web3_uri: Optional[str] = None
    owners_file: Optional[str] = None

    # Validator providers
    providers_file: Optional[str] = None

    autosave: bool = True

    @classmethod
    def from_env(cls) -> "GuardConfig":
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("CALLDATA_GUARD_HOST", DEFAULT_HOST),
            port=int(os.getenv("CALLDATA_GUARD_PORT", str(DEFAULT_PORT))),
            data_dir=os.getenv("CALLDATA_GUARD_DATA_DIR", DEFAULT_DATA_DIR),
            log_level=os.getenv("CALLDATA_GUARD_LOG_LEVEL", "INFO").upper(),
            web3_uri=os.getenv("CALLDATA_GUARD_WEB3_URI") or None,
            owners_file=os.getenv("CALLDATA_GUARD_OWNERS_FILE") or None,
            providers_file=os.getenv("CALLDATA_GUARD_PROVIDERS") or None,
            autosave=os.getenv("CALLDATA_GUARD_AUTOSAVE", "true").lower() == "true",
        )

    @property
    def uses_ens(self) -> bool:
        return bool(self.web3_uri) and not self.owners_file


def get_version() -> str:
    from .. import __version__

    return __version__


def get_config() -> GuardConfig:
    """Get the daemon configuration."""
    return GuardConfig.from_env()

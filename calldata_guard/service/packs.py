"""
Condition packs - rule sets stored as YAML or JSON files.

Example pack:

    conditions:
      - id: TOKEN_APPROVE_VAULT
        implementation_id: VAULT_VALIDATIONS
        method_name: approve
        param_types: [address, uint256]
        validations:
          - [target, isVaultToken]
          - [param, isVault, "0"]
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..core.condition import Condition, as_condition

logger = logging.getLogger("guard.packs")


def _read(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        if path.suffix in [".yaml", ".yml"]:
            return yaml.safe_load(f) or {}
        else:
            return json.load(f)


def load_condition_pack(path: Union[str, Path]) -> List[Condition]:
    """Parse a pack file into conditions, in file order."""
    path = Path(path)
    data = _read(path)

    raw_conditions = data.get("conditions", []) if isinstance(data, dict) else data
    if not isinstance(raw_conditions, list):
        raise ValueError(f"'conditions' must be a list in {path}")

    conditions = [as_condition(raw) for raw in raw_conditions]
    logger.info(f"Loaded {len(conditions)} conditions from {path}")
    return conditions


def dump_condition_pack(conditions: List[Condition], path: Union[str, Path]) -> None:
    """Write conditions to a pack file; format follows the suffix."""
    path = Path(path)
    data = {"conditions": [c.to_dict() for c in conditions]}

    with open(path, "w") as f:
        if path.suffix in [".yaml", ".yml"]:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)

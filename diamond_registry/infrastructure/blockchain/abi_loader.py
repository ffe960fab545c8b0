"""
Loads facet ABIs from exported ABI files or Hardhat build artifacts.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from diamond_registry.core.logging import get_logger

logger = get_logger(__name__)

Abi = List[Dict[str, Any]]


def load_abi(contract_name: str, abi_dir: Union[str, Path]) -> Abi:
    """
    Load the ABI for a facet.

    ``<abi_dir>/<contract_name>.json`` may hold a bare ABI list or a Hardhat
    artifact with an ``abi`` key.

    Raises:
        FileNotFoundError: if no ABI file exists for the contract
        ValueError: if the file holds neither form
    """
    path = Path(abi_dir) / f"{contract_name}.json"
    if not path.exists():
        raise FileNotFoundError(f"ABI not found: {path}")

    with path.open(encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ValueError(f"No ABI list in {path}")

    return data


def merge_abis(base: Abi, incoming: Abi) -> Abi:
    """
    Combine two ABIs the way the Diamond's combined ABI is maintained.

    Functions and events named in ``incoming`` replace same-named entries of
    ``base``; everything else in ``base`` is kept.
    """
    replaced = {
        item.get("name")
        for item in incoming
        if item.get("type") in ("function", "event")
    }
    kept = [
        item
        for item in base
        if item.get("type") not in ("function", "event") or item.get("name") not in replaced
    ]
    return kept + list(incoming)


def save_abi(abi: Abi, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(abi, indent=2), encoding="utf-8")
    logger.info(f"ABI written: {path} ({len(abi)} entries)")

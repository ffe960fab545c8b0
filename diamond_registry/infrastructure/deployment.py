"""
Deployment file handling.

A deployment file records the contract addresses of one network, e.g.
``deployments/ganache.json``::

    {"network": "ganache", "chainId": 1337,
     "contracts": {"MAIN_DIAMOND": "0x...", "ACCESS_CONTROL_FACET": "0x..."}}
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from diamond_registry.core.config import settings
from diamond_registry.core.logging import get_logger

logger = get_logger(__name__)

DIAMOND_KEY = "MAIN_DIAMOND"


def facet_key(facet_name: str) -> str:
    """
    Deployment key for a facet name.

    >>> facet_key("PointOfSalesCoreFacet")
    'POINT_OF_SALES_CORE_FACET'
    """
    stem = re.sub(r"Facet$", "", facet_name)
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", stem).upper()
    return f"{snake}_FACET"


class DeploymentFile:
    """Contract addresses of one network deployment."""

    def __init__(self, path: Union[str, Path], data: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.data: Dict[str, Any] = data or {}
        self.data.setdefault("contracts", {})

    @classmethod
    def load(cls, path: Union[str, Path]) -> "DeploymentFile":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Deployment file not found: {path}")
        with path.open(encoding="utf-8") as f:
            return cls(path, json.load(f))

    @classmethod
    def for_network(cls, network: Optional[str] = None) -> "DeploymentFile":
        network = network or settings.DEPLOYMENT_NETWORK
        return cls.load(Path(settings.DEPLOYMENT_DIR) / f"{network}.json")

    @property
    def contracts(self) -> Dict[str, str]:
        return self.data["contracts"]

    @property
    def diamond_address(self) -> Optional[str]:
        return self.contracts.get(DIAMOND_KEY)

    def facet_names(self) -> Dict[str, str]:
        """Map deployment keys of facets back to their contract names."""
        names = {}
        for key in self.contracts:
            if key.endswith("_FACET"):
                stem = key[: -len("_FACET")]
                names["".join(part.capitalize() for part in stem.split("_")) + "Facet"] = key
        return names

    def facet_address(self, facet_name: str) -> Optional[str]:
        return self.contracts.get(facet_key(facet_name))

    def set_facet_address(self, facet_name: str, address: str) -> None:
        self.contracts[facet_key(facet_name)] = address

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.data, indent=2), encoding="utf-8")
        logger.info(f"Deployment file updated: {self.path}")

"""
Routing table models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field

from diamond_registry.core.exceptions import InvalidFacetAddressError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(value: Any) -> str:
    """
    Return the checksum form of a live facet address.

    Raises:
        InvalidFacetAddressError: for None, malformed or zero addresses
    """
    if not value or not is_address(value):
        raise InvalidFacetAddressError(value)

    address = to_checksum_address(value)
    if address == ZERO_ADDRESS:
        raise InvalidFacetAddressError(value)
    return address


class RegistryAction(str, Enum):
    """Kind of change recorded in the audit log."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


class SelectorEntry(BaseModel):
    """A single routing record."""

    model_config = ConfigDict(frozen=True)

    selector: str = Field(..., description="4-byte function selector (0x-hex)")
    facet_address: str = Field(..., description="Facet currently serving the selector")


class RegistryEvent(BaseModel):
    """One committed administrative change to the routing table."""

    model_config = ConfigDict(frozen=True)

    action: RegistryAction = Field(..., description="add, replace or remove")
    facet_address: str = Field(..., description="Facet the selectors point to after the change, or pointed to before removal")
    previous_facet_address: Optional[str] = Field(None, description="Facet replaced by a replace operation")
    selectors: List[str] = Field(..., description="Selectors touched by the change")
    caller: Optional[str] = Field(None, description="Administrative caller")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Commit timestamp",
    )

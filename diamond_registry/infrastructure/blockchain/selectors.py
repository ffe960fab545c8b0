"""
Function selector helpers for Diamond facets.

Selectors are the first 4 bytes of keccak256 over a function's canonical
signature. The registry never derives them itself; registration tooling
computes them from facet ABIs with the helpers below.
"""

import re
from typing import Any, Dict, List, Tuple, Union

from web3 import Web3

from diamond_registry.core.exceptions import InvalidSelectorError

SelectorLike = Union[str, bytes, int]

_SELECTOR_HEX = re.compile(r"[0-9a-f]{8}")

# Administrative surface of the Diamond proxy itself
DIAMOND_FUNCTIONS: List[str] = [
    "addFacet(address,bytes4[])",
    "updateFacet(address,bytes4[])",
    "selectorToFacet(bytes4)",
]


def selector_for(signature: str) -> str:
    """Return the 0x-prefixed selector hex for a canonical function signature."""
    return "0x" + Web3.keccak(text=signature)[:4].hex().removeprefix("0x")


DIAMOND_SELECTORS: Dict[str, str] = {
    signature: selector_for(signature) for signature in DIAMOND_FUNCTIONS
}


def normalize_selector(value: SelectorLike) -> str:
    """
    Normalize a selector to lowercase 0x-prefixed 8-digit hex.

    Accepts "0xAABBCCDD", "aabbccdd", 4 raw bytes or an int below 2**32.

    Raises:
        InvalidSelectorError: if the value is not a 4-byte selector
    """
    if isinstance(value, bool):
        raise InvalidSelectorError(value)

    if isinstance(value, (bytes, bytearray)):
        if len(value) != 4:
            raise InvalidSelectorError(value)
        return "0x" + bytes(value).hex()

    if isinstance(value, int):
        if not 0 <= value < 2**32:
            raise InvalidSelectorError(value)
        return f"0x{value:08x}"

    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if not _SELECTOR_HEX.fullmatch(text):
            raise InvalidSelectorError(value)
        return "0x" + text

    raise InvalidSelectorError(value)


def canonical_type(param: Dict[str, Any]) -> str:
    """
    Canonical ABI type for a parameter.

    Tuples are expanded into their component types, keeping any array
    suffix: a ``tuple[]`` of (address, uint256) becomes ``(address,uint256)[]``.
    """
    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type

    suffix = abi_type[len("tuple"):]
    inner = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({inner}){suffix}"


def function_signature(abi_item: Dict[str, Any]) -> str:
    """Build ``name(type1,type2,...)`` for an ABI function entry."""
    inputs = ",".join(canonical_type(p) for p in abi_item.get("inputs", []))
    return f"{abi_item['name']}({inputs})"


def selectors_from_abi(abi: List[Dict[str, Any]]) -> List[Tuple[str, str]]:
    """
    Extract ``(signature, selector)`` pairs for every function in an ABI.

    Events, errors, constructors and fallback entries are ignored. The
    result keeps ABI order and drops duplicate signatures.
    """
    seen = set()
    pairs: List[Tuple[str, str]] = []

    for item in abi:
        if item.get("type") != "function":
            continue
        signature = function_signature(item)
        if signature in seen:
            continue
        seen.add(signature)
        pairs.append((signature, selector_for(signature)))

    return pairs

"""
Call dispatcher for the Diamond routing table.

Reads the selector from the head of a call payload, resolves it against the
registry and forwards the whole payload to the facet that serves it. Facets
are reached only through an address-indexed executor; the dispatcher never
knows what a facet is beyond its address.
"""

from typing import Callable, Dict

from diamond_registry.core.exceptions import FacetExecutionError, FunctionNotFoundError
from diamond_registry.core.logging import get_logger, log_dispatch
from diamond_registry.domain.models.route import normalize_address
from diamond_registry.domain.registry import SelectorRegistry

logger = get_logger(__name__)

SELECTOR_SIZE = 4

# (facet_address, calldata) -> return data
FacetExecutor = Callable[[str, bytes], bytes]
FacetHandler = Callable[[bytes], bytes]


class FacetDirectory:
    """Executor backed by in-process handlers, one per facet address."""

    def __init__(self):
        self._handlers: Dict[str, FacetHandler] = {}

    def deploy(self, facet_address: str, handler: FacetHandler) -> str:
        address = normalize_address(facet_address)
        self._handlers[address] = handler
        return address

    def retire(self, facet_address: str) -> None:
        self._handlers.pop(normalize_address(facet_address), None)

    def __call__(self, facet_address: str, calldata: bytes) -> bytes:
        handler = self._handlers.get(facet_address)
        if handler is None:
            raise LookupError(f"No facet deployed at {facet_address}")
        return handler(calldata)


class Dispatcher:
    """Routes call payloads to facets through the selector registry."""

    def __init__(self, registry: SelectorRegistry, executor: FacetExecutor):
        self.registry = registry
        self.executor = executor

    def dispatch(self, calldata: bytes) -> bytes:
        """
        Forward ``calldata`` to the facet serving its selector.

        Returns:
            The facet's return data, unchanged

        Raises:
            FunctionNotFoundError: payload has no selector or the selector has no route
            FacetExecutionError: the facet failed while executing the call
        """
        if len(calldata) < SELECTOR_SIZE:
            log_dispatch(None, status="not_found", size=len(calldata))
            raise FunctionNotFoundError(None, {"reason": "calldata shorter than a selector"})

        selector = "0x" + bytes(calldata[:SELECTOR_SIZE]).hex()
        facet_address = self.registry.resolve(selector)
        if facet_address is None:
            log_dispatch(selector, status="not_found")
            raise FunctionNotFoundError(selector)

        try:
            result = self.executor(facet_address, bytes(calldata))
        except Exception as e:
            logger.warning(f"Facet {facet_address} failed for {selector}: {e}")
            log_dispatch(selector, facet_address, status="failed")
            raise FacetExecutionError(selector, facet_address, {"error": str(e)}) from e

        log_dispatch(selector, facet_address)
        return result

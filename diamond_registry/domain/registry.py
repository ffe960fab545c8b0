"""
Selector Registry.

Owns the function-selector -> facet-address routing table of a Diamond proxy
and the administrative operations that maintain it.

Writes are serialized by a single writer lock and validated in full before
anything is mutated. Each committed write publishes a new read-only mapping in
one reference assignment, so readers never take the lock and always see either
the complete old table or the complete new one.
"""

import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Set

from diamond_registry.core.exceptions import (
    EmptySelectorBatchError,
    SelectorAlreadyRegisteredError,
    SelectorNotFoundError,
    UnauthorizedError,
)
from diamond_registry.core.logging import LoggerMixin, log_registry_operation
from diamond_registry.domain.models.route import (
    RegistryAction,
    RegistryEvent,
    SelectorEntry,
    normalize_address,
)
from diamond_registry.infrastructure.blockchain.selectors import (
    SelectorLike,
    normalize_selector,
)


class Authorizer(Protocol):
    """Capability deciding who may change the routing table."""

    def is_authorized(self, caller: Optional[str]) -> bool: ...


class SelectorRegistry(LoggerMixin):
    """Selector -> facet routing table with add/replace/remove/resolve."""

    def __init__(self, authorizer: Authorizer):
        self._authorizer = authorizer
        self._write_lock = threading.Lock()
        self._routes: Mapping[str, str] = MappingProxyType({})
        self._events: List[RegistryEvent] = []

    @classmethod
    def restore(cls, routes: Mapping[str, str], authorizer: Authorizer) -> "SelectorRegistry":
        """
        Rebuild a registry from a snapshot.

        Every entry is validated the same way ``register`` validates input.
        No audit events are recorded for restored routes.
        """
        registry = cls(authorizer)
        table = {
            normalize_selector(selector): normalize_address(address)
            for selector, address in routes.items()
        }
        registry._routes = MappingProxyType(table)
        return registry

    # Administrative surface

    def register(
        self, selectors: Iterable[SelectorLike], facet_address: str, caller: Optional[str]
    ) -> List[str]:
        """
        Route every selector in the batch to ``facet_address``.

        Selectors already pointing at the same facet are accepted unchanged.
        The batch is applied as a whole or not at all.

        Returns:
            Selectors that were newly added (empty for a fully idempotent call)

        Raises:
            UnauthorizedError: caller lacks the administrative capability
            EmptySelectorBatchError: no selectors supplied
            InvalidFacetAddressError: null, zero or malformed address
            SelectorAlreadyRegisteredError: a selector points at another facet
        """
        self._authorize(caller)
        batch = self._normalize_batch(selectors)
        address = normalize_address(facet_address)

        with self._write_lock:
            current = self._routes
            added = []
            for selector in batch:
                existing = current.get(selector)
                if existing is None:
                    added.append(selector)
                elif existing != address:
                    raise SelectorAlreadyRegisteredError(selector, existing)

            if not added:
                self.logger.debug("Register is a no-op", facet_address=address, selectors=batch)
                return []

            table = dict(current)
            table.update((selector, address) for selector in added)
            self._commit(
                table,
                [
                    RegistryEvent(
                        action=RegistryAction.ADD,
                        facet_address=address,
                        selectors=added,
                        caller=caller,
                    )
                ],
            )
        return added

    def replace(self, selector: SelectorLike, new_facet_address: str, caller: Optional[str]) -> bool:
        """
        Repoint one registered selector to a new facet.

        Returns:
            False when the selector already pointed at ``new_facet_address``

        Raises:
            SelectorNotFoundError: the selector has no current entry
        """
        return bool(self.replace_facet([selector], new_facet_address, caller))

    def replace_facet(
        self, selectors: Iterable[SelectorLike], new_facet_address: str, caller: Optional[str]
    ) -> List[str]:
        """
        Repoint a batch of registered selectors to ``new_facet_address``.

        Used when a facet is redeployed: every selector it serves moves to the
        new deployment in a single step.

        Returns:
            Selectors whose target actually changed
        """
        self._authorize(caller)
        batch = self._normalize_batch(selectors)
        address = normalize_address(new_facet_address)

        with self._write_lock:
            current = self._routes
            missing = [selector for selector in batch if selector not in current]
            if missing:
                raise SelectorNotFoundError(missing)

            changed = [selector for selector in batch if current[selector] != address]
            if not changed:
                return []

            events = [
                RegistryEvent(
                    action=RegistryAction.REPLACE,
                    facet_address=address,
                    previous_facet_address=previous,
                    selectors=moved,
                    caller=caller,
                )
                for previous, moved in self._group_by_facet(current, changed).items()
            ]
            table = dict(current)
            table.update((selector, address) for selector in changed)
            self._commit(table, events)
        return changed

    def remove(self, selector: SelectorLike, caller: Optional[str]) -> bool:
        """
        Clear the route for a selector.

        Removing an unregistered selector succeeds without side effects.

        Returns:
            True if an entry was removed
        """
        self._authorize(caller)
        key = normalize_selector(selector)

        with self._write_lock:
            return bool(self._remove_locked([key], caller))

    def remove_facet(self, facet_address: str, caller: Optional[str]) -> List[str]:
        """Clear every route currently pointing at ``facet_address``."""
        self._authorize(caller)
        address = normalize_address(facet_address)

        with self._write_lock:
            owned = [s for s, target in self._routes.items() if target == address]
            return self._remove_locked(owned, caller)

    # Routing and introspection surface

    def resolve(self, selector: SelectorLike) -> Optional[str]:
        """Facet address serving ``selector``, or None if it is unregistered."""
        return self._routes.get(normalize_selector(selector))

    def entry(self, selector: SelectorLike) -> Optional[SelectorEntry]:
        key = normalize_selector(selector)
        address = self._routes.get(key)
        if address is None:
            return None
        return SelectorEntry(selector=key, facet_address=address)

    def list_registered(self, facet_address: str) -> Set[str]:
        """Every selector currently routed to ``facet_address``."""
        address = normalize_address(facet_address)
        return {s for s, target in self._routes.items() if target == address}

    def facets(self) -> Dict[str, Set[str]]:
        """Facet address -> selectors it serves."""
        routes = self._routes
        return self._group_by_facet(routes, routes.keys(), as_set=True)

    def facet_addresses(self) -> Set[str]:
        return set(self._routes.values())

    def snapshot(self) -> Dict[str, str]:
        return dict(self._routes)

    @property
    def events(self) -> List[RegistryEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, selector: SelectorLike) -> bool:
        return self.resolve(selector) is not None

    # Internals

    def _authorize(self, caller: Optional[str]) -> None:
        if not self._authorizer.is_authorized(caller):
            self.logger.warning("Unauthorized registry change", caller=caller)
            raise UnauthorizedError(caller)

    @staticmethod
    def _normalize_batch(selectors: Iterable[SelectorLike]) -> List[str]:
        if isinstance(selectors, (str, bytes, int)):
            selectors = [selectors]
        batch = list(dict.fromkeys(normalize_selector(s) for s in selectors))
        if not batch:
            raise EmptySelectorBatchError()
        return batch

    @staticmethod
    def _group_by_facet(routes: Mapping[str, str], selectors: Iterable[str], as_set: bool = False):
        grouped: Dict[str, list] = {}
        for selector in selectors:
            grouped.setdefault(routes[selector], []).append(selector)
        if as_set:
            return {facet: set(owned) for facet, owned in grouped.items()}
        return grouped

    def _remove_locked(self, selectors: List[str], caller: Optional[str]) -> List[str]:
        current = self._routes
        present = [selector for selector in selectors if selector in current]
        if not present:
            return []

        events = [
            RegistryEvent(
                action=RegistryAction.REMOVE,
                facet_address=facet,
                selectors=owned,
                caller=caller,
            )
            for facet, owned in self._group_by_facet(current, present).items()
        ]
        removed = set(present)
        table = {s: target for s, target in current.items() if s not in removed}
        self._commit(table, events)
        return present

    def _commit(self, table: Dict[str, str], events: List[RegistryEvent]) -> None:
        self._routes = MappingProxyType(table)
        self._events.extend(events)
        for event in events:
            log_registry_operation(
                event.action.value,
                facet_address=event.facet_address,
                selectors=event.selectors,
                caller=event.caller,
                previous_facet_address=event.previous_facet_address,
            )

"""
Facet Registration Service.
Derives selectors from facet ABIs and registers them with a routing table,
either the in-process registry or the Diamond deployed on chain.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from diamond_registry.api.dto.registry_dto import (
    FacetRegistrationResult,
    FacetStatus,
    RegistrationSummary,
)
from diamond_registry.core.logging import get_logger
from diamond_registry.domain.models.route import normalize_address
from diamond_registry.infrastructure.blockchain.abi_loader import load_abi
from diamond_registry.infrastructure.blockchain.selectors import selectors_from_abi
from diamond_registry.infrastructure.deployment import DeploymentFile

logger = get_logger(__name__)


class RegistrationTarget(Protocol):
    """Routing table that facets can be registered with."""

    def resolve(self, selector: str) -> Optional[str]: ...

    def register(self, selectors: Iterable[str], facet_address: str, caller: Optional[str]) -> List[str]: ...

    def replace_facet(self, selectors: Iterable[str], new_facet_address: str, caller: Optional[str]) -> List[str]: ...


class FacetRegistrationService:
    """Service class for facet registration."""

    def __init__(self, target: RegistrationTarget):
        self.target = target

    def register_facet(
        self,
        facet_name: str,
        facet_address: str,
        abi: List[Dict[str, Any]],
        caller: Optional[str],
    ) -> FacetRegistrationResult:
        """
        Register every function of a facet.

        Selectors already routed to this facet are skipped, so re-running a
        registration is safe. A selector routed to a different facet fails the
        whole batch with SelectorAlreadyRegisteredError.
        """
        selectors = [selector for _, selector in selectors_from_abi(abi)]
        if not selectors:
            logger.warning(f"No selectors: {facet_name}")
            return FacetRegistrationResult(
                facet_name=facet_name, facet_address=facet_address, status=FacetStatus.NO_SELECTORS
            )

        address = normalize_address(facet_address)
        pending = [s for s in selectors if self.target.resolve(s) != address]
        if not pending:
            logger.info(f"{facet_name}: Already registered ({len(selectors)} selectors)")
            return FacetRegistrationResult(
                facet_name=facet_name,
                facet_address=address,
                status=FacetStatus.SKIPPED,
                selectors=selectors,
            )

        logger.info(f"{facet_name}: Registering {len(pending)} selectors...")
        changed = self.target.register(pending, address, caller)
        logger.info(f"{facet_name}: {len(pending)} selectors registered")

        return FacetRegistrationResult(
            facet_name=facet_name,
            facet_address=address,
            status=FacetStatus.REGISTERED,
            selectors=selectors,
            changed=changed,
        )

    def upgrade_facet(
        self,
        facet_name: str,
        new_facet_address: str,
        abi: List[Dict[str, Any]],
        caller: Optional[str],
    ) -> FacetRegistrationResult:
        """
        Point every function of a redeployed facet at its new address.

        Selectors that already have a route are moved with ``replace_facet``;
        functions new in this version are added with ``register``.
        """
        selectors = [selector for _, selector in selectors_from_abi(abi)]
        if not selectors:
            return FacetRegistrationResult(
                facet_name=facet_name, facet_address=new_facet_address, status=FacetStatus.NO_SELECTORS
            )

        address = normalize_address(new_facet_address)
        routed = [s for s in selectors if self.target.resolve(s) is not None]
        added = [s for s in selectors if s not in routed]

        changed: List[str] = []
        if routed:
            changed.extend(self.target.replace_facet(routed, address, caller))
        if added:
            changed.extend(self.target.register(added, address, caller))

        logger.info(
            f"{facet_name} upgraded to {address}: {len(routed)} replaced, {len(added)} added"
        )
        return FacetRegistrationResult(
            facet_name=facet_name,
            facet_address=address,
            status=FacetStatus.UPGRADED,
            selectors=selectors,
            changed=changed,
        )

    def register_deployment(
        self,
        deployment: DeploymentFile,
        abi_dir: Union[str, Path],
        caller: Optional[str],
    ) -> RegistrationSummary:
        """
        Register every facet listed in a deployment file.

        Facets whose ABI or address cannot be found, or whose registration
        fails, are logged and reported; the run continues with the next one.
        """
        summary = RegistrationSummary()

        for facet_name, key in deployment.facet_names().items():
            facet_address = deployment.contracts.get(key)
            if not facet_address:
                logger.warning(f"Address not found: {facet_name}")
                summary.results.append(
                    FacetRegistrationResult(facet_name=facet_name, status=FacetStatus.MISSING_ADDRESS)
                )
                continue

            try:
                abi = load_abi(facet_name, abi_dir)
            except FileNotFoundError:
                logger.warning(f"ABI not found: {facet_name}")
                summary.results.append(
                    FacetRegistrationResult(
                        facet_name=facet_name, facet_address=facet_address, status=FacetStatus.MISSING_ABI
                    )
                )
                continue

            try:
                result = self.register_facet(facet_name, facet_address, abi, caller)
            except Exception as e:
                logger.error(f"{facet_name}: {e}")
                result = FacetRegistrationResult(
                    facet_name=facet_name,
                    facet_address=facet_address,
                    status=FacetStatus.FAILED,
                    error=str(e),
                )
            summary.results.append(result)

        logger.info(
            f"Registration complete: {summary.succeeded}/{len(summary.results)} facets, "
            f"{summary.total_selectors} selectors"
        )
        return summary

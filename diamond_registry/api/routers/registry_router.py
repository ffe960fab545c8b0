"""
Registry Router.
Handles routing table administration and introspection endpoints.
"""

from fastapi import APIRouter, Depends

from diamond_registry.api.deps.registry_deps import get_caller, get_registry
from diamond_registry.api.dto.registry_dto import (
    ApiResponseDTO,
    FacetDTO,
    FacetSyncRequestDTO,
    RegisterSelectorsRequestDTO,
    RegistryChangeDTO,
    RegistryEventDTO,
    ReplaceSelectorsRequestDTO,
    SelectorRouteDTO,
)
from diamond_registry.api.services.registration_service import FacetRegistrationService
from diamond_registry.api.services.registry_service import persist_registry
from diamond_registry.core.logging import get_logger
from diamond_registry.domain.models.route import normalize_address
from diamond_registry.domain.registry import SelectorRegistry
from diamond_registry.infrastructure.blockchain.selectors import normalize_selector

logger = get_logger(__name__)

# Create router
router = APIRouter()


@router.get("/selectors/{selector}", response_model=ApiResponseDTO)
async def resolve_selector(
    selector: str,
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """
    Resolve a selector to the facet serving it.

    An unregistered selector is a normal result (``registered: false``),
    not an error.
    """
    key = normalize_selector(selector)
    facet_address = registry.resolve(key)
    return ApiResponseDTO(
        success=True,
        message="Selector resolved" if facet_address else "Selector not registered",
        data=SelectorRouteDTO(
            selector=key,
            registered=facet_address is not None,
            facet_address=facet_address,
        ),
    )


@router.get("/facets", response_model=ApiResponseDTO)
async def list_facets(registry: SelectorRegistry = Depends(get_registry)) -> ApiResponseDTO:
    """List every live facet with the selectors it serves."""
    facets = [
        FacetDTO(facet_address=address, selectors=sorted(selectors))
        for address, selectors in sorted(registry.facets().items())
    ]
    return ApiResponseDTO(success=True, message=f"{len(facets)} facets", data=facets)


@router.get("/facets/{facet_address}/selectors", response_model=ApiResponseDTO)
async def list_facet_selectors(
    facet_address: str,
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """List every selector routed to a facet."""
    address = normalize_address(facet_address)
    selectors = sorted(registry.list_registered(address))
    return ApiResponseDTO(
        success=True,
        message=f"{len(selectors)} selectors",
        data=FacetDTO(facet_address=address, selectors=selectors),
    )


@router.get("/events", response_model=ApiResponseDTO)
async def list_events(registry: SelectorRegistry = Depends(get_registry)) -> ApiResponseDTO:
    """Audit log of committed routing table changes."""
    events = [RegistryEventDTO(**event.model_dump(mode="json")) for event in registry.events]
    return ApiResponseDTO(success=True, message=f"{len(events)} events", data=events)


@router.post("/register", response_model=ApiResponseDTO)
async def register_selectors(
    request: RegisterSelectorsRequestDTO,
    caller: str = Depends(get_caller),
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """
    Register a batch of selectors to a facet. (Admin Only)

    Fails with 409 if any selector already points at a different facet;
    nothing is applied in that case.
    """
    logger.info(f"Registering {len(request.selectors)} selectors to {request.facet_address}")
    added = registry.register(request.selectors, request.facet_address, caller)
    if added:
        await persist_registry(registry)

    return ApiResponseDTO(
        success=True,
        message="Selectors registered" if added else "Selectors already registered",
        data=RegistryChangeDTO(facet_address=normalize_address(request.facet_address), changed=added),
    )


@router.post("/replace", response_model=ApiResponseDTO)
async def replace_selectors(
    request: ReplaceSelectorsRequestDTO,
    caller: str = Depends(get_caller),
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """Repoint registered selectors to a new facet. (Admin Only)"""
    logger.info(f"Replacing {len(request.selectors)} selectors with {request.facet_address}")
    changed = registry.replace_facet(request.selectors, request.facet_address, caller)
    if changed:
        await persist_registry(registry)

    return ApiResponseDTO(
        success=True,
        message="Selectors replaced" if changed else "Selectors already point to facet",
        data=RegistryChangeDTO(facet_address=normalize_address(request.facet_address), changed=changed),
    )


@router.delete("/selectors/{selector}", response_model=ApiResponseDTO)
async def remove_selector(
    selector: str,
    caller: str = Depends(get_caller),
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """Remove the route for a selector. Removing an unregistered selector succeeds. (Admin Only)"""
    key = normalize_selector(selector)
    removed = registry.remove(key, caller)
    if removed:
        await persist_registry(registry)

    return ApiResponseDTO(
        success=True,
        message="Selector removed" if removed else "Selector was not registered",
        data=RegistryChangeDTO(changed=[key] if removed else []),
    )


@router.delete("/facets/{facet_address}", response_model=ApiResponseDTO)
async def remove_facet(
    facet_address: str,
    caller: str = Depends(get_caller),
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """Remove every route pointing at a facet. (Admin Only)"""
    removed = registry.remove_facet(facet_address, caller)
    if removed:
        await persist_registry(registry)

    return ApiResponseDTO(
        success=True,
        message=f"{len(removed)} selectors removed",
        data=RegistryChangeDTO(facet_address=normalize_address(facet_address), changed=removed),
    )


@router.post("/facets/sync", response_model=ApiResponseDTO)
async def sync_facet(
    request: FacetSyncRequestDTO,
    caller: str = Depends(get_caller),
    registry: SelectorRegistry = Depends(get_registry),
) -> ApiResponseDTO:
    """
    Register a facet from its ABI. (Admin Only)

    Selectors are derived from the ABI's functions. Re-running for a facet
    that is already fully registered is a no-op. With ``upgrade`` set, routes
    already held by an older deployment move to this address.
    """
    service = FacetRegistrationService(registry)
    if request.upgrade:
        result = service.upgrade_facet(request.facet_name, request.facet_address, request.abi, caller)
    else:
        result = service.register_facet(request.facet_name, request.facet_address, request.abi, caller)

    if result.changed:
        await persist_registry(registry)

    return ApiResponseDTO(success=True, message=f"Facet {result.status.value}", data=result)

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FacetStatus(str, Enum):

    REGISTERED = "registered"
    UPGRADED = "upgraded"
    SKIPPED = "skipped"
    NO_SELECTORS = "no_selectors"
    MISSING_ABI = "missing_abi"
    MISSING_ADDRESS = "missing_address"
    FAILED = "failed"


# Request DTOs
class RegisterSelectorsRequestDTO(BaseModel):
    """Request DTO for registering selectors to a facet."""

    selectors: List[str] = Field(..., description="4-byte selectors (0x-hex)")
    facet_address: str = Field(..., description="Facet address")


class ReplaceSelectorsRequestDTO(BaseModel):
    """Request DTO for repointing registered selectors."""

    selectors: List[str] = Field(..., description="Registered selectors to move")
    facet_address: str = Field(..., description="New facet address")


class FacetSyncRequestDTO(BaseModel):
    """Request DTO for registering a facet from its ABI."""

    facet_name: str = Field(..., description="Facet contract name")
    facet_address: str = Field(..., description="Deployed facet address")
    abi: List[Dict[str, Any]] = Field(..., description="Facet ABI")
    upgrade: bool = Field(False, description="Move selectors already routed elsewhere to this facet")


class DispatchRequestDTO(BaseModel):
    """Request DTO for routing a call through the Diamond."""

    calldata: str = Field(..., description="ABI encoded call payload (0x-hex)")


class RoleChangeRequestDTO(BaseModel):
    """Request DTO for granting or revoking a role."""

    role: str = Field(..., description="Role name or bytes32 role id")
    account: str = Field(..., description="Account address")


# Response DTOs
class SelectorRouteDTO(BaseModel):
    """Resolution result for one selector."""

    selector: str = Field(..., description="Normalized selector")
    registered: bool = Field(..., description="Whether the selector has a route")
    facet_address: Optional[str] = Field(None, description="Facet serving the selector")


class FacetDTO(BaseModel):
    """Selectors served by one facet."""

    facet_address: str = Field(..., description="Facet address")
    selectors: List[str] = Field(..., description="Selectors routed to the facet")


class RegistryChangeDTO(BaseModel):
    """Outcome of an administrative change."""

    facet_address: Optional[str] = Field(None, description="Facet targeted by the change")
    changed: List[str] = Field(..., description="Selectors whose route changed")


class RegistryEventDTO(BaseModel):
    """Audit log entry."""

    action: str
    facet_address: str
    previous_facet_address: Optional[str] = None
    selectors: List[str]
    caller: Optional[str] = None
    timestamp: datetime


class FacetRegistrationResult(BaseModel):
    """Outcome of registering one facet."""

    facet_name: str = Field(..., description="Facet contract name")
    facet_address: Optional[str] = Field(None, description="Facet address")
    status: FacetStatus = Field(..., description="Registration status")
    selectors: List[str] = Field(default_factory=list, description="Selectors derived from the ABI")
    changed: List[str] = Field(default_factory=list, description="Selectors whose route changed")
    error: Optional[str] = Field(None, description="Failure reason")


class RegistrationSummary(BaseModel):
    """Outcome of registering every facet of a deployment."""

    results: List[FacetRegistrationResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(
            1
            for r in self.results
            if r.status in (FacetStatus.REGISTERED, FacetStatus.UPGRADED, FacetStatus.SKIPPED)
        )

    @property
    def total_selectors(self) -> int:
        return sum(
            len(r.selectors)
            for r in self.results
            if r.status in (FacetStatus.REGISTERED, FacetStatus.UPGRADED, FacetStatus.SKIPPED)
        )


class ApiResponseDTO(BaseModel):
    """Standard response envelope."""

    success: bool = Field(..., description="Operation success status")
    message: str = Field(..., description="Response message")
    data: Optional[Any] = Field(None, description="Response payload")

"""
Access Router.
Handles role membership for registry administration.
"""

from fastapi import APIRouter, Depends, HTTPException

from diamond_registry.api.deps.registry_deps import get_access_control, get_caller
from diamond_registry.api.dto.registry_dto import ApiResponseDTO, RoleChangeRequestDTO
from diamond_registry.core.logging import get_logger
from diamond_registry.domain.access_control import AccessControl, resolve_role

logger = get_logger(__name__)

router = APIRouter()


def _role(role: str) -> str:
    try:
        return resolve_role(role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/roles/{role}", response_model=ApiResponseDTO)
async def get_role_members(
    role: str,
    access_control: AccessControl = Depends(get_access_control),
) -> ApiResponseDTO:
    """List the accounts holding a role."""
    role_key = _role(role)
    members = sorted(access_control.members(role_key))
    return ApiResponseDTO(
        success=True,
        message=f"{len(members)} members",
        data={"role": role_key, "members": members},
    )


@router.post("/grant", response_model=ApiResponseDTO)
async def grant_role(
    request: RoleChangeRequestDTO,
    caller: str = Depends(get_caller),
    access_control: AccessControl = Depends(get_access_control),
) -> ApiResponseDTO:
    """Grant a role to an account. (Default admin only)"""
    granted = access_control.grant_role(_role(request.role), request.account, caller)
    return ApiResponseDTO(
        success=True,
        message="Role granted" if granted else "Account already holds role",
        data={"role": request.role, "account": request.account, "changed": granted},
    )


@router.post("/revoke", response_model=ApiResponseDTO)
async def revoke_role(
    request: RoleChangeRequestDTO,
    caller: str = Depends(get_caller),
    access_control: AccessControl = Depends(get_access_control),
) -> ApiResponseDTO:
    """Revoke a role from an account. (Default admin only)"""
    try:
        revoked = access_control.revoke_role(_role(request.role), request.account, caller)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ApiResponseDTO(
        success=True,
        message="Role revoked" if revoked else "Account did not hold role",
        data={"role": request.role, "account": request.account, "changed": revoked},
    )

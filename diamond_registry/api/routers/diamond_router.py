"""
Diamond Router.
Routes ABI encoded calls to the facet serving their selector.
"""

from eth_utils import to_bytes
from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from diamond_registry.api.deps.registry_deps import get_dispatcher
from diamond_registry.api.dto.registry_dto import ApiResponseDTO, DispatchRequestDTO
from diamond_registry.core.logging import get_logger
from diamond_registry.domain.dispatcher import Dispatcher

logger = get_logger(__name__)

router = APIRouter()


@router.post("/call", response_model=ApiResponseDTO)
async def call_diamond(
    request: DispatchRequestDTO,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> ApiResponseDTO:
    """
    Dispatch a call through the Diamond.

    The selector is read from the first 4 bytes of ``calldata``. An
    unregistered selector answers 404 with ``FUNCTION_NOT_FOUND``; a facet
    that fails answers 502 with ``FACET_EXECUTION_FAILED``.
    """
    try:
        calldata = to_bytes(hexstr=request.calldata)
    except ValueError:
        raise HTTPException(status_code=422, detail="calldata must be 0x-prefixed hex")

    result = await run_in_threadpool(dispatcher.dispatch, calldata)

    return ApiResponseDTO(
        success=True,
        message="Call executed",
        data={"selector": "0x" + calldata[:4].hex(), "result": "0x" + result.hex()},
    )

"""
FastAPI dependencies for the registry API.
Provides the registry components held on application state and the
administrative caller identity.
"""

from fastapi import Request

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import AuthenticationError
from diamond_registry.core.logging import get_logger
from diamond_registry.core.security import admin_request_verifier
from diamond_registry.domain.access_control import AccessControl
from diamond_registry.domain.dispatcher import Dispatcher
from diamond_registry.domain.registry import SelectorRegistry

logger = get_logger(__name__)

CALLER_HEADER = "X-Caller-Address"
SIGNATURE_HEADER = "X-Caller-Signature"
TIMESTAMP_HEADER = "X-Caller-Timestamp"


def get_registry(request: Request) -> SelectorRegistry:
    return request.app.state.registry


def get_access_control(request: Request) -> AccessControl:
    return request.app.state.access_control


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


async def get_caller(request: Request) -> str:
    """
    FastAPI dependency returning the administrative caller address.

    Authorization itself is decided by the registry and access control;
    this only establishes who is calling.

    Raises:
        AuthenticationError: if the caller header is missing or, with
            REQUIRE_SIGNED_REQUESTS, the request signature is invalid
    """
    caller = request.headers.get(CALLER_HEADER)
    if not caller:
        raise AuthenticationError(f"Missing {CALLER_HEADER} header")

    if settings.REQUIRE_SIGNED_REQUESTS:
        admin_request_verifier.verify(
            method=request.method,
            path=request.url.path,
            caller=caller,
            signature=request.headers.get(SIGNATURE_HEADER),
            timestamp=request.headers.get(TIMESTAMP_HEADER),
        )

    logger.debug(f"Admin request from {caller}: {request.method} {request.url.path}")
    return caller

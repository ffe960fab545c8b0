"""
Diamond Registry - FastAPI Application
Main entry point for the Diamond selector registry service.
Exposes the selector -> facet routing table, its administration and call dispatch.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diamond_registry.api.services.registry_service import build_access_control, load_registry
from diamond_registry.core.config import is_production, settings
from diamond_registry.core.exceptions import RegistryException, get_exception_status_code
from diamond_registry.core.logging import get_logger, setup_logging
from diamond_registry.domain.dispatcher import Dispatcher, FacetExecutor
from diamond_registry.domain.registry import SelectorRegistry
from diamond_registry.infrastructure.blockchain.contract_client import ChainFacetExecutor
from diamond_registry.infrastructure.cache import redis_client

logger = get_logger(__name__)


def _install_registry(app: FastAPI, registry: SelectorRegistry, executor: FacetExecutor) -> None:
    app.state.registry = registry
    app.state.dispatcher = Dispatcher(registry, executor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Restores the routing table snapshot on startup and closes Redis on
    shutdown when persistence is enabled.
    """
    setup_logging()
    if settings.REGISTRY_PERSISTENCE_ENABLED:
        registry = await load_registry(app.state.access_control)
        _install_registry(app, registry, app.state.dispatcher.executor)
    yield
    if settings.REGISTRY_PERSISTENCE_ENABLED:
        await redis_client.close()


def create_app(executor: Optional[FacetExecutor] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        executor: Facet executor used for dispatch (eth_call against the
            configured RPC if None)

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    docs_enabled = not is_production()
    app = FastAPI(
        title=settings.APP_NAME,
        description="Function selector routing table for a Diamond proxy - facet registration, upgrade, removal and call dispatch",
        version="1.0.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    access_control = build_access_control()
    app.state.access_control = access_control
    _install_registry(app, SelectorRegistry(access_control), executor or ChainFacetExecutor())

    @app.exception_handler(RegistryException)
    async def registry_exception_handler(request: Request, exc: RegistryException):
        status_code = get_exception_status_code(exc)
        logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.error_code}")
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error_code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            },
        )

    from diamond_registry.api.routers import access_router, diamond_router, registry_router

    app.include_router(
        registry_router.router, prefix="/api/v1/registry", tags=["Selector Registry"]
    )
    app.include_router(
        diamond_router.router, prefix="/api/v1/diamond", tags=["Diamond Dispatch"]
    )
    app.include_router(
        access_router.router, prefix="/api/v1/access", tags=["Access Control"]
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        registry: SelectorRegistry = app.state.registry
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "chain": settings.get_evm_config(),
            "selectors": len(registry),
            "facets": len(registry.facet_addresses()),
            "persistence_enabled": settings.REGISTRY_PERSISTENCE_ENABLED,
        }

    return app


# Create the FastAPI app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "diamond_registry.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )

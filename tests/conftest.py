import os
import sys

import pytest
from httpx import ASGITransport, AsyncClient
from asgi_lifespan import LifespanManager

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
os.environ.setdefault("ANYIO_BACKEND", "asyncio")

from diamond_registry.core.config import settings  # noqa: E402
from diamond_registry.domain.access_control import AccessControl  # noqa: E402
from diamond_registry.domain.dispatcher import FacetDirectory  # noqa: E402
from diamond_registry.domain.registry import SelectorRegistry  # noqa: E402
from diamond_registry.main import create_app  # noqa: E402

# Digit-only addresses are their own EIP-55 checksum form
ADMIN = "0x9999999999999999999999999999999999999999"
OUTSIDER = "0x8888888888888888888888888888888888888888"
FACET_A = "0x1111111111111111111111111111111111111111"
FACET_B = "0x2222222222222222222222222222222222222222"
FACET_C = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def anyio_backend() -> str:
    return os.environ["ANYIO_BACKEND"]


@pytest.fixture
def access_control() -> AccessControl:
    return AccessControl([ADMIN])


@pytest.fixture
def registry(access_control: AccessControl) -> SelectorRegistry:
    """Fresh, empty routing table with ADMIN authorized."""
    return SelectorRegistry(access_control)


@pytest.fixture
def facet_directory() -> FacetDirectory:
    return FacetDirectory()


@pytest.fixture
def app(monkeypatch, facet_directory: FacetDirectory):
    """Application wired to in-process facets and a single configured admin."""
    monkeypatch.setattr(settings, "REGISTRY_ADMIN_ADDRESSES", [ADMIN], raising=False)
    monkeypatch.setattr(settings, "REGISTRY_PERSISTENCE_ENABLED", False, raising=False)
    monkeypatch.setattr(settings, "REQUIRE_SIGNED_REQUESTS", False, raising=False)
    return create_app(executor=facet_directory)


@pytest.fixture
async def async_client(app):
    """Shared HTTPX async client with FastAPI lifespan handling."""
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Caller-Address": ADMIN}

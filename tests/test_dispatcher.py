import pytest

from diamond_registry.core.exceptions import FacetExecutionError, FunctionNotFoundError
from diamond_registry.domain.dispatcher import Dispatcher, FacetDirectory
from tests.conftest import ADMIN, FACET_A, FACET_B

TRANSFER = bytes.fromhex("a9059cbb")


@pytest.fixture
def dispatcher(registry, facet_directory):
    return Dispatcher(registry, facet_directory)


def test_dispatch_forwards_full_payload(registry, facet_directory, dispatcher):
    received = []

    def handler(calldata: bytes) -> bytes:
        received.append(calldata)
        return b"\x00" * 31 + b"\x01"

    facet_directory.deploy(FACET_A, handler)
    registry.register([TRANSFER], FACET_A, ADMIN)
    payload = TRANSFER + b"\x11" * 64

    assert dispatcher.dispatch(payload) == b"\x00" * 31 + b"\x01"
    assert received == [payload]


def test_dispatch_follows_replacement(registry, facet_directory, dispatcher):
    facet_directory.deploy(FACET_A, lambda data: b"v1")
    facet_directory.deploy(FACET_B, lambda data: b"v2")
    registry.register([TRANSFER], FACET_A, ADMIN)
    assert dispatcher.dispatch(TRANSFER) == b"v1"

    registry.replace(TRANSFER, FACET_B, ADMIN)

    assert dispatcher.dispatch(TRANSFER) == b"v2"


def test_dispatch_unregistered_selector(dispatcher):
    with pytest.raises(FunctionNotFoundError) as exc_info:
        dispatcher.dispatch(bytes.fromhex("deadbeef"))

    assert exc_info.value.details["selector"] == "0xdeadbeef"


@pytest.mark.parametrize("calldata", [b"", b"\xa9", b"\xa9\x05\x9c"])
def test_dispatch_short_calldata(dispatcher, calldata):
    with pytest.raises(FunctionNotFoundError):
        dispatcher.dispatch(calldata)


def test_facet_failure_is_distinct_from_not_found(registry, facet_directory, dispatcher):
    def reverts(calldata: bytes) -> bytes:
        raise RuntimeError("execution reverted")

    facet_directory.deploy(FACET_A, reverts)
    registry.register([TRANSFER], FACET_A, ADMIN)

    with pytest.raises(FacetExecutionError) as exc_info:
        dispatcher.dispatch(TRANSFER)

    assert exc_info.value.details["facet_address"] == FACET_A
    assert "execution reverted" in exc_info.value.details["error"]
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_routed_to_retired_facet_fails_execution(registry, facet_directory, dispatcher):
    facet_directory.deploy(FACET_A, lambda data: b"")
    registry.register([TRANSFER], FACET_A, ADMIN)
    facet_directory.retire(FACET_A)

    with pytest.raises(FacetExecutionError):
        dispatcher.dispatch(TRANSFER)


def test_facet_directory_normalizes_addresses():
    directory = FacetDirectory()
    address = directory.deploy(FACET_A.lower(), lambda data: data[::-1])

    assert address == FACET_A
    assert directory(FACET_A, b"\x01\x02") == b"\x02\x01"

import json

import pytest

from diamond_registry.api.dto.registry_dto import FacetStatus
from diamond_registry.api.services.registration_service import FacetRegistrationService
from diamond_registry.core.exceptions import SelectorAlreadyRegisteredError
from diamond_registry.infrastructure.deployment import DeploymentFile
from tests.conftest import ADMIN, FACET_A, FACET_B, FACET_C

TOKEN_ABI = [
    {"type": "function", "name": "transfer", "inputs": [{"type": "address"}, {"type": "uint256"}]},
    {"type": "function", "name": "balanceOf", "inputs": [{"type": "address"}]},
    {"type": "event", "name": "Transfer", "inputs": []},
]
SUPPLY_ABI = [{"type": "function", "name": "totalSupply", "inputs": []}]


@pytest.fixture
def service(registry):
    return FacetRegistrationService(registry)


def test_register_facet_routes_all_functions(registry, service):
    result = service.register_facet("TokenFacet", FACET_A, TOKEN_ABI, ADMIN)

    assert result.status == FacetStatus.REGISTERED
    assert result.selectors == ["0xa9059cbb", "0x70a08231"]
    assert registry.list_registered(FACET_A) == {"0xa9059cbb", "0x70a08231"}


def test_register_facet_again_is_skipped(registry, service):
    service.register_facet("TokenFacet", FACET_A, TOKEN_ABI, ADMIN)

    result = service.register_facet("TokenFacet", FACET_A.lower(), TOKEN_ABI, ADMIN)

    assert result.status == FacetStatus.SKIPPED
    assert result.changed == []
    assert len(registry.events) == 1


def test_register_facet_with_partial_routes_adds_the_rest(registry, service):
    registry.register(["0xa9059cbb"], FACET_A, ADMIN)

    result = service.register_facet("TokenFacet", FACET_A, TOKEN_ABI, ADMIN)

    assert result.status == FacetStatus.REGISTERED
    assert result.changed == ["0x70a08231"]


def test_register_facet_without_functions(service):
    abi = [{"type": "event", "name": "Transfer", "inputs": []}]

    result = service.register_facet("EventsFacet", FACET_A, abi, ADMIN)

    assert result.status == FacetStatus.NO_SELECTORS


def test_register_facet_conflict_raises(registry, service):
    registry.register(["0x70a08231"], FACET_B, ADMIN)

    with pytest.raises(SelectorAlreadyRegisteredError):
        service.register_facet("TokenFacet", FACET_A, TOKEN_ABI, ADMIN)
    assert registry.resolve("0xa9059cbb") is None


def test_upgrade_facet_moves_and_adds(registry, service):
    service.register_facet("TokenFacet", FACET_A, TOKEN_ABI, ADMIN)

    result = service.upgrade_facet("TokenFacet", FACET_C, TOKEN_ABI + SUPPLY_ABI, ADMIN)

    assert result.status == FacetStatus.UPGRADED
    assert sorted(result.changed) == ["0x18160ddd", "0x70a08231", "0xa9059cbb"]
    assert registry.list_registered(FACET_A) == set()
    assert registry.list_registered(FACET_C) == {"0xa9059cbb", "0x70a08231", "0x18160ddd"}


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_register_deployment_reports_each_facet(tmp_path, registry, service):
    abi_dir = tmp_path / "abis"
    _write_json(abi_dir / "TokenFacet.json", {"contractName": "TokenFacet", "abi": TOKEN_ABI})
    _write_json(abi_dir / "SupplyFacet.json", SUPPLY_ABI)
    _write_json(abi_dir / "ClashFacet.json", [TOKEN_ABI[1]])
    deployment = DeploymentFile(
        tmp_path / "ganache.json",
        {
            "contracts": {
                "MAIN_DIAMOND": "0x4444444444444444444444444444444444444444",
                "TOKEN_FACET": FACET_A,
                "SUPPLY_FACET": FACET_B,
                "CLASH_FACET": FACET_C,
                "MISSING_FACET": "0x5555555555555555555555555555555555555555",
                "EMPTY_FACET": "",
            }
        },
    )

    summary = service.register_deployment(deployment, abi_dir, ADMIN)
    statuses = {r.facet_name: r.status for r in summary.results}

    assert statuses == {
        "TokenFacet": FacetStatus.REGISTERED,
        "SupplyFacet": FacetStatus.REGISTERED,
        "ClashFacet": FacetStatus.FAILED,
        "MissingFacet": FacetStatus.MISSING_ABI,
        "EmptyFacet": FacetStatus.MISSING_ADDRESS,
    }
    assert summary.succeeded == 2
    assert summary.total_selectors == 3
    assert registry.resolve("0x18160ddd") == FACET_B


def test_register_deployment_rerun_skips(tmp_path, registry, service):
    abi_dir = tmp_path / "abis"
    _write_json(abi_dir / "TokenFacet.json", TOKEN_ABI)
    deployment = DeploymentFile(tmp_path / "ganache.json", {"contracts": {"TOKEN_FACET": FACET_A}})

    service.register_deployment(deployment, abi_dir, ADMIN)
    summary = service.register_deployment(deployment, abi_dir, ADMIN)

    assert [r.status for r in summary.results] == [FacetStatus.SKIPPED]

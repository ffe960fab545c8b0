import pytest

from diamond_registry.infrastructure.blockchain.abi_loader import load_abi, merge_abis, save_abi
from diamond_registry.infrastructure.deployment import DIAMOND_KEY, DeploymentFile, facet_key
from tests.conftest import FACET_A, FACET_B


@pytest.mark.parametrize(
    "name, key",
    [
        ("PointOfSalesCoreFacet", "POINT_OF_SALES_CORE_FACET"),
        ("AccessControlFacet", "ACCESS_CONTROL_FACET"),
        ("Token", "TOKEN_FACET"),
    ],
)
def test_facet_key(name, key):
    assert facet_key(name) == key


def test_deployment_file_round_trip(tmp_path):
    path = tmp_path / "deployments" / "ganache.json"
    deployment = DeploymentFile(
        path,
        {"network": "ganache", "chainId": 1337, "contracts": {DIAMOND_KEY: FACET_B}},
    )
    deployment.set_facet_address("PointOfSalesCoreFacet", FACET_A)
    deployment.save()

    loaded = DeploymentFile.load(path)

    assert loaded.diamond_address == FACET_B
    assert loaded.facet_address("PointOfSalesCoreFacet") == FACET_A
    assert loaded.facet_names() == {"PointOfSalesCoreFacet": "POINT_OF_SALES_CORE_FACET"}
    assert loaded.data["chainId"] == 1337


def test_missing_deployment_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DeploymentFile.load(tmp_path / "nowhere.json")


def test_load_abi_accepts_artifact_and_list(tmp_path):
    abi = [{"type": "function", "name": "totalSupply", "inputs": []}]
    save_abi(abi, tmp_path / "Plain.json")
    (tmp_path / "Artifact.json").write_text('{"abi": [{"type": "fallback"}]}', encoding="utf-8")
    (tmp_path / "Broken.json").write_text('{"bytecode": "0x"}', encoding="utf-8")

    assert load_abi("Plain", tmp_path) == abi
    assert load_abi("Artifact", tmp_path) == [{"type": "fallback"}]
    with pytest.raises(ValueError):
        load_abi("Broken", tmp_path)
    with pytest.raises(FileNotFoundError):
        load_abi("Missing", tmp_path)


def test_merge_abis_replaces_same_named_entries():
    base = [
        {"type": "constructor", "inputs": []},
        {"type": "function", "name": "transfer", "inputs": []},
        {"type": "function", "name": "balanceOf", "inputs": [{"type": "address"}]},
        {"type": "event", "name": "Transfer", "inputs": []},
    ]
    incoming = [
        {"type": "function", "name": "transfer", "inputs": [{"type": "address"}, {"type": "uint256"}]},
        {"type": "event", "name": "Transfer", "inputs": [{"type": "address"}]},
    ]

    merged = merge_abis(base, incoming)

    assert merged == [base[0], base[2]] + incoming

import pytest

from diamond_registry.core.exceptions import InvalidSelectorError
from diamond_registry.infrastructure.blockchain.selectors import (
    DIAMOND_SELECTORS,
    canonical_type,
    function_signature,
    normalize_selector,
    selector_for,
    selectors_from_abi,
)


@pytest.mark.parametrize(
    "signature, expected",
    [
        ("transfer(address,uint256)", "0xa9059cbb"),
        ("balanceOf(address)", "0x70a08231"),
        ("totalSupply()", "0x18160ddd"),
        ("approve(address,uint256)", "0x095ea7b3"),
    ],
)
def test_selector_for_known_signatures(signature, expected):
    assert selector_for(signature) == expected


def test_diamond_selectors_are_unique():
    values = list(DIAMOND_SELECTORS.values())
    assert len(values) == len(set(values))
    assert all(len(v) == 10 and v.startswith("0x") for v in values)


@pytest.mark.parametrize(
    "value",
    ["0xa9059cbb", "0xA9059CBB", "a9059cbb", "  0xa9059cbb ", b"\xa9\x05\x9c\xbb", 0xA9059CBB],
)
def test_normalize_selector_forms(value):
    assert normalize_selector(value) == "0xa9059cbb"


def test_normalize_small_int_is_zero_padded():
    assert normalize_selector(1) == "0x00000001"


@pytest.mark.parametrize(
    "value",
    [
        "", "0x", "0xa9059c", "0xa9059cbb00", "0xzzzzzzzz",
        "+1234567", "-1234567", "1_234567", "0x-0000001", "0x\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668",
        b"\x01\x02", 2**32, -1, True, None, 1.5,
    ],
)
def test_normalize_selector_rejects_malformed(value):
    with pytest.raises(InvalidSelectorError):
        normalize_selector(value)


def test_canonical_type_expands_tuples():
    param = {
        "type": "tuple[]",
        "components": [
            {"type": "address"},
            {"type": "tuple", "components": [{"type": "uint256"}, {"type": "bytes32"}]},
        ],
    }
    assert canonical_type(param) == "(address,(uint256,bytes32))[]"


def test_function_signature_without_inputs():
    assert function_signature({"type": "function", "name": "totalSupply"}) == "totalSupply()"


def test_selectors_from_abi_keeps_functions_only():
    abi = [
        {"type": "constructor", "inputs": []},
        {"type": "event", "name": "Transfer", "inputs": [{"type": "address"}]},
        {"type": "function", "name": "transfer", "inputs": [{"type": "address"}, {"type": "uint256"}]},
        {"type": "error", "name": "Unauthorized", "inputs": []},
        {"type": "function", "name": "balanceOf", "inputs": [{"type": "address"}]},
        {"type": "function", "name": "transfer", "inputs": [{"type": "address"}, {"type": "uint256"}]},
        {"type": "fallback"},
    ]

    assert selectors_from_abi(abi) == [
        ("transfer(address,uint256)", "0xa9059cbb"),
        ("balanceOf(address)", "0x70a08231"),
    ]

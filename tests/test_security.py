import time

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import AuthenticationError
from diamond_registry.core.security import AdminRequestVerifier

PATH = "/api/v1/registry/register"


@pytest.fixture
def wallet():
    return Account.create()


@pytest.fixture
def verifier():
    return AdminRequestVerifier()


def _sign(verifier, wallet, method, path, timestamp):
    message = encode_defunct(text=verifier.create_request_message(method, path, timestamp))
    signed = Account.sign_message(message, private_key=wallet.key)
    return "0x" + bytes(signed.signature).hex()


def test_request_message_format(verifier):
    message = verifier.create_request_message("post", PATH, 1700000000)
    assert message == f"{settings.SIGNATURE_MESSAGE_PREFIX}\nPOST {PATH}\nTimestamp: 1700000000"


def test_valid_signature_passes(verifier, wallet):
    ts = int(time.time())
    signature = _sign(verifier, wallet, "POST", PATH, ts)

    verifier.verify("POST", PATH, wallet.address.lower(), signature, str(ts))


def test_signature_for_other_path_fails(verifier, wallet):
    ts = int(time.time())
    signature = _sign(verifier, wallet, "POST", "/api/v1/registry/replace", ts)

    with pytest.raises(AuthenticationError):
        verifier.verify("POST", PATH, wallet.address, signature, str(ts))


def test_expired_signature_fails(verifier, wallet):
    ts = 1700000000
    signature = _sign(verifier, wallet, "POST", PATH, ts)

    with pytest.raises(AuthenticationError):
        verifier.verify("POST", PATH, wallet.address, signature, str(ts), now=ts + 3600)


@pytest.mark.parametrize("signature, timestamp", [(None, "1"), ("0x1234", "1"), ("0x" + "ab" * 65, "soon")])
def test_malformed_headers_fail(verifier, wallet, signature, timestamp):
    with pytest.raises(AuthenticationError):
        verifier.verify("POST", PATH, wallet.address, signature, timestamp)


@pytest.mark.anyio
async def test_signed_requests_enforced_by_api(monkeypatch, async_client, wallet):
    monkeypatch.setattr(settings, "REQUIRE_SIGNED_REQUESTS", True)
    body = {"selectors": ["0xa9059cbb"], "facet_address": "0x1111111111111111111111111111111111111111"}

    unsigned = await async_client.post(PATH, json=body, headers={"X-Caller-Address": wallet.address})
    assert unsigned.status_code == 401

    ts = int(time.time())
    headers = {
        "X-Caller-Address": wallet.address,
        "X-Caller-Signature": _sign(AdminRequestVerifier(), wallet, "POST", PATH, ts),
        "X-Caller-Timestamp": str(ts),
    }
    signed = await async_client.post(PATH, json=body, headers=headers)

    # Authenticated, but the wallet holds no admin role
    assert signed.status_code == 403
    assert signed.json()["error_code"] == "UNAUTHORIZED"

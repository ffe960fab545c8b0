"""
Security utilities for the Diamond Registry service.
Verifies wallet signatures on administrative requests.
"""

import time
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import AuthenticationError
from diamond_registry.core.logging import get_logger

logger = get_logger(__name__)


class AdminRequestVerifier:
    """Checks that an admin request was signed by the claimed caller."""

    def __init__(self):
        self.message_prefix = settings.SIGNATURE_MESSAGE_PREFIX
        self.max_age_seconds = settings.NONCE_EXPIRE_MINUTES * 60

    def create_request_message(self, method: str, path: str, timestamp: int) -> str:
        """
        Create the message a caller signs for one request.

        Args:
            method: HTTP method
            path: Request path
            timestamp: Unix timestamp sent in X-Caller-Timestamp

        Returns:
            str: Message to be signed by the wallet (EIP-191 personal_sign)
        """
        return f"{self.message_prefix}\n{method.upper()} {path}\nTimestamp: {timestamp}"

    def verify(
        self,
        method: str,
        path: str,
        caller: str,
        signature: Optional[str],
        timestamp: Optional[str],
        now: Optional[float] = None,
    ) -> None:
        """
        Verify a signed admin request.

        Raises:
            AuthenticationError: missing, stale or mismatching signature
        """
        if not self._validate_signature_format(signature):
            raise AuthenticationError("Missing or malformed X-Caller-Signature")

        try:
            ts = int(timestamp)
        except (TypeError, ValueError):
            raise AuthenticationError("Missing or malformed X-Caller-Timestamp") from None

        now = time.time() if now is None else now
        if abs(now - ts) > self.max_age_seconds:
            raise AuthenticationError("Signed request has expired", {"timestamp": ts})

        message = encode_defunct(text=self.create_request_message(method, path, ts))
        try:
            recovered = Account.recover_message(message, signature=signature)
        except Exception as e:
            logger.error("Error verifying admin signature", error=str(e))
            raise AuthenticationError(f"Signature verification failed: {e}") from e

        if recovered.lower() != caller.lower():
            logger.warning("Admin signature mismatch", expected=caller, recovered=recovered)
            raise AuthenticationError("Signature does not match caller")

    def _validate_signature_format(self, signature: Optional[str]) -> bool:
        """Validate signature format."""
        if not signature or not signature.startswith("0x"):
            return False
        return len(signature) == 132  # 0x + 130 hex chars


admin_request_verifier = AdminRequestVerifier()

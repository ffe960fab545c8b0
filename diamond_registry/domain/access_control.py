"""
Role based access control for registry administration.

Roles are bytes32 identifiers: DEFAULT_ADMIN_ROLE is all zero bytes and every
other role is keccak256 of its name, matching the Diamond's access control
facet so the same role ids work on and off chain.
"""

import threading
from typing import Dict, Iterable, Optional, Set

from eth_utils import is_address, to_checksum_address
from web3 import Web3

from diamond_registry.core.exceptions import AuthenticationError, UnauthorizedError
from diamond_registry.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_ROLE = "0x" + "00" * 32


def role_id(name: str) -> str:
    """Return the bytes32 role id for a role name."""
    if name == "DEFAULT_ADMIN_ROLE":
        return DEFAULT_ADMIN_ROLE
    return "0x" + Web3.keccak(text=name).hex().removeprefix("0x")


ROLES: Dict[str, str] = {
    name: role_id(name)
    for name in ("DEFAULT_ADMIN_ROLE", "ADMIN_ROLE", "OPERATOR_ROLE")
}

# Roles allowed to change the routing table
REGISTRY_ADMIN_ROLES = (ROLES["DEFAULT_ADMIN_ROLE"], ROLES["ADMIN_ROLE"])


def resolve_role(role: str) -> str:
    """Accept either a known role name or a bytes32 role id."""
    if role in ROLES:
        return ROLES[role]
    text = role.lower()
    if text.startswith("0x") and len(text) == 66:
        return text
    raise ValueError(f"Unknown role: {role}")


def _account(value: Optional[str]) -> str:
    if not value or not is_address(value):
        raise AuthenticationError(f"Invalid caller address: {value}")
    return to_checksum_address(value)


class AccessControl:
    """In-memory role table consulted by the selector registry."""

    def __init__(self, admins: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._members: Dict[str, Set[str]] = {}
        for admin in admins:
            self._members.setdefault(DEFAULT_ADMIN_ROLE, set()).add(_account(admin))

    def has_role(self, role: str, account: Optional[str]) -> bool:
        if not account or not is_address(account):
            return False
        return to_checksum_address(account) in self._members.get(resolve_role(role), set())

    def members(self, role: str) -> Set[str]:
        return set(self._members.get(resolve_role(role), set()))

    def is_authorized(self, caller: Optional[str]) -> bool:
        """True when the caller may add, replace or remove routes."""
        return any(self.has_role(role, caller) for role in REGISTRY_ADMIN_ROLES)

    def grant_role(self, role: str, account: str, caller: str) -> bool:
        """
        Grant a role. Returns False if the account already held it.

        Raises:
            UnauthorizedError: if the caller is not a default admin
        """
        role_key = resolve_role(role)
        with self._lock:
            self._require_default_admin(caller)
            account = _account(account)
            holders = self._members.setdefault(role_key, set())
            if account in holders:
                return False
            holders.add(account)

        logger.info("Role granted", role=role_key, account=account, caller=caller)
        return True

    def revoke_role(self, role: str, account: str, caller: str) -> bool:
        """
        Revoke a role. Returns False if the account did not hold it.

        Raises:
            UnauthorizedError: if the caller is not a default admin
            ValueError: when revoking the last default admin
        """
        role_key = resolve_role(role)
        with self._lock:
            self._require_default_admin(caller)
            account = _account(account)
            holders = self._members.get(role_key, set())
            if account not in holders:
                return False
            if role_key == DEFAULT_ADMIN_ROLE and len(holders) == 1:
                raise ValueError("Cannot revoke the last DEFAULT_ADMIN_ROLE holder")
            holders.discard(account)

        logger.info("Role revoked", role=role_key, account=account, caller=caller)
        return True

    def _require_default_admin(self, caller: Optional[str]) -> None:
        if not self.has_role(DEFAULT_ADMIN_ROLE, caller):
            logger.warning("Unauthorized role change", caller=caller)
            raise UnauthorizedError(caller)

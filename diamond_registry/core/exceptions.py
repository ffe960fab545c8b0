"""
Custom exceptions for the Diamond Registry service.
Provides structured error handling for selector routing and facet dispatch.
"""

from typing import Any, Dict, Iterable, Optional

from fastapi import status


class RegistryException(Exception):
    """Base exception for the Diamond Registry service."""

    def __init__(
        self,
        message: str,
        error_code: str = "REGISTRY_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication & Authorization
class AuthenticationError(RegistryException):
    """Raised when the caller identity cannot be established."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTH_ERROR", details)


class UnauthorizedError(RegistryException):
    """Raised when the caller lacks the administrative capability."""

    def __init__(self, caller: Optional[str], details: Optional[Dict[str, Any]] = None):
        message = f"Caller is not authorized: {caller}"
        super().__init__(message, "UNAUTHORIZED", details)


# Routing table
class InvalidFacetAddressError(RegistryException):
    """Raised when a facet address is null, zero or malformed."""

    def __init__(self, address: Any, details: Optional[Dict[str, Any]] = None):
        message = f"Invalid facet address: {address}"
        super().__init__(message, "INVALID_FACET_ADDRESS", details)


class InvalidSelectorError(RegistryException):
    """Raised when a value cannot be read as a 4-byte selector."""

    def __init__(self, selector: Any, details: Optional[Dict[str, Any]] = None):
        message = f"Invalid function selector: {selector!r}"
        super().__init__(message, "INVALID_SELECTOR", details)


class EmptySelectorBatchError(RegistryException):
    """Raised when a batch operation receives no selectors."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("Selector batch is empty", "EMPTY_SELECTOR_BATCH", details)


class SelectorAlreadyRegisteredError(RegistryException):
    """Raised when registering would overwrite another facet's route."""

    def __init__(self, selector: str, facet_address: str, details: Optional[Dict[str, Any]] = None):
        message = f"Selector {selector} already registered to facet {facet_address}"
        details = {"selector": selector, "facet_address": facet_address, **(details or {})}
        super().__init__(message, "SELECTOR_ALREADY_REGISTERED", details)


class SelectorNotFoundError(RegistryException):
    """Raised when an operation targets selectors with no current entry."""

    def __init__(self, selectors: Iterable[str], details: Optional[Dict[str, Any]] = None):
        missing = sorted(selectors)
        message = f"Selector not registered: {', '.join(missing)}"
        details = {"selectors": missing, **(details or {})}
        super().__init__(message, "SELECTOR_NOT_FOUND", details)


# Dispatch
class FunctionNotFoundError(RegistryException):
    """Raised when a call payload carries a selector with no route."""

    def __init__(self, selector: Optional[str], details: Optional[Dict[str, Any]] = None):
        message = f"Function does not exist: {selector}"
        details = {"selector": selector, **(details or {})}
        super().__init__(message, "FUNCTION_NOT_FOUND", details)


class FacetExecutionError(RegistryException):
    """Raised when the resolved facet fails while executing a call."""

    def __init__(self, selector: str, facet_address: str, details: Optional[Dict[str, Any]] = None):
        message = f"Facet call failed: {facet_address} ({selector})"
        details = {"selector": selector, "facet_address": facet_address, **(details or {})}
        super().__init__(message, "FACET_EXECUTION_FAILED", details)


# Blockchain Operations
class BlockchainError(RegistryException):
    """Raised when blockchain operations fail."""

    def __init__(self, message: str = "Blockchain operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "BLOCKCHAIN_ERROR", details)


class TransactionFailedError(RegistryException):
    """Raised when blockchain transaction fails."""

    def __init__(self, tx_hash: str, details: Optional[Dict[str, Any]] = None):
        message = f"Transaction failed: {tx_hash}"
        super().__init__(message, "TRANSACTION_FAILED", details)


class CacheError(RegistryException):
    """Raised when cache operations fail."""

    def __init__(self, message: str = "Cache operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CACHE_ERROR", details)


def get_exception_status_code(exc: RegistryException) -> int:
    """
    Get the appropriate HTTP status code for a RegistryException.

    Args:
        exc: RegistryException instance

    Returns:
        int: HTTP status code
    """
    status_mapping = {
        # Authentication & Authorization
        "AUTH_ERROR": status.HTTP_401_UNAUTHORIZED,
        "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,

        # Routing table
        "INVALID_FACET_ADDRESS": status.HTTP_400_BAD_REQUEST,
        "INVALID_SELECTOR": status.HTTP_400_BAD_REQUEST,
        "EMPTY_SELECTOR_BATCH": status.HTTP_400_BAD_REQUEST,
        "SELECTOR_ALREADY_REGISTERED": status.HTTP_409_CONFLICT,
        "SELECTOR_NOT_FOUND": status.HTTP_404_NOT_FOUND,

        # Dispatch
        "FUNCTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
        "FACET_EXECUTION_FAILED": status.HTTP_502_BAD_GATEWAY,

        # Blockchain Operations
        "BLOCKCHAIN_ERROR": status.HTTP_502_BAD_GATEWAY,
        "TRANSACTION_FAILED": status.HTTP_502_BAD_GATEWAY,

        # Cache
        "CACHE_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    return status_mapping.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

"""
Structured logging for the Diamond Registry service.

Routing table commits, dispatch outcomes and Diamond transactions each get
their own named logger so they can be filtered independently.
"""

import logging
import sys
from typing import Iterable, List, Optional

import structlog
from structlog.stdlib import LoggerFactory

from diamond_registry.core.config import settings

# Third-party loggers kept quiet unless they have something to report
_NOISY_LOGGERS = ("web3", "urllib3", "asyncio")


def _renderer():
    if settings.ENVIRONMENT == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=settings.DEBUG)


def _processors() -> List:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _renderer(),
    ]


def setup_logging() -> None:
    """
    Configure structlog on top of the standard library.

    Console output in development and staging, one JSON object per line in
    production. The level comes from LOG_LEVEL.
    """
    structlog.configure(
        processors=_processors(),
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` named after its module and class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        cls = type(self)
        return get_logger(f"{cls.__module__}.{cls.__name__}")


def log_registry_operation(
    operation: str,
    facet_address: Optional[str] = None,
    selectors: Optional[Iterable[str]] = None,
    caller: Optional[str] = None,
    **kwargs
) -> None:
    """
    Record one committed routing table change.

    Args:
        operation: add, replace or remove
        facet_address: Facet the selectors point to after the change
            (for remove, the facet they pointed to)
        selectors: Selectors touched by the change
        caller: Administrative caller
    """
    touched = sorted(selectors or ())
    get_logger("registry.commit").info(
        "Routing table updated",
        operation=operation,
        facet_address=facet_address,
        selectors=touched,
        count=len(touched),
        caller=caller,
        **kwargs
    )


def log_dispatch(
    selector: Optional[str],
    facet_address: Optional[str] = None,
    status: str = "success",
    **kwargs
) -> None:
    # Logged at debug: one line per routed call
    get_logger("registry.dispatch").debug(
        "Call routed" if status == "success" else "Call not routed",
        selector=selector,
        facet_address=facet_address,
        status=status,
        **kwargs
    )


def log_blockchain_transaction(
    tx_hash: str,
    chain_id: int,
    contract_address: Optional[str] = None,
    method: Optional[str] = None,
    **kwargs
) -> None:
    """Record a mined Diamond transaction (addFacet, updateFacet)."""
    get_logger("diamond.transaction").info(
        "Diamond transaction mined",
        tx_hash=tx_hash,
        chain_id=chain_id,
        contract_address=contract_address,
        method=method,
        **kwargs
    )

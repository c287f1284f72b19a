"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across the costing services.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="resolve_recipe_cost",
        outcome="cyclic_reference",
        level=logging.WARNING,
        recipe_id=45,
        path=[12, 45],
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "kitchen_ledger.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance under the 'kitchen_ledger.services' prefix.

    Example:
        >>> logger = get_service_logger("src.services.costing.aggregator")
        >>> logger.name
        'kitchen_ledger.services.aggregator'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context is passed via the
    'extra' parameter for structured handlers.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "resolve_recipe_cost")
        outcome: Outcome description (e.g., "success", "missing_cost")
        level: Log level (default: INFO). Use DEBUG for per-line logs.
        **context: Additional context fields (recipe_id, item_id, path, ...)
    """
    if not logger.isEnabledFor(level):
        return
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

"""
Centralized deadline configuration for reconciler operations.

Create, update and delete wait on long-running operations in the Cosmos DB
control plane and get a generous deadline; read only issues point lookups.

Timeout values are configurable via environment variables, with defaults
matching the lifecycle of a Cosmos DB database:

Usage:
    from cosmosdb_mongo.timeout_config import Timeouts

    await reconciler.create(desired, timeout=Timeouts.CREATE)

Environment Variables:
    - COSMOS_TIMEOUT_CREATE: Create operations (default: 1800s)
    - COSMOS_TIMEOUT_READ: Read operations (default: 300s)
    - COSMOS_TIMEOUT_UPDATE: Update operations (default: 1800s)
    - COSMOS_TIMEOUT_DELETE: Delete operations (default: 1800s)
"""

import logging
import os
from typing import Final

logger = logging.getLogger(__name__)


def _get_timeout(env_var: str, default: int) -> int:
    """Get timeout value from environment variable or use default.

    Args:
        env_var: Environment variable name
        default: Default timeout in seconds

    Returns:
        Timeout value in seconds
    """
    value = os.environ.get(env_var)
    if value is not None:
        try:
            timeout = int(value)
            if timeout <= 0:
                logger.warning(
                    f"Invalid timeout value for {env_var}: {value}. "
                    f"Must be positive. Using default: {default}s"
                )
                return default
            return timeout
        except ValueError:
            logger.warning(
                f"Invalid timeout value for {env_var}: {value}. "
                f"Must be integer. Using default: {default}s"
            )
            return default
    return default


class Timeouts:
    """Per-operation deadlines in seconds, configurable via environment variables."""

    CREATE: Final[int] = _get_timeout("COSMOS_TIMEOUT_CREATE", 1800)
    READ: Final[int] = _get_timeout("COSMOS_TIMEOUT_READ", 300)
    UPDATE: Final[int] = _get_timeout("COSMOS_TIMEOUT_UPDATE", 1800)
    DELETE: Final[int] = _get_timeout("COSMOS_TIMEOUT_DELETE", 1800)

    @classmethod
    def for_operation(cls, operation: str) -> int:
        """Return the deadline for ``create``, ``read``, ``update`` or ``delete``."""
        try:
            return int(getattr(cls, operation.upper()))
        except AttributeError:
            raise ValueError(f"Unknown operation: {operation}") from None


def log_timeout_event(
    operation: str,
    timeout_value: float,
    resource: str | None = None,
) -> None:
    """Log a deadline overrun with consistent formatting.

    Args:
        operation: Name of the operation that timed out
        timeout_value: Timeout value that was exceeded
        resource: Optional identifier of the database involved
    """
    resource_str = f" - resource: '{resource}'" if resource else ""
    logger.warning(
        f"Operation '{operation}' timed out after {timeout_value} seconds{resource_str}"
    )

"""Exception hierarchy and graceful-degradation helpers.

Each pipeline step either degrades (failure replaced by a safe default via
safe_execute_async) or aborts the request (the client exception propagates).
Clients only raise; the pipeline decides which policy applies.
"""

from typing import Any, Awaitable, Optional

from src.utils.logger import logger


class FridgePlannerError(Exception):
    """Base class for all service errors."""


class UpstreamError(FridgePlannerError):
    """An external collaborator (catalog, cache, model) failed."""


class CatalogError(UpstreamError):
    """Recipe catalog request failed or returned an unusable payload."""


class CacheStoreError(UpstreamError):
    """Recipe cache request failed or reported an error."""


class ModelError(UpstreamError):
    """Generative model call failed or returned no text."""


class InterpretationError(FridgePlannerError):
    """User text could not be interpreted into ingredients."""


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro: Awaitable[Any],
    operation_name: str,
    log_level: str = "warning",
    default_return: Optional[Any] = None,
) -> Any:
    """Await an optional operation, substituting a default on failure.

    Used for the degradable steps: per-ingredient catalog filter, cache existence
    check and cache search. The plan stages catch ModelError themselves.
    Cancellation is not swallowed.

    Args:
        coro: Awaitable to execute.
        operation_name: Description for logging (e.g., "Catalog filter 'lemon'").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception.

    Returns:
        Result of the awaitable, or default_return if it raised.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return default_return

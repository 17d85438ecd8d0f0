"""
Utility decorators for ledger service operations.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

_CONTEXT_PARAMS = (
    "user_id",
    "position_id",
    "symbol",
    "asset_type",
    "quantity",
    "price_per_unit",
    "amount",
    "new_price",
    "status",
    "snapshot_type",
    "period",
)


def _extract_ledger_context(bound_args: inspect.BoundArguments) -> dict[str, Any]:
    """Extract the loggable ledger parameters from function arguments."""
    context = {}
    for param_name, value in bound_args.arguments.items():
        if param_name in _CONTEXT_PARAMS and value is not None:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if hasattr(value, "value") and hasattr(value, "name"):
        return str(value.value)  # Enum members
    return value


def _describe_result(result: Any) -> dict[str, Any]:
    """Summarize a result for the success record."""
    description: dict[str, Any] = {"result_type": type(result).__name__}
    if isinstance(result, bool | int | float | str):
        description["result"] = result
    elif hasattr(result, "id") and hasattr(result, "version"):
        description["result"] = f"{result.id}@v{result.version}"
    elif isinstance(result, list):
        description["result_count"] = len(result)
    return description


def _setup_logging_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Build the correlation context for one call."""
    bound_args = inspect.signature(func).bind(*args, **kwargs)
    bound_args.apply_defaults()
    return {
        "correlation_id": str(uuid.uuid4())[:8],
        **_extract_ledger_context(bound_args),
    }


F = TypeVar("F", bound=Callable[..., Any])


def log_ledger_operation(func: F) -> F:
    """Decorator to log ledger operations with correlation IDs and timing."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        func_name = func.__name__
        context = _setup_logging_context(func, args, kwargs)

        logger.info(f"Ledger operation started: {func_name}", extra=context)
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"Ledger operation failed: {func_name}",
                extra={
                    **context,
                    "success": False,
                    "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            raise

        logger.success(
            f"Ledger operation completed: {func_name}",
            extra={
                **context,
                "success": True,
                "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
                **_describe_result(result),
            },
        )
        return result

    return wrapper  # type: ignore

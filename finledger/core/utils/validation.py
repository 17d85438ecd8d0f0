"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

import math
from typing import Any

from finledger.core.constants import MAX_SYMBOL_LENGTH
from finledger.core.enums import AssetType, LedgerEventType, PositionStatus, SnapshotPeriod
from finledger.core.exceptions.ledger import ValidationError


def validate_symbol(symbol: Any, param_name: str = "symbol") -> str:
    """Validate and normalize a ticker symbol.

    Args:
        symbol: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The upper-cased, stripped symbol

    Raises:
        ValidationError: If symbol is empty, not a string or too long
    """
    if not isinstance(symbol, str):
        raise ValidationError(f"{param_name} must be a string, got {type(symbol).__name__}")
    normalized = symbol.strip().upper()
    if not normalized:
        raise ValidationError(f"{param_name} must not be empty")
    if len(normalized) > MAX_SYMBOL_LENGTH:
        raise ValidationError(
            f"{param_name} must be at most {MAX_SYMBOL_LENGTH} characters, got {len(normalized)}"
        )
    return normalized


def validate_finite(value: Any, param_name: str) -> float:
    """Validate that a value is a finite real number."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{param_name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValidationError(f"{param_name} must be finite, got {value}")
    return float(value)


def validate_positive(value: Any, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is not positive
    """
    value = validate_finite(value, param_name)
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_non_negative(value: Any, param_name: str) -> float:
    """Validate that a numeric value is zero or positive.

    Raises:
        ValidationError: If value is negative
    """
    value = validate_finite(value, param_name)
    if value < 0:
        raise ValidationError(f"{param_name} must be non-negative, got {value}")
    return value


def validate_optional_metric(value: Any, param_name: str) -> float | None:
    """Validate a nullable passthrough metric; None means unknown."""
    if value is None:
        return None
    return validate_finite(value, param_name)


def validate_asset_type(value: Any, param_name: str = "asset_type") -> AssetType:
    """Validate and coerce an asset type.

    Raises:
        ValidationError: If value is not a known asset type
    """
    if isinstance(value, AssetType):
        return value
    try:
        return AssetType.from_string(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid {param_name}: {value}") from e


def validate_status(value: Any, param_name: str = "status") -> PositionStatus:
    """Validate and coerce a position status.

    Raises:
        ValidationError: If value is not a known position status
    """
    if isinstance(value, PositionStatus):
        return value
    try:
        return PositionStatus.from_string(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid {param_name}: {value}") from e


def validate_period(value: Any, param_name: str = "period") -> SnapshotPeriod | None:
    """Validate and coerce an optional snapshot period."""
    if value is None or isinstance(value, SnapshotPeriod):
        return value
    try:
        return SnapshotPeriod.from_string(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid {param_name}: {value}") from e


def validate_currency(value: Any, param_name: str = "currency") -> str:
    """Validate and upper-case a three-letter currency code.

    Raises:
        ValidationError: If value is not three letters
    """
    if not isinstance(value, str) or len(value.strip()) != 3 or not value.strip().isalpha():
        raise ValidationError(f"{param_name} must be a three-letter code, got {value!r}")
    return value.strip().upper()


def validate_event_type(value: Any, param_name: str = "event_type") -> LedgerEventType:
    """Validate and coerce a ledger event type."""
    if isinstance(value, LedgerEventType):
        return value
    try:
        return LedgerEventType(str(value).strip().lower())
    except ValueError as e:
        raise ValidationError(f"Invalid {param_name}: {value}") from e


def validate_limit(value: int | None, default: int, maximum: int) -> int:
    """Clamp a listing limit into [1, maximum], using default when unset."""
    if value is None or value < 1:
        return default
    return min(value, maximum)

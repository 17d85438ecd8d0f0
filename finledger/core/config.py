"""
Ledger configuration.
"""

from pydantic import BaseModel, Field, field_validator

from finledger.core.constants import (
    DEFAULT_CONCURRENCY_RETRIES,
    DEFAULT_CURRENCY,
    DEFAULT_SNAPSHOT_LIMIT,
    MAX_CONCURRENCY_RETRIES,
    MAX_SNAPSHOT_LIMIT,
    QUANTITY_TOLERANCE,
)


class LedgerSettings(BaseModel):
    """Tunable settings shared by the ledger services."""

    concurrency_retries: int = Field(
        default=DEFAULT_CONCURRENCY_RETRIES,
        ge=0,
        le=MAX_CONCURRENCY_RETRIES,
        description="Reload-and-reapply attempts after a stale save",
    )
    quantity_tolerance: float = Field(
        default=QUANTITY_TOLERANCE,
        gt=0,
        le=1e-3,
        description="Quantities closer than this are treated as equal",
    )
    default_currency: str = Field(
        default=DEFAULT_CURRENCY, min_length=3, max_length=3, description="ISO 4217 code"
    )
    default_snapshot_limit: int = Field(default=DEFAULT_SNAPSHOT_LIMIT, ge=1)
    max_snapshot_limit: int = Field(default=MAX_SNAPSHOT_LIMIT, ge=1)

    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Upper-case the currency code."""
        if not v.isalpha():
            raise ValueError(f"Currency code must be alphabetic: {v}")
        return v.upper()

    @field_validator("max_snapshot_limit")
    @classmethod
    def validate_snapshot_limits(cls, v: int, info) -> int:
        """Validate that the maximum limit is not below the default limit."""
        if "default_snapshot_limit" in info.data and v < info.data["default_snapshot_limit"]:
            raise ValueError("max_snapshot_limit must be >= default_snapshot_limit")
        return v

"""
Snapshot type and period enumerations.
"""

from enum import StrEnum


class SnapshotType(StrEnum):
    """How a portfolio snapshot was triggered."""

    MANUAL = "manual"  # Requested by the user
    AUTOMATIC = "automatic"  # Taken after a ledger change
    PERIODIC = "periodic"  # Taken by an external scheduler


class SnapshotPeriod(StrEnum):
    """Reporting period a periodic snapshot belongs to."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def from_string(cls, value: str) -> "SnapshotPeriod":
        """Convert string to SnapshotPeriod enum."""
        normalized = value.strip().lower() if isinstance(value, str) else value
        for period in cls:
            if period.value == normalized:
                return period
        raise ValueError(f"Unsupported snapshot period: {value}")

"""
Asset type and position status enumerations.

This module defines the allowed asset classes for a holding and the
closed set of lifecycle states a position can be in.
"""

from enum import StrEnum


class AssetType(StrEnum):
    """
    Allowed asset types.

    Defines the kind of instrument a position tracks.
    """

    STOCK = "stock"
    ETF = "etf"
    MUTUAL_FUND = "mutual_fund"
    BOND = "bond"
    CRYPTO = "crypto"
    COMMODITY = "commodity"
    REAL_ESTATE = "real_estate"
    CASH = "cash"
    OPTION = "option"
    FUTURE = "future"
    FOREX = "forex"
    PRIVATE_EQUITY = "private_equity"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> "AssetType":
        """
        Convert string to AssetType enum.

        Args:
            value: Asset type string (case insensitive)

        Returns:
            AssetType enum value

        Raises:
            ValueError: If the asset type is not supported
        """
        normalized = value.strip().lower() if isinstance(value, str) else value
        for asset_type in cls:
            if asset_type.value == normalized:
                return asset_type
        raise ValueError(f"Unsupported asset type: {value}")


class PositionStatus(StrEnum):
    """
    Allowed position states.

    WATCHLIST -> ACTIVE on a buy, ACTIVE -> SOLD when the last unit is sold,
    ACTIVE <-> INACTIVE only through an administrative status change.
    """

    WATCHLIST = "watchlist"
    ACTIVE = "active"
    SOLD = "sold"
    INACTIVE = "inactive"

    @classmethod
    def from_string(cls, value: str) -> "PositionStatus":
        """Convert string to PositionStatus enum."""
        normalized = value.strip().lower() if isinstance(value, str) else value
        for status in cls:
            if status.value == normalized:
                return status
        raise ValueError(f"Unsupported position status: {value}")

    @property
    def counts_towards_valuation(self) -> bool:
        """Check if positions in this state are part of portfolio totals."""
        return self == self.ACTIVE

    def can_transition_to(self, target: "PositionStatus") -> bool:
        """Check if an administrative status change to target is allowed."""
        allowed = {
            self.ACTIVE: {self.INACTIVE},
            self.INACTIVE: {self.ACTIVE},
        }
        return target in allowed.get(self, set())

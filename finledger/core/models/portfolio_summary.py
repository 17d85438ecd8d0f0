"""
Portfolio summary value objects produced by the aggregator.
"""

from dataclasses import dataclass, field

from finledger.core.types.financial import ZERO


@dataclass(frozen=True)
class BreakdownSummary:
    """Totals for one group of positions (an asset type or a sector)."""

    key: str
    total_value: float
    total_cost: float
    asset_count: int
    percentage: float

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "asset_count": self.asset_count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class PortfolioSummary:
    """Point-in-time totals over a user's active positions."""

    total_assets: int = 0
    active_assets: int = 0
    total_invested: float = ZERO
    total_value: float = ZERO
    total_unrealized_gain: float = ZERO
    total_realized_gain: float = ZERO
    total_gain: float = ZERO
    total_gain_pct: float = ZERO
    total_dividends: float = ZERO
    by_asset_type: dict[str, BreakdownSummary] = field(default_factory=dict)
    by_sector: dict[str, BreakdownSummary] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert summary to dictionary."""
        return {
            "total_assets": self.total_assets,
            "active_assets": self.active_assets,
            "total_invested": self.total_invested,
            "total_value": self.total_value,
            "total_unrealized_gain": self.total_unrealized_gain,
            "total_realized_gain": self.total_realized_gain,
            "total_gain": self.total_gain,
            "total_gain_pct": self.total_gain_pct,
            "total_dividends": self.total_dividends,
            "by_asset_type": {k: v.to_dict() for k, v in self.by_asset_type.items()},
            "by_sector": {k: v.to_dict() for k, v in self.by_sector.items()},
        }


@dataclass(frozen=True)
class EntrySummary:
    """Totals over a set of transaction history entries."""

    total_entries: int = 0
    total_bought: float = ZERO
    total_sold: float = ZERO
    total_dividends: float = ZERO
    total_realized_gain: float = ZERO

    @property
    def net_invested(self) -> float:
        return self.total_bought - self.total_sold

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "total_bought": self.total_bought,
            "total_sold": self.total_sold,
            "total_dividends": self.total_dividends,
            "total_realized_gain": self.total_realized_gain,
            "net_invested": self.net_invested,
        }

"""
Portfolio snapshot domain models.

Snapshots are append-only valuation records: once built they are frozen,
and a later snapshot never rewrites an earlier one.
"""

from dataclasses import dataclass, field
from datetime import datetime

from finledger.core.enums import SnapshotPeriod, SnapshotType
from finledger.core.types.financial import ZERO
from finledger.core.utils.validation import validate_non_negative


@dataclass(frozen=True)
class CashFlow:
    """Money moved into and out of the portfolio during a period."""

    inflow: float = ZERO  # Buys during the period
    outflow: float = ZERO  # Sells during the period

    def __post_init__(self) -> None:
        object.__setattr__(self, "inflow", validate_non_negative(self.inflow, "inflow"))
        object.__setattr__(self, "outflow", validate_non_negative(self.outflow, "outflow"))

    @property
    def net(self) -> float:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Immutable point-in-time valuation of a user's portfolio."""

    id: str
    user_id: str
    snapshot_date: datetime
    snapshot_type: SnapshotType
    period: SnapshotPeriod | None = None

    # Portfolio values
    total_value: float = ZERO
    total_cost: float = ZERO
    total_unrealized_gain: float = ZERO
    total_realized_gain: float = ZERO
    total_dividends: float = ZERO

    # Returns and day-over-day change
    total_return: float = ZERO
    total_return_pct: float = ZERO
    day_change: float = ZERO
    day_change_pct: float = ZERO

    # Composition
    total_assets: int = 0
    active_assets: int = 0
    asset_types: dict[str, dict] = field(default_factory=dict)
    sector_allocation: dict[str, dict] = field(default_factory=dict)

    # Cash flow for the period
    cash_inflow: float = ZERO
    cash_outflow: float = ZERO
    net_cash_flow: float = ZERO

    # Passthrough performance metrics
    volatility: float | None = None
    sharpe_ratio: float | None = None
    beta: float | None = None

    notes: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        """Convert snapshot to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "snapshot_date": self.snapshot_date.isoformat(),
            "snapshot_type": self.snapshot_type.value,
            "period": self.period.value if self.period else None,
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "total_unrealized_gain": self.total_unrealized_gain,
            "total_realized_gain": self.total_realized_gain,
            "total_dividends": self.total_dividends,
            "total_return": self.total_return,
            "total_return_pct": self.total_return_pct,
            "day_change": self.day_change,
            "day_change_pct": self.day_change_pct,
            "total_assets": self.total_assets,
            "active_assets": self.active_assets,
            "asset_types": self.asset_types,
            "sector_allocation": self.sector_allocation,
            "cash_inflow": self.cash_inflow,
            "cash_outflow": self.cash_outflow,
            "net_cash_flow": self.net_cash_flow,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "beta": self.beta,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    """Value change between the first and last snapshot of a date range."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    start_value: float = ZERO
    end_value: float = ZERO
    total_return: float = ZERO
    total_return_pct: float = ZERO
    snapshot_count: int = 0

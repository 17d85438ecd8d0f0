"""
Position domain model.

A Position is one user's holding of one symbol. Its derived fields
(current value, unrealized gain and percentages) are recomputed by
recalculate_metrics after every ledger mutation.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from finledger.core.constants import COST_BASIS_TOLERANCE, DEFAULT_CURRENCY
from finledger.core.enums import AssetType, PositionStatus
from finledger.core.types.financial import ZERO, percentage_of, safe_float_comparison
from finledger.core.utils.validation import (
    validate_asset_type,
    validate_non_negative,
    validate_optional_metric,
    validate_status,
    validate_symbol,
)


@dataclass
class RiskMetrics:
    """Passthrough risk metrics; None means the value is unknown."""

    beta: float | None = None
    volatility: float | None = None
    sharpe_ratio: float | None = None
    max_drawdown: float | None = None
    one_year_return: float | None = None
    three_year_return: float | None = None
    five_year_return: float | None = None

    def __post_init__(self) -> None:
        """Validate that every provided metric is a finite number."""
        for name in (
            "beta",
            "volatility",
            "sharpe_ratio",
            "max_drawdown",
            "one_year_return",
            "three_year_return",
            "five_year_return",
        ):
            setattr(self, name, validate_optional_metric(getattr(self, name), name))


@dataclass
class Position:
    """Represents a single per-user, per-symbol investment holding.

    Ledger operations never mutate a Position they receive; they work on
    a copy, so a loaded Position is a stable read of the stored state.
    """

    id: str
    user_id: str
    symbol: str
    asset_type: AssetType
    status: PositionStatus
    name: str = ""
    sector: str | None = None
    currency: str = DEFAULT_CURRENCY

    # Quantity & cost
    quantity: float = ZERO
    average_cost_per_unit: float = ZERO
    total_cost: float = ZERO

    # Market state
    current_price: float = ZERO
    current_value: float = ZERO
    last_price_update: datetime | None = None

    # Gains
    unrealized_gain: float = ZERO
    unrealized_gain_pct: float = ZERO
    realized_gain: float = ZERO
    realized_gain_pct: float = ZERO

    # Income
    total_dividends: float = ZERO
    dividend_yield: float = ZERO
    last_dividend_amount: float = ZERO
    last_dividend_date: date | None = None

    risk: RiskMetrics = field(default_factory=RiskMetrics)

    is_watchlist: bool = False
    notes: str | None = None
    tags: str | None = None

    # Bookkeeping
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate and normalize position data after initialization."""
        self.symbol = validate_symbol(self.symbol)
        self.asset_type = validate_asset_type(self.asset_type)
        self.status = validate_status(self.status)
        self.quantity = validate_non_negative(self.quantity, "quantity")
        self.average_cost_per_unit = validate_non_negative(
            self.average_cost_per_unit, "average_cost_per_unit"
        )
        self.current_price = validate_non_negative(self.current_price, "current_price")

    def recalculate_metrics(self) -> None:
        """Recompute current value and unrealized gain from quantity, price and cost.

        Idempotent: two consecutive calls leave every derived field unchanged.
        """
        self.current_value = self.quantity * self.current_price
        self.unrealized_gain = self.current_value - self.total_cost
        self.unrealized_gain_pct = percentage_of(self.unrealized_gain, self.total_cost)

    @property
    def is_active(self) -> bool:
        """Check if the position is an active, non-deleted holding."""
        return self.status.counts_towards_valuation and not self.is_deleted

    @property
    def is_sold(self) -> bool:
        """Check if the position has been completely sold."""
        return self.status == PositionStatus.SOLD

    @property
    def is_deleted(self) -> bool:
        """Check if the position has been soft-deleted."""
        return self.deleted_at is not None

    def total_return(self) -> float:
        """Realized plus unrealized gain."""
        return self.realized_gain + self.unrealized_gain

    def total_return_pct(self) -> float:
        """Total return as a percentage of the remaining cost base."""
        return percentage_of(self.total_return(), self.total_cost)

    def cost_basis_consistent(self, tolerance: float = COST_BASIS_TOLERANCE) -> bool:
        """Check total_cost against quantity * average_cost_per_unit."""
        return safe_float_comparison(
            self.total_cost, self.quantity * self.average_cost_per_unit, tolerance
        )

    def to_dict(self) -> dict:
        """Convert position to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "name": self.name,
            "asset_type": self.asset_type.value,
            "status": self.status.value,
            "sector": self.sector,
            "currency": self.currency,
            "quantity": self.quantity,
            "average_cost_per_unit": self.average_cost_per_unit,
            "total_cost": self.total_cost,
            "current_price": self.current_price,
            "current_value": self.current_value,
            "last_price_update": (
                self.last_price_update.isoformat() if self.last_price_update else None
            ),
            "unrealized_gain": self.unrealized_gain,
            "unrealized_gain_pct": self.unrealized_gain_pct,
            "realized_gain": self.realized_gain,
            "realized_gain_pct": self.realized_gain_pct,
            "total_dividends": self.total_dividends,
            "dividend_yield": self.dividend_yield,
            "last_dividend_amount": self.last_dividend_amount,
            "last_dividend_date": (
                self.last_dividend_date.isoformat() if self.last_dividend_date else None
            ),
            "beta": self.risk.beta,
            "volatility": self.risk.volatility,
            "sharpe_ratio": self.risk.sharpe_ratio,
            "max_drawdown": self.risk.max_drawdown,
            "one_year_return": self.risk.one_year_return,
            "three_year_return": self.risk.three_year_return,
            "five_year_return": self.risk.five_year_return,
            "is_watchlist": self.is_watchlist,
            "notes": self.notes,
            "tags": self.tags,
            "version": self.version,
        }

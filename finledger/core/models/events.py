"""
Ledger event and entry models.

Every mutation of a position is one of a closed set of frozen events,
applied through PositionLedger.apply. The reducer answers each event with
a LedgerEntry, which is the auditable record of what changed.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from finledger.core.enums import LedgerEventType
from finledger.core.utils.validation import validate_non_negative, validate_positive

if TYPE_CHECKING:
    from finledger.core.models.position import Position


@dataclass(frozen=True)
class BuyEvent:
    """Adds quantity at a price and moves the weighted-average cost."""

    quantity: float
    price_per_unit: float

    def __post_init__(self) -> None:
        """Validate event data after initialization."""
        object.__setattr__(self, "quantity", validate_positive(self.quantity, "quantity"))
        object.__setattr__(
            self, "price_per_unit", validate_non_negative(self.price_per_unit, "price_per_unit")
        )

    @property
    def event_type(self) -> LedgerEventType:
        return LedgerEventType.BUY

    def notional_value(self) -> float:
        """Cash paid for the units bought."""
        return self.quantity * self.price_per_unit


@dataclass(frozen=True)
class SellEvent:
    """Removes quantity at a price and realizes gain against the average cost."""

    quantity: float
    price_per_unit: float

    def __post_init__(self) -> None:
        """Validate event data after initialization."""
        object.__setattr__(self, "quantity", validate_positive(self.quantity, "quantity"))
        object.__setattr__(
            self, "price_per_unit", validate_non_negative(self.price_per_unit, "price_per_unit")
        )

    @property
    def event_type(self) -> LedgerEventType:
        return LedgerEventType.SELL

    def notional_value(self) -> float:
        """Sale proceeds for the units sold."""
        return self.quantity * self.price_per_unit


@dataclass(frozen=True)
class DividendEvent:
    """Records one dividend payment."""

    amount: float
    paid_on: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", validate_non_negative(self.amount, "amount"))

    @property
    def event_type(self) -> LedgerEventType:
        return LedgerEventType.DIVIDEND


@dataclass(frozen=True)
class PriceUpdateEvent:
    """Marks the position to a new market price."""

    price: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", validate_non_negative(self.price, "price"))

    @property
    def event_type(self) -> LedgerEventType:
        return LedgerEventType.PRICE_UPDATE


LedgerEvent = BuyEvent | SellEvent | DividendEvent | PriceUpdateEvent


@dataclass(frozen=True)
class LedgerEntry:
    """Result of applying one event to one position.

    Attributes:
        position: The updated position (a copy; the input is untouched)
        event: The event that was applied
        realized_gain_delta: Gain realized by this event (non-zero only for sells)
        cash_amount: Money moved by the event (buy cost, sale proceeds, dividend)
        recorded_at: When the event was applied, from the ledger clock
        id: Assigned when the entry is appended to the transaction history
    """

    position: "Position"
    event: LedgerEvent
    realized_gain_delta: float
    cash_amount: float
    recorded_at: datetime
    id: str | None = None

    @property
    def event_type(self) -> LedgerEventType:
        return self.event.event_type

    @property
    def position_id(self) -> str:
        return self.position.id

    @property
    def user_id(self) -> str:
        return self.position.user_id

    def to_dict(self) -> dict:
        """Convert entry to dictionary."""
        return {
            "id": self.id,
            "position_id": self.position.id,
            "symbol": self.position.symbol,
            "event_type": self.event_type.value,
            "realized_gain_delta": self.realized_gain_delta,
            "cash_amount": self.cash_amount,
            "quantity_after": self.position.quantity,
            "recorded_at": self.recorded_at.isoformat(),
        }

"""
Position ledger operations.

This module applies buy/sell/dividend/price events to a single position
and keeps its weighted-average cost basis, realized gain and derived
metrics consistent. It is pure: no persistence, no shared state.
"""

import copy
import uuid
from collections.abc import Callable, Iterable
from datetime import date

from loguru import logger

from finledger.core.constants import DEFAULT_CURRENCY, QUANTITY_TOLERANCE
from finledger.core.enums import AssetType, PositionStatus
from finledger.core.exceptions.ledger import (
    ConflictError,
    InsufficientQuantityError,
    ValidationError,
)
from finledger.core.models.events import (
    BuyEvent,
    DividendEvent,
    LedgerEntry,
    LedgerEvent,
    PriceUpdateEvent,
    SellEvent,
)
from finledger.core.models.position import Position, RiskMetrics
from finledger.core.protocols import Clock, SystemClock
from finledger.core.types.financial import ZERO, exceeds, percentage_of, safe_float_comparison
from finledger.core.utils.validation import (
    validate_asset_type,
    validate_currency,
    validate_non_negative,
    validate_status,
    validate_symbol,
)


def _new_id() -> str:
    return str(uuid.uuid4())


class PositionLedger:
    """Single-position ledger.

    Every mutator returns a new Position (or LedgerEntry) and leaves its
    argument untouched, so an operation can be re-applied to a freshly
    loaded position after a concurrency conflict.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
        tolerance: float = QUANTITY_TOLERANCE,
    ) -> None:
        """Initialize the ledger.

        Args:
            clock: Source of timestamps (default system UTC clock)
            id_factory: Generates ids for new positions (default uuid4)
            tolerance: Quantities closer than this are treated as equal
        """
        self.clock = clock or SystemClock()
        self.id_factory = id_factory or _new_id
        self.tolerance = tolerance

    def open(
        self,
        user_id: str,
        symbol: str,
        asset_type: AssetType | str,
        quantity: float,
        price_per_unit: float,
        is_watchlist: bool = False,
        existing: Position | None = None,
        *,
        name: str = "",
        sector: str | None = None,
        currency: str = DEFAULT_CURRENCY,
        notes: str | None = None,
        tags: str | None = None,
        risk: RiskMetrics | None = None,
    ) -> Position:
        """Create a new position from a first buy or a watchlist add.

        Args:
            user_id: Owner of the position
            symbol: Ticker symbol
            asset_type: Kind of instrument
            quantity: Initial quantity (zero for a watchlist add)
            price_per_unit: Initial price; becomes the average cost and current price
            is_watchlist: Track the symbol without holding it
            existing: Position the caller found for (user, symbol), if any

        Returns:
            New Position

        Raises:
            ValidationError: If inputs are invalid
            ConflictError: If existing is an active position for the same symbol
        """
        symbol = validate_symbol(symbol)
        asset_type = validate_asset_type(asset_type)
        quantity = validate_non_negative(quantity, "quantity")
        price_per_unit = validate_non_negative(price_per_unit, "price_per_unit")

        if (
            existing is not None
            and existing.is_active
            and existing.user_id == user_id
            and existing.symbol == symbol
        ):
            raise ConflictError(user_id, symbol)

        watchlist_only = is_watchlist and quantity == ZERO
        now = self.clock.now()

        position = Position(
            id=self.id_factory(),
            user_id=user_id,
            symbol=symbol,
            asset_type=asset_type,
            status=PositionStatus.WATCHLIST if watchlist_only else PositionStatus.ACTIVE,
            name=name or symbol,
            sector=sector,
            currency=currency or DEFAULT_CURRENCY,
            quantity=quantity,
            average_cost_per_unit=price_per_unit,
            total_cost=quantity * price_per_unit,
            current_price=price_per_unit,
            last_price_update=now,
            risk=risk or RiskMetrics(),
            is_watchlist=watchlist_only,
            notes=notes,
            tags=tags,
            created_at=now,
            updated_at=now,
        )
        position.recalculate_metrics()

        logger.debug(
            f"Opened {position.status.value} position {symbol} for user {user_id}: "
            f"quantity={quantity}, price={price_per_unit}"
        )
        return position

    def apply(self, position: Position, event: LedgerEvent) -> LedgerEntry:
        """Apply exactly one event to a position.

        Args:
            position: Current state of the position (not modified)
            event: Buy, sell, dividend or price update

        Returns:
            LedgerEntry holding the updated position copy

        Raises:
            ValidationError: If the event is unknown or the position is deleted
            InsufficientQuantityError: If a sell exceeds the held quantity
        """
        if position.is_deleted:
            raise ValidationError(
                f"Cannot apply {type(event).__name__} to deleted position {position.id}"
            )

        updated = copy.deepcopy(position)
        now = self.clock.now()

        if isinstance(event, BuyEvent):
            realized_gain_delta, cash_amount = self._apply_buy(updated, event)
        elif isinstance(event, SellEvent):
            realized_gain_delta, cash_amount = self._apply_sell(updated, event)
        elif isinstance(event, DividendEvent):
            realized_gain_delta, cash_amount = self._apply_dividend(updated, event)
        elif isinstance(event, PriceUpdateEvent):
            realized_gain_delta, cash_amount = self._apply_price_update(updated, event)
        else:
            raise ValidationError(f"Unsupported ledger event: {type(event).__name__}")

        if not isinstance(event, DividendEvent):
            updated.last_price_update = now
        updated.recalculate_metrics()
        updated.updated_at = now

        logger.debug(
            f"Applied {event.event_type.value} to {updated.symbol} ({updated.id}): "
            f"quantity={updated.quantity}, total_cost={updated.total_cost}, "
            f"status={updated.status.value}"
        )
        return LedgerEntry(
            position=updated,
            event=event,
            realized_gain_delta=realized_gain_delta,
            cash_amount=cash_amount,
            recorded_at=now,
        )

    def buy(self, position: Position, quantity: float, price_per_unit: float) -> Position:
        """Add quantity to a position at price_per_unit."""
        return self.apply(position, BuyEvent(quantity, price_per_unit)).position

    def sell(self, position: Position, quantity: float, price_per_unit: float) -> Position:
        """Remove quantity from a position at price_per_unit."""
        return self.apply(position, SellEvent(quantity, price_per_unit)).position

    def add_dividend(self, position: Position, amount: float, paid_on: date) -> Position:
        """Record a dividend payment on a position."""
        return self.apply(position, DividendEvent(amount, paid_on)).position

    def update_price(self, position: Position, new_price: float) -> Position:
        """Mark a position to a new market price."""
        return self.apply(position, PriceUpdateEvent(new_price)).position

    def replay(self, position: Position, events: Iterable[LedgerEvent]) -> Position:
        """Fold a sequence of events through apply, oldest first."""
        current = position
        for event in events:
            current = self.apply(current, event).position
        return current

    def recalculate_metrics(self, position: Position) -> Position:
        """Return a copy of position with its derived metrics recomputed."""
        updated = copy.deepcopy(position)
        updated.recalculate_metrics()
        return updated

    def change_status(self, position: Position, status: PositionStatus | str) -> Position:
        """Administrative status change between active and inactive.

        Raises:
            ValidationError: If the transition is not allowed
        """
        target = validate_status(status)
        if position.status == target:
            return copy.deepcopy(position)
        if not position.status.can_transition_to(target):
            raise ValidationError(
                f"Cannot change status of {position.symbol} from "
                f"{position.status.value} to {target.value}"
            )

        updated = copy.deepcopy(position)
        updated.status = target
        updated.updated_at = self.clock.now()
        logger.info(f"Position {updated.symbol} ({updated.id}) is now {target.value}")
        return updated

    def update_details(
        self,
        position: Position,
        *,
        name: str | None = None,
        sector: str | None = None,
        currency: str | None = None,
        notes: str | None = None,
        tags: str | None = None,
        risk: RiskMetrics | None = None,
    ) -> Position:
        """Change descriptive fields and passthrough risk metrics.

        Arguments left as None keep the current value; an empty sector
        clears it. risk replaces the stored metrics as a whole. Quantity,
        cost and status never change here.

        Raises:
            ValidationError: If the position is deleted or a value is invalid
        """
        if position.is_deleted:
            raise ValidationError(f"Cannot update deleted position {position.id}")

        updated = copy.deepcopy(position)
        if name is not None:
            if not name.strip():
                raise ValidationError("name must not be empty")
            updated.name = name.strip()
        if sector is not None:
            updated.sector = sector.strip() or None
        if currency is not None:
            updated.currency = validate_currency(currency)
        if notes is not None:
            updated.notes = notes
        if tags is not None:
            updated.tags = tags
        if risk is not None:
            updated.risk = copy.deepcopy(risk)

        updated.updated_at = self.clock.now()
        logger.debug(f"Updated details of {updated.symbol} ({updated.id})")
        return updated

    # Event handlers; each mutates the copy and returns (realized_gain_delta, cash_amount)
    def _apply_buy(self, position: Position, event: BuyEvent) -> tuple[float, float]:
        cost = event.notional_value()
        new_total_cost = position.total_cost + cost
        new_quantity = position.quantity + event.quantity

        if new_quantity > ZERO:
            position.average_cost_per_unit = new_total_cost / new_quantity

        position.quantity = new_quantity
        position.total_cost = new_total_cost
        # The buy price is the latest known quote
        position.current_price = event.price_per_unit

        if position.status in (PositionStatus.WATCHLIST, PositionStatus.SOLD):
            position.status = PositionStatus.ACTIVE
            position.is_watchlist = False

        return ZERO, cost

    def _apply_sell(self, position: Position, event: SellEvent) -> tuple[float, float]:
        if exceeds(event.quantity, position.quantity, self.tolerance):
            raise InsufficientQuantityError(event.quantity, position.quantity, position.symbol)

        full_sale = safe_float_comparison(event.quantity, position.quantity, self.tolerance)
        quantity = position.quantity if full_sale else event.quantity

        cost_basis = quantity * position.average_cost_per_unit
        proceeds = quantity * event.price_per_unit
        realized_gain_delta = proceeds - cost_basis

        if full_sale:
            position.quantity = ZERO
            position.total_cost = ZERO
        else:
            position.quantity -= quantity
            position.total_cost -= cost_basis
        position.realized_gain += realized_gain_delta

        # Measured against the cost still held, not the cost sold
        if position.total_cost > ZERO:
            position.realized_gain_pct = percentage_of(
                position.realized_gain, position.total_cost
            )

        position.current_price = event.price_per_unit

        if position.quantity == ZERO:
            position.status = PositionStatus.SOLD

        return realized_gain_delta, proceeds

    def _apply_dividend(self, position: Position, event: DividendEvent) -> tuple[float, float]:
        position.total_dividends += event.amount
        position.last_dividend_amount = event.amount
        position.last_dividend_date = event.paid_on

        # Single-payment yield, not an annualized trailing sum
        if position.current_price > ZERO:
            position.dividend_yield = percentage_of(event.amount, position.current_price)

        return ZERO, event.amount

    def _apply_price_update(
        self, position: Position, event: PriceUpdateEvent
    ) -> tuple[float, float]:
        position.current_price = event.price
        return ZERO, ZERO

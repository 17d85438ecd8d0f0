"""
Position service.

This module is the boundary between callers and the pure ledger: it loads
a position, applies one ledger operation and saves the result, reloading
and reapplying once when the save hits a stale version. Saved buys, sells
and dividends are appended to the transaction history when one is wired in.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime

from loguru import logger

from finledger.core.config import LedgerSettings
from finledger.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from finledger.core.enums import AssetType, LedgerEventType, PositionStatus
from finledger.core.exceptions.ledger import ConcurrencyError, LedgerException, ValidationError
from finledger.core.interfaces.repository import LedgerEntryRepository, PositionRepository
from finledger.core.models.events import (
    BuyEvent,
    DividendEvent,
    LedgerEntry,
    LedgerEvent,
    PriceUpdateEvent,
    SellEvent,
)
from finledger.core.models.portfolio_aggregator import PortfolioAggregator
from finledger.core.models.portfolio_summary import EntrySummary, PortfolioSummary
from finledger.core.models.position import Position, RiskMetrics
from finledger.core.models.position_ledger import PositionLedger
from finledger.core.utils.decorators import log_ledger_operation
from finledger.core.utils.validation import (
    validate_asset_type,
    validate_event_type,
    validate_limit,
    validate_status,
)


@dataclass(frozen=True)
class BulkUpdateResult:
    """Outcome of one item of a bulk price update."""

    position_id: str
    success: bool
    position: Position | None = None
    error_type: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict:
        return {
            "position_id": self.position_id,
            "success": self.success,
            "version": self.position.version if self.position else None,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class EntryPage:
    """One page of a user's transaction history, oldest entry first."""

    entries: list[LedgerEntry]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    def to_dict(self) -> dict:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


class PositionService:
    """Load, apply and save position changes.

    Validation, insufficient-quantity, not-found and conflict errors
    propagate unchanged. A ConcurrencyError is retried up to
    settings.concurrency_retries times before it propagates.
    """

    def __init__(
        self,
        positions: PositionRepository,
        ledger: PositionLedger | None = None,
        aggregator: PortfolioAggregator | None = None,
        settings: LedgerSettings | None = None,
        history: LedgerEntryRepository | None = None,
    ) -> None:
        self.settings = settings or LedgerSettings()
        self.positions = positions
        self.history = history
        self.ledger = ledger or PositionLedger(tolerance=self.settings.quantity_tolerance)
        self.aggregator = aggregator or PortfolioAggregator()

    @log_ledger_operation
    def open_position(
        self,
        user_id: str,
        symbol: str,
        asset_type: AssetType | str,
        quantity: float,
        price_per_unit: float,
        is_watchlist: bool = False,
        *,
        name: str = "",
        sector: str | None = None,
        currency: str | None = None,
        notes: str | None = None,
        tags: str | None = None,
        risk: RiskMetrics | None = None,
    ) -> Position:
        """Open a position, rejecting a second active position for the symbol.

        Raises:
            ValidationError: If inputs are invalid
            ConflictError: If the user already holds the symbol actively
        """
        existing = self.positions.find_by_symbol(user_id, symbol)
        position = self.ledger.open(
            user_id,
            symbol,
            asset_type,
            quantity,
            price_per_unit,
            is_watchlist=is_watchlist,
            existing=existing,
            name=name,
            sector=sector,
            currency=currency or self.settings.default_currency,
            notes=notes,
            tags=tags,
            risk=risk,
        )
        return self.positions.add_position(position)

    def apply_event(self, position_id: str, event: LedgerEvent) -> LedgerEntry:
        """Apply one event to a stored position and persist the result.

        Returns:
            LedgerEntry whose position is the saved state
        """
        entries: list[LedgerEntry] = []

        def operation(position: Position) -> Position:
            entry = self.ledger.apply(position, event)
            entries.append(entry)
            return entry.position

        saved = self._save_with_retry(position_id, operation)
        entry = replace(entries[-1], position=saved)
        if self.history is not None and entry.event_type.moves_cash:
            entry = self.history.append_entry(entry)
        return entry

    @log_ledger_operation
    def buy(self, position_id: str, quantity: float, price_per_unit: float) -> LedgerEntry:
        return self.apply_event(position_id, BuyEvent(quantity, price_per_unit))

    @log_ledger_operation
    def sell(self, position_id: str, quantity: float, price_per_unit: float) -> LedgerEntry:
        return self.apply_event(position_id, SellEvent(quantity, price_per_unit))

    @log_ledger_operation
    def add_dividend(self, position_id: str, amount: float, paid_on: date) -> LedgerEntry:
        return self.apply_event(position_id, DividendEvent(amount, paid_on))

    @log_ledger_operation
    def update_price(self, position_id: str, new_price: float) -> LedgerEntry:
        return self.apply_event(position_id, PriceUpdateEvent(new_price))

    @log_ledger_operation
    def recalculate_metrics(self, position_id: str) -> Position:
        return self._save_with_retry(position_id, self.ledger.recalculate_metrics)

    @log_ledger_operation
    def bulk_update_prices(self, prices: Mapping[str, float]) -> list[BulkUpdateResult]:
        """Mark many positions to new prices, one independent update per item.

        Args:
            prices: New price per position id

        Returns:
            One BulkUpdateResult per item, in input order
        """
        results = []
        for position_id, new_price in prices.items():
            try:
                entry = self.apply_event(position_id, PriceUpdateEvent(new_price))
            except LedgerException as e:
                logger.warning(f"Price update failed for position {position_id}: {e}")
                results.append(
                    BulkUpdateResult(
                        position_id=position_id,
                        success=False,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                )
            else:
                results.append(
                    BulkUpdateResult(position_id=position_id, success=True, position=entry.position)
                )

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning(f"Bulk price update: {failed} of {len(results)} items failed")
        return results

    @log_ledger_operation
    def change_status(self, position_id: str, status: PositionStatus | str) -> Position:
        """Switch a position between active and inactive."""
        target = validate_status(status)
        return self._save_with_retry(
            position_id, lambda position: self.ledger.change_status(position, target)
        )

    @log_ledger_operation
    def update_details(
        self,
        position_id: str,
        *,
        name: str | None = None,
        sector: str | None = None,
        currency: str | None = None,
        notes: str | None = None,
        tags: str | None = None,
        risk: RiskMetrics | None = None,
    ) -> Position:
        """Change descriptive fields or replace the passthrough risk metrics."""
        return self._save_with_retry(
            position_id,
            lambda position: self.ledger.update_details(
                position,
                name=name,
                sector=sector,
                currency=currency,
                notes=notes,
                tags=tags,
                risk=risk,
            ),
        )

    @log_ledger_operation
    def delete_position(self, position_id: str) -> Position:
        """Soft-delete a position; it disappears from every listing."""
        return self.positions.delete_position(position_id)

    def get_position(self, position_id: str) -> Position:
        return self.positions.load_position(position_id)

    def list_positions(
        self,
        user_id: str,
        status: PositionStatus | str | None = None,
        asset_type: AssetType | str | None = None,
    ) -> list[Position]:
        return self.positions.list_positions(
            user_id,
            status=validate_status(status) if status is not None else None,
            asset_type=validate_asset_type(asset_type) if asset_type is not None else None,
        )

    def get_watchlist(self, user_id: str) -> list[Position]:
        return self.positions.list_positions(user_id, status=PositionStatus.WATCHLIST)

    def get_positions_by_type(self, user_id: str, asset_type: AssetType | str) -> list[Position]:
        return self.positions.list_positions(user_id, asset_type=validate_asset_type(asset_type))

    def get_summary(self, user_id: str) -> PortfolioSummary:
        """Summarize the user's active positions from one consistent read."""
        return self.aggregator.build_summary(self.positions.list_active_positions(user_id))

    def list_entries(
        self,
        user_id: str,
        position_id: str | None = None,
        event_type: LedgerEventType | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> EntryPage:
        """Page through the user's transaction history, oldest entry first.

        Args:
            user_id: Owner of the entries
            position_id: Only entries of this position
            event_type: Only buys, sells or dividends
            start: Earliest recorded_at, inclusive
            end: Latest recorded_at, inclusive
            page: 1-based page number; values below 1 mean the first page
            page_size: Entries per page, clamped to MAX_PAGE_SIZE

        Returns:
            EntryPage with the total match count
        """
        page = max(page, 1)
        page_size = validate_limit(page_size, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        entries = self._history_entries(user_id, position_id, event_type, start, end)
        offset = (page - 1) * page_size
        return EntryPage(
            entries=entries[offset : offset + page_size],
            total=len(entries),
            page=page,
            page_size=page_size,
        )

    def get_entry(self, entry_id: str) -> LedgerEntry:
        return self._require_history().load_entry(entry_id)

    def get_position_entries(self, position_id: str) -> list[LedgerEntry]:
        """Every history entry of a live position, oldest first."""
        position = self.positions.load_position(position_id)
        return self._require_history().list_entries(position.user_id, position_id=position_id)

    def get_entry_summary(
        self,
        user_id: str,
        position_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> EntrySummary:
        """Totals of bought, sold, dividends and realized gain over the history."""
        entries = self._history_entries(user_id, position_id, None, start, end)
        return self.aggregator.summarize_entries(entries)

    def _history_entries(
        self,
        user_id: str,
        position_id: str | None,
        event_type: LedgerEventType | str | None,
        start: datetime | None,
        end: datetime | None,
    ) -> list[LedgerEntry]:
        return self._require_history().list_entries(
            user_id,
            position_id=position_id,
            event_type=validate_event_type(event_type) if event_type is not None else None,
            start=start,
            end=end,
        )

    def _require_history(self) -> LedgerEntryRepository:
        if self.history is None:
            raise ValidationError("No transaction history is configured for this service")
        return self.history

    def _save_with_retry(
        self, position_id: str, operation: Callable[[Position], Position]
    ) -> Position:
        """Load, apply operation and save, reapplying on a stale version."""
        retries = self.settings.concurrency_retries
        for attempt in range(1, retries + 1):
            updated = operation(self.positions.load_position(position_id))
            try:
                return self.positions.save_position(updated)
            except ConcurrencyError as e:
                logger.warning(
                    f"Concurrent update of position {position_id}, retrying "
                    f"({attempt}/{retries}): {e}"
                )

        # Last attempt; a conflict here propagates
        updated = operation(self.positions.load_position(position_id))
        return self.positions.save_position(updated)

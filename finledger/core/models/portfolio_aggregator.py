"""
Portfolio aggregation.

This module reduces a user's positions into a PortfolioSummary: totals,
an asset-type breakdown and a sector breakdown. It also totals transaction
history entries. Both are read-side reductions with no side effects; the
caller is responsible for handing in one consistent read.
"""

from collections.abc import Iterable

import pandas as pd
from loguru import logger

from finledger.core.constants import UNCLASSIFIED_SECTOR
from finledger.core.enums import LedgerEventType
from finledger.core.models.events import LedgerEntry
from finledger.core.models.portfolio_summary import (
    BreakdownSummary,
    EntrySummary,
    PortfolioSummary,
)
from finledger.core.models.position import Position
from finledger.core.types.financial import ZERO, percentage_of

_COLUMNS = [
    "asset_type",
    "sector",
    "quantity",
    "total_cost",
    "current_value",
    "unrealized_gain",
    "realized_gain",
    "total_dividends",
]


class PortfolioAggregator:
    """Builds portfolio summaries from positions.

    Only active, non-deleted positions count: watchlist, sold and
    inactive positions are excluded from valuation totals.
    """

    def build_summary(self, positions: Iterable[Position]) -> PortfolioSummary:
        """Reduce positions into totals and breakdowns.

        Args:
            positions: A user's positions, read as one consistent view

        Returns:
            PortfolioSummary over the active positions
        """
        frame = self.to_frame(p for p in positions if p.is_active)

        if frame.empty:
            logger.debug("Building summary over no active positions")
            return PortfolioSummary()

        total_invested = float(frame["total_cost"].sum())
        total_value = float(frame["current_value"].sum())
        total_unrealized_gain = float(frame["unrealized_gain"].sum())
        total_realized_gain = float(frame["realized_gain"].sum())
        total_gain = total_unrealized_gain + total_realized_gain

        summary = PortfolioSummary(
            total_assets=len(frame),
            active_assets=int((frame["quantity"] > ZERO).sum()),
            total_invested=total_invested,
            total_value=total_value,
            total_unrealized_gain=total_unrealized_gain,
            total_realized_gain=total_realized_gain,
            total_gain=total_gain,
            total_gain_pct=percentage_of(total_gain, total_invested),
            total_dividends=float(frame["total_dividends"].sum()),
            by_asset_type=self._breakdown(frame, "asset_type", total_value),
            by_sector=self._breakdown(frame, "sector", total_value),
        )

        logger.debug(
            f"Built summary over {summary.total_assets} positions: "
            f"value={summary.total_value}, invested={summary.total_invested}"
        )
        return summary

    def summarize_entries(self, entries: Iterable[LedgerEntry]) -> EntrySummary:
        """Sum transaction history entries by event type.

        Args:
            entries: Entries of one user, already filtered by the caller

        Returns:
            EntrySummary of bought, sold, dividend and realized totals
        """
        frame = pd.DataFrame.from_records(
            [
                {
                    "event_type": entry.event_type.value,
                    "cash_amount": entry.cash_amount,
                    "realized_gain_delta": entry.realized_gain_delta,
                }
                for entry in entries
                if entry.event_type.moves_cash
            ],
            columns=["event_type", "cash_amount", "realized_gain_delta"],
        )
        if frame.empty:
            return EntrySummary()

        cash_by_type = frame.groupby("event_type")["cash_amount"].sum()
        return EntrySummary(
            total_entries=len(frame),
            total_bought=float(cash_by_type.get(LedgerEventType.BUY.value, ZERO)),
            total_sold=float(cash_by_type.get(LedgerEventType.SELL.value, ZERO)),
            total_dividends=float(cash_by_type.get(LedgerEventType.DIVIDEND.value, ZERO)),
            total_realized_gain=float(frame["realized_gain_delta"].sum()),
        )

    @staticmethod
    def to_frame(positions: Iterable[Position]) -> pd.DataFrame:
        """Tabulate the valuation columns of positions, one row per position."""
        records = [
            {
                "asset_type": position.asset_type.value,
                "sector": position.sector or UNCLASSIFIED_SECTOR,
                "quantity": position.quantity,
                "total_cost": position.total_cost,
                "current_value": position.current_value,
                "unrealized_gain": position.unrealized_gain,
                "realized_gain": position.realized_gain,
                "total_dividends": position.total_dividends,
            }
            for position in positions
        ]
        return pd.DataFrame.from_records(records, columns=_COLUMNS)

    @staticmethod
    def _breakdown(
        frame: pd.DataFrame, key: str, total_value: float
    ) -> dict[str, BreakdownSummary]:
        """Group frame by key and sum value, cost and count per group."""
        grouped = frame.groupby(key, sort=True).agg(
            total_value=("current_value", "sum"),
            total_cost=("total_cost", "sum"),
            asset_count=("current_value", "size"),
        )

        breakdown: dict[str, BreakdownSummary] = {}
        for name, row in grouped.iterrows():
            group_value = float(row["total_value"])
            breakdown[str(name)] = BreakdownSummary(
                key=str(name),
                total_value=group_value,
                total_cost=float(row["total_cost"]),
                asset_count=int(row["asset_count"]),
                percentage=percentage_of(group_value, total_value),
            )
        return breakdown

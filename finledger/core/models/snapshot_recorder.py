"""
Snapshot recording and snapshot history metrics.

This module turns a PortfolioSummary plus the user's previous snapshot
into a new immutable PortfolioSnapshot, and derives performance over a
series of stored snapshots.
"""

import uuid
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta

import pandas as pd
from loguru import logger

from finledger.core.enums import LedgerEventType, SnapshotPeriod, SnapshotType
from finledger.core.exceptions.ledger import ValidationError
from finledger.core.models.events import LedgerEntry
from finledger.core.models.portfolio_summary import PortfolioSummary
from finledger.core.models.snapshot import CashFlow, PerformanceMetrics, PortfolioSnapshot
from finledger.core.protocols import Clock, SystemClock, to_utc
from finledger.core.types.financial import ZERO, percentage_of
from finledger.core.utils.validation import validate_optional_metric, validate_period


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_utc(value: date | datetime) -> pd.Timestamp:
    """Convert a date or datetime to a UTC timestamp; naive values are taken as UTC."""
    timestamp = pd.Timestamp(value)
    if timestamp.tzinfo is None:
        return timestamp.tz_localize("UTC")
    return timestamp.tz_convert("UTC")


class SnapshotRecorder:
    """Builds write-once portfolio snapshots.

    The recorder never touches a stored snapshot: day-over-day change is
    computed once, against the previous snapshot handed in, and frozen.
    """

    def __init__(
        self, clock: Clock | None = None, id_factory: Callable[[], str] | None = None
    ) -> None:
        """Initialize the recorder.

        Args:
            clock: Source of timestamps (default system UTC clock)
            id_factory: Generates ids for new snapshots (default uuid4)
        """
        self.clock = clock or SystemClock()
        self.id_factory = id_factory or _new_id

    def build_snapshot(
        self,
        summary: PortfolioSummary,
        previous: PortfolioSnapshot | None,
        user_id: str,
        snapshot_type: SnapshotType | str = SnapshotType.MANUAL,
        period: SnapshotPeriod | str | None = None,
        snapshot_date: datetime | None = None,
        cash_flow: CashFlow | None = None,
        notes: str | None = None,
        volatility: float | None = None,
        sharpe_ratio: float | None = None,
        beta: float | None = None,
    ) -> PortfolioSnapshot:
        """Build a new snapshot from a summary and the previous snapshot.

        Args:
            summary: Aggregated totals for the user's active positions
            previous: The user's chronologically latest snapshot, if any
            user_id: Owner of the snapshot
            snapshot_type: How the snapshot was triggered
            period: Reporting period for periodic snapshots
            snapshot_date: Valuation instant (default: clock now); stored in UTC,
                naive values taken as UTC
            cash_flow: Buys and sells during the period

        Returns:
            New frozen PortfolioSnapshot

        Raises:
            ValidationError: If previous belongs to another user or is dated
                after the new snapshot, or an enum value is unknown
        """
        snapshot_type = self._validate_snapshot_type(snapshot_type)
        period = validate_period(period)
        created_at = self.clock.now()
        snapshot_date = to_utc(snapshot_date or created_at)
        cash_flow = cash_flow or CashFlow()

        if previous is not None:
            if previous.user_id != user_id:
                raise ValidationError(
                    f"Previous snapshot {previous.id} belongs to user {previous.user_id}, "
                    f"not {user_id}"
                )
            if _as_utc(previous.snapshot_date) > _as_utc(snapshot_date):
                raise ValidationError(
                    f"Snapshot date {snapshot_date.isoformat()} precedes previous snapshot "
                    f"{previous.snapshot_date.isoformat()}"
                )

        total_return = summary.total_unrealized_gain + summary.total_realized_gain
        day_change, day_change_pct = self.day_change(summary.total_value, previous)

        snapshot = PortfolioSnapshot(
            id=self.id_factory(),
            user_id=user_id,
            snapshot_date=snapshot_date,
            snapshot_type=snapshot_type,
            period=period,
            total_value=summary.total_value,
            total_cost=summary.total_invested,
            total_unrealized_gain=summary.total_unrealized_gain,
            total_realized_gain=summary.total_realized_gain,
            total_dividends=summary.total_dividends,
            total_return=total_return,
            total_return_pct=percentage_of(total_return, summary.total_invested),
            day_change=day_change,
            day_change_pct=day_change_pct,
            total_assets=summary.total_assets,
            active_assets=summary.active_assets,
            asset_types={k: v.to_dict() for k, v in summary.by_asset_type.items()},
            sector_allocation={k: v.to_dict() for k, v in summary.by_sector.items()},
            cash_inflow=cash_flow.inflow,
            cash_outflow=cash_flow.outflow,
            net_cash_flow=cash_flow.net,
            volatility=validate_optional_metric(volatility, "volatility"),
            sharpe_ratio=validate_optional_metric(sharpe_ratio, "sharpe_ratio"),
            beta=validate_optional_metric(beta, "beta"),
            notes=notes,
            created_at=created_at,
        )

        logger.debug(
            f"Built {snapshot_type.value} snapshot for user {user_id}: "
            f"value={snapshot.total_value}, day_change={snapshot.day_change}"
        )
        return snapshot

    @staticmethod
    def day_change(
        total_value: float, previous: PortfolioSnapshot | None
    ) -> tuple[float, float]:
        """Change in value against the previous snapshot, absolute and percent."""
        if previous is None:
            return ZERO, ZERO
        change = total_value - previous.total_value
        return change, percentage_of(change, previous.total_value)

    @staticmethod
    def cash_flow_from_entries(entries: Iterable[LedgerEntry]) -> CashFlow:
        """Sum buy cost into inflow and sale proceeds into outflow."""
        inflow = ZERO
        outflow = ZERO
        for entry in entries:
            if entry.event_type == LedgerEventType.BUY:
                inflow += entry.cash_amount
            elif entry.event_type == LedgerEventType.SELL:
                outflow += entry.cash_amount
        return CashFlow(inflow=inflow, outflow=outflow)

    @staticmethod
    def history_frame(snapshots: Iterable[PortfolioSnapshot]) -> pd.DataFrame:
        """Tabulate snapshots as a value time series ordered by snapshot date."""
        records = [
            {
                "snapshot_date": snapshot.snapshot_date,
                "total_value": snapshot.total_value,
                "total_cost": snapshot.total_cost,
                "total_return": snapshot.total_return,
                "day_change": snapshot.day_change,
            }
            for snapshot in snapshots
        ]
        frame = pd.DataFrame.from_records(
            records,
            columns=["snapshot_date", "total_value", "total_cost", "total_return", "day_change"],
        )
        if frame.empty:
            return frame
        frame["snapshot_date"] = pd.to_datetime(frame["snapshot_date"], utc=True)
        return frame.sort_values("snapshot_date", kind="stable").reset_index(drop=True)

    def performance_metrics(
        self,
        snapshots: Sequence[PortfolioSnapshot],
        start: date | datetime,
        end: date | datetime,
    ) -> PerformanceMetrics:
        """Value change between the first and last snapshot inside [start, end].

        A plain date as end includes every snapshot taken that day.

        Raises:
            ValidationError: If end precedes start
        """
        start_ts = _as_utc(start)
        if isinstance(end, datetime):
            end_ts = _as_utc(end)
            inverted = end_ts < start_ts
        else:
            end_ts = _as_utc(end + timedelta(days=1))
            inverted = end_ts <= start_ts
        if inverted:
            raise ValidationError(f"End date {end} precedes start date {start}")

        frame = self.history_frame(snapshots)
        if frame.empty:
            return PerformanceMetrics()

        dates = frame["snapshot_date"]
        if isinstance(end, datetime):
            in_range = frame[(dates >= start_ts) & (dates <= end_ts)]
        else:
            in_range = frame[(dates >= start_ts) & (dates < end_ts)]
        if in_range.empty:
            return PerformanceMetrics()

        first = in_range.iloc[0]
        last = in_range.iloc[-1]
        start_value = float(first["total_value"])
        end_value = float(last["total_value"])

        # Returns are undefined without a positive starting value
        total_return = ZERO
        total_return_pct = ZERO
        if start_value > ZERO:
            total_return = end_value - start_value
            total_return_pct = percentage_of(total_return, start_value)

        return PerformanceMetrics(
            start_date=first["snapshot_date"].to_pydatetime(),
            end_date=last["snapshot_date"].to_pydatetime(),
            start_value=start_value,
            end_value=end_value,
            total_return=total_return,
            total_return_pct=total_return_pct,
            snapshot_count=len(in_range),
        )

    @staticmethod
    def _validate_snapshot_type(value: SnapshotType | str) -> SnapshotType:
        if isinstance(value, SnapshotType):
            return value
        try:
            return SnapshotType(str(value).strip().lower())
        except ValueError as e:
            raise ValidationError(f"Invalid snapshot_type: {value}") from e

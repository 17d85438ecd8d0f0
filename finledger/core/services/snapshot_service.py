"""
Snapshot service.

Records portfolio snapshots from a single consistent read of the user's
positions and serves snapshot history. When a transaction history is wired
in, a snapshot without an explicit cash flow takes it from the entries
recorded since the previous snapshot.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, time

from finledger.core.config import LedgerSettings
from finledger.core.enums import SnapshotPeriod, SnapshotType
from finledger.core.exceptions.ledger import NotFoundError
from finledger.core.interfaces.repository import (
    LedgerEntryRepository,
    PositionRepository,
    SnapshotRepository,
)
from finledger.core.models.events import LedgerEntry
from finledger.core.models.portfolio_aggregator import PortfolioAggregator
from finledger.core.models.snapshot import CashFlow, PerformanceMetrics, PortfolioSnapshot
from finledger.core.models.snapshot_recorder import SnapshotRecorder
from finledger.core.protocols import to_utc
from finledger.core.utils.decorators import log_ledger_operation
from finledger.core.utils.validation import validate_limit, validate_period


class SnapshotService:
    """Boundary operations for portfolio snapshots."""

    def __init__(
        self,
        positions: PositionRepository,
        snapshots: SnapshotRepository,
        aggregator: PortfolioAggregator | None = None,
        recorder: SnapshotRecorder | None = None,
        settings: LedgerSettings | None = None,
        history: LedgerEntryRepository | None = None,
    ) -> None:
        self.positions = positions
        self.snapshots = snapshots
        self.history = history
        self.aggregator = aggregator or PortfolioAggregator()
        self.recorder = recorder or SnapshotRecorder()
        self.settings = settings or LedgerSettings()

    @log_ledger_operation
    def record_snapshot(
        self,
        user_id: str,
        snapshot_type: SnapshotType | str = SnapshotType.MANUAL,
        period: SnapshotPeriod | str | None = None,
        snapshot_date: datetime | None = None,
        cash_flow: CashFlow | None = None,
        entries: Iterable[LedgerEntry] | None = None,
        notes: str | None = None,
        volatility: float | None = None,
        sharpe_ratio: float | None = None,
        beta: float | None = None,
    ) -> PortfolioSnapshot:
        """Value the user's portfolio now and append the snapshot.

        Args:
            user_id: Owner of the portfolio
            cash_flow: Explicit cash flow for the period
            entries: Ledger entries of the period; used when cash_flow is not given.
                Without either, entries recorded since the previous snapshot are
                read from the transaction history, if one is configured

        Returns:
            The stored snapshot
        """
        summary = self.aggregator.build_summary(self.positions.list_active_positions(user_id))
        previous = self.snapshots.load_latest_snapshot(user_id)
        if cash_flow is None and entries is None and self.history is not None:
            entries = self._entries_since(user_id, previous)
        if cash_flow is None and entries is not None:
            cash_flow = self.recorder.cash_flow_from_entries(entries)

        snapshot = self.recorder.build_snapshot(
            summary,
            previous,
            user_id,
            snapshot_type=snapshot_type,
            period=period,
            snapshot_date=snapshot_date,
            cash_flow=cash_flow,
            notes=notes,
            volatility=volatility,
            sharpe_ratio=sharpe_ratio,
            beta=beta,
        )
        return self.snapshots.save_snapshot(snapshot)

    def get_latest(self, user_id: str) -> PortfolioSnapshot:
        """Return the user's latest snapshot.

        Raises:
            NotFoundError: If the user has no snapshots
        """
        snapshot = self.snapshots.load_latest_snapshot(user_id)
        if snapshot is None:
            raise NotFoundError("Snapshot", f"latest for user {user_id}")
        return snapshot

    def get_snapshot(self, snapshot_id: str) -> PortfolioSnapshot:
        return self.snapshots.load_snapshot(snapshot_id)

    def list_snapshots(
        self,
        user_id: str,
        period: SnapshotPeriod | str | None = None,
        limit: int | None = None,
    ) -> list[PortfolioSnapshot]:
        """Return the user's snapshots newest first, limit clamped to the configured maximum."""
        limit = validate_limit(
            limit, self.settings.default_snapshot_limit, self.settings.max_snapshot_limit
        )
        return self.snapshots.list_snapshots(user_id, period=validate_period(period), limit=limit)

    def list_by_period(
        self, user_id: str, period: SnapshotPeriod | str, limit: int | None = None
    ) -> list[PortfolioSnapshot]:
        return self.list_snapshots(user_id, period=period, limit=limit)

    def performance_metrics(
        self, user_id: str, start: date | datetime, end: date | datetime
    ) -> PerformanceMetrics:
        """Value change over [start, end] from the user's stored snapshots.

        A plain date as end includes every snapshot taken that day.
        """
        snapshots = self.snapshots.list_snapshots_between(
            user_id, _range_start(start), _range_end(end)
        )
        return self.recorder.performance_metrics(snapshots, start, end)

    @log_ledger_operation
    def delete_snapshot(self, user_id: str, snapshot_id: str) -> PortfolioSnapshot:
        """Delete one of the user's snapshots.

        Later snapshots keep the day change they were recorded with.

        Raises:
            NotFoundError: If the snapshot does not exist or belongs to another user
        """
        snapshot = self.snapshots.load_snapshot(snapshot_id)
        if snapshot.user_id != user_id:
            raise NotFoundError("Snapshot", snapshot_id)
        return self.snapshots.delete_snapshot(snapshot_id)

    def _entries_since(
        self, user_id: str, previous: PortfolioSnapshot | None
    ) -> list[LedgerEntry]:
        """History entries recorded after the previous snapshot."""
        if previous is None:
            return self.history.list_entries(user_id)
        since = previous.snapshot_date
        return [
            entry
            for entry in self.history.list_entries(user_id, start=since)
            if to_utc(entry.recorded_at) > to_utc(since)
        ]


def _range_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=UTC)


def _range_end(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max, tzinfo=UTC)

"""
Unit tests for SnapshotService.
"""

import itertools
from datetime import UTC, date, datetime, timedelta

import pytest

from finledger.core.config import LedgerSettings
from finledger.core.enums import AssetType, SnapshotPeriod, SnapshotType
from finledger.core.exceptions.ledger import NotFoundError, ValidationError
from finledger.core.models.position_ledger import PositionLedger
from finledger.core.models.snapshot import CashFlow
from finledger.core.models.snapshot_recorder import SnapshotRecorder
from finledger.core.protocols import FixedClock
from finledger.core.services.position_service import PositionService
from finledger.core.services.snapshot_service import SnapshotService
from finledger.infrastructure.persistence import (
    InMemoryLedgerEntryRepository,
    InMemoryPositionRepository,
    InMemorySnapshotRepository,
)

DAY1 = datetime(2024, 8, 1, 21, 0, tzinfo=UTC)


class TestSnapshotService:
    """Test suite for snapshot recording and history."""

    def _services(
        self,
        settings: LedgerSettings | None = None,
        history: InMemoryLedgerEntryRepository | None = None,
    ) -> tuple[PositionService, SnapshotService, FixedClock]:
        clock = FixedClock(DAY1)
        counter = itertools.count(1)
        positions = InMemoryPositionRepository(clock=clock)
        position_service = PositionService(
            positions,
            ledger=PositionLedger(clock=clock, id_factory=lambda: f"pos-{next(counter)}"),
            history=history,
        )
        snapshot_service = SnapshotService(
            positions,
            InMemorySnapshotRepository(),
            recorder=SnapshotRecorder(clock=clock),
            settings=settings,
            history=history,
        )
        return position_service, snapshot_service, clock

    def test_should_record_day_over_day_change(self) -> None:
        """Test two daily snapshots with a price move in between."""
        positions, snapshots, clock = self._services()
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 100, 100.0)

        first = snapshots.record_snapshot("user-1", "periodic", period="daily")
        clock.advance(timedelta(days=1))
        positions.update_price(aapl.id, 105.0)
        second = snapshots.record_snapshot("user-1", SnapshotType.PERIODIC, period="daily")

        assert first.total_value == pytest.approx(10000.0)
        assert first.day_change == 0.0
        assert second.total_value == pytest.approx(10500.0)
        assert second.day_change == pytest.approx(500.0)
        assert second.day_change_pct == pytest.approx(5.0)
        assert snapshots.get_latest("user-1").id == second.id

    def test_should_derive_cash_flow_from_entries(self) -> None:
        """Test that ledger entries of the period become the snapshot cash flow."""
        positions, snapshots, _ = self._services()
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 10, 100.0)
        entries = [positions.buy(aapl.id, 5, 110.0), positions.sell(aapl.id, 10, 120.0)]

        snapshot = snapshots.record_snapshot("user-1", entries=entries)

        assert snapshot.cash_inflow == pytest.approx(550.0)
        assert snapshot.cash_outflow == pytest.approx(1200.0)
        assert snapshot.net_cash_flow == pytest.approx(-650.0)

    def test_should_prefer_explicit_cash_flow(self) -> None:
        """Test that an explicit cash flow wins over entries."""
        positions, snapshots, _ = self._services()
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 10, 100.0)
        entries = [positions.buy(aapl.id, 5, 110.0)]

        snapshot = snapshots.record_snapshot(
            "user-1", cash_flow=CashFlow(inflow=1.0, outflow=2.0), entries=entries
        )

        assert snapshot.cash_inflow == 1.0
        assert snapshot.cash_outflow == 2.0

    def test_should_raise_not_found_without_snapshots(self) -> None:
        """Test latest snapshot of a user without history."""
        _, snapshots, _ = self._services()

        with pytest.raises(NotFoundError):
            snapshots.get_latest("user-1")
        with pytest.raises(NotFoundError):
            snapshots.get_snapshot("missing")

    def test_should_reject_backdated_snapshot(self) -> None:
        """Test that a snapshot cannot be dated before the latest one."""
        _, snapshots, _ = self._services()
        snapshots.record_snapshot("user-1")

        with pytest.raises(ValidationError):
            snapshots.record_snapshot("user-1", snapshot_date=DAY1 - timedelta(days=1))

    def test_should_list_by_period_with_limit(self) -> None:
        """Test period filters and configured limits."""
        _, snapshots, clock = self._services(
            LedgerSettings(default_snapshot_limit=2, max_snapshot_limit=3)
        )
        for day in range(5):
            snapshots.record_snapshot("user-1", "periodic", period="daily")
            if day % 2 == 0:
                snapshots.record_snapshot("user-1", "periodic", period="weekly")
            clock.advance(timedelta(days=1))

        assert len(snapshots.list_snapshots("user-1")) == 2
        assert len(snapshots.list_snapshots("user-1", limit=50)) == 3
        weekly = snapshots.list_by_period("user-1", "weekly", limit=3)
        assert [s.period for s in weekly] == [SnapshotPeriod.WEEKLY] * 3
        assert weekly[0].snapshot_date > weekly[-1].snapshot_date

        with pytest.raises(ValidationError, match="Invalid period"):
            snapshots.list_by_period("user-1", "hourly")

    def test_should_compute_performance_over_date_range(self) -> None:
        """Test performance metrics from stored snapshots."""
        positions, snapshots, clock = self._services()
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 100, 100.0)
        for price in [100.0, 104.0, 98.0, 110.0]:
            positions.update_price(aapl.id, price)
            snapshots.record_snapshot("user-1", "periodic", period="daily")
            clock.advance(timedelta(days=1))

        metrics = snapshots.performance_metrics("user-1", date(2024, 8, 2), date(2024, 8, 4))

        assert metrics.snapshot_count == 3
        assert metrics.start_value == pytest.approx(10400.0)
        assert metrics.end_value == pytest.approx(11000.0)
        assert metrics.total_return == pytest.approx(600.0)
        assert metrics.total_return_pct == pytest.approx(600.0 / 10400.0 * 100)

    def test_should_compute_performance_beyond_listing_limit(self) -> None:
        """Test a range older than the newest listed snapshots."""
        positions, snapshots, clock = self._services()
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 10, 100.0)
        for day in range(400):
            positions.update_price(aapl.id, 100.0 + day)
            snapshots.record_snapshot("user-1", "periodic", period="daily")
            clock.advance(timedelta(days=1))

        metrics = snapshots.performance_metrics("user-1", date(2024, 8, 1), date(2024, 8, 10))

        assert metrics.snapshot_count == 10
        assert metrics.start_value == pytest.approx(1000.0)
        assert metrics.end_value == pytest.approx(1090.0)
        assert metrics.total_return == pytest.approx(90.0)

    def test_should_order_naive_and_aware_snapshot_dates(self) -> None:
        """Test that a naive snapshot date is stored as UTC."""
        _, snapshots, clock = self._services()
        first = snapshots.record_snapshot("user-1", snapshot_date=datetime(2024, 8, 1, 9, 0))
        clock.advance(timedelta(hours=1))

        second = snapshots.record_snapshot("user-1")

        assert first.snapshot_date == datetime(2024, 8, 1, 9, 0, tzinfo=UTC)
        assert snapshots.get_latest("user-1").id == second.id
        assert [s.id for s in snapshots.list_snapshots("user-1")] == [second.id, first.id]

    def test_should_not_expose_stored_breakdowns(self) -> None:
        """Test that mutating a returned snapshot leaves the stored one intact."""
        positions, snapshots, _ = self._services()
        positions.open_position("user-1", "AAPL", AssetType.STOCK, 10, 100.0)
        recorded = snapshots.record_snapshot("user-1")

        recorded.asset_types["stock"]["total_value"] = 0.0
        snapshots.get_latest("user-1").asset_types.clear()

        assert snapshots.get_snapshot(recorded.id).asset_types["stock"]["total_value"] == (
            pytest.approx(1000.0)
        )

    def test_should_delete_own_snapshot(self) -> None:
        """Test deletion and ownership checks."""
        _, snapshots, clock = self._services()
        first = snapshots.record_snapshot("user-1")
        clock.advance(timedelta(days=1))
        second = snapshots.record_snapshot("user-1")

        with pytest.raises(NotFoundError):
            snapshots.delete_snapshot("user-2", second.id)
        deleted = snapshots.delete_snapshot("user-1", second.id)

        assert deleted.id == second.id
        assert snapshots.get_latest("user-1").id == first.id
        with pytest.raises(NotFoundError):
            snapshots.delete_snapshot("user-1", second.id)

    def test_should_take_cash_flow_from_history_since_previous_snapshot(self) -> None:
        """Test that each snapshot only counts entries after the previous one."""
        positions, snapshots, clock = self._services(history=InMemoryLedgerEntryRepository())
        aapl = positions.open_position("user-1", "AAPL", AssetType.STOCK, 10, 100.0)
        positions.buy(aapl.id, 5, 110.0)
        first = snapshots.record_snapshot("user-1")

        clock.advance(timedelta(days=1))
        positions.sell(aapl.id, 5, 120.0)
        positions.update_price(aapl.id, 125.0)
        second = snapshots.record_snapshot("user-1")

        assert first.cash_inflow == pytest.approx(550.0)
        assert first.cash_outflow == 0.0
        assert second.cash_inflow == 0.0
        assert second.cash_outflow == pytest.approx(600.0)

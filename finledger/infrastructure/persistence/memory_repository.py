"""
In-memory position, ledger entry and snapshot repositories.

Every repository guards its state with an RLock and hands out deep
copies, so a caller can never mutate stored state and every listing is a
single consistent read.
"""

import copy
import uuid
from dataclasses import replace
from datetime import UTC, datetime
from threading import RLock

from loguru import logger

from finledger.core.constants import DEFAULT_SNAPSHOT_LIMIT, MAX_SNAPSHOT_LIMIT
from finledger.core.enums import AssetType, LedgerEventType, PositionStatus, SnapshotPeriod
from finledger.core.exceptions.ledger import (
    ConcurrencyError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from finledger.core.interfaces.repository import (
    LedgerEntryRepository,
    PositionRepository,
    SnapshotRepository,
)
from finledger.core.models.events import LedgerEntry
from finledger.core.models.position import Position
from finledger.core.models.snapshot import PortfolioSnapshot
from finledger.core.protocols import Clock, SystemClock, to_utc
from finledger.core.utils.validation import validate_limit, validate_symbol


_EPOCH = datetime.min.replace(tzinfo=UTC)


class InMemoryPositionRepository(PositionRepository):
    """Thread-safe position store with optimistic version checks.

    Every successful save increments the stored version; a save carrying
    any other version than the stored one raises ConcurrencyError.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()
        self._positions: dict[str, Position] = {}
        self._lock = RLock()

    def load_position(self, position_id: str) -> Position:
        with self._lock:
            return copy.deepcopy(self._get_live(position_id))

    def save_position(self, position: Position) -> Position:
        with self._lock:
            stored = self._get_live(position.id)
            if stored.version != position.version:
                logger.debug(
                    f"Rejected stale save of {position.id}: "
                    f"version {position.version} != {stored.version}"
                )
                raise ConcurrencyError(position.id, position.version, stored.version)

            saved = copy.deepcopy(position)
            saved.version = stored.version + 1
            self._positions[saved.id] = saved
            return copy.deepcopy(saved)

    def add_position(self, position: Position) -> Position:
        with self._lock:
            if position.id in self._positions:
                raise ValidationError(f"Position already exists: {position.id}")
            if position.is_active and any(
                p.is_active and p.user_id == position.user_id and p.symbol == position.symbol
                for p in self._positions.values()
            ):
                raise ConflictError(position.user_id, position.symbol)

            stored = copy.deepcopy(position)
            self._positions[stored.id] = stored
            logger.debug(f"Added position {stored.symbol} ({stored.id}) for user {stored.user_id}")
            return copy.deepcopy(stored)

    def find_by_symbol(self, user_id: str, symbol: str) -> Position | None:
        symbol = validate_symbol(symbol)
        with self._lock:
            matches = [
                p
                for p in self._positions.values()
                if p.user_id == user_id and p.symbol == symbol and not p.is_deleted
            ]
            if not matches:
                return None
            # Prefer the active holding, then the most recently created one
            matches.sort(
                key=lambda p: (p.is_active, p.created_at or _EPOCH), reverse=True
            )
            return copy.deepcopy(matches[0])

    def list_active_positions(self, user_id: str) -> list[Position]:
        return self.list_positions(user_id, status=PositionStatus.ACTIVE)

    def list_positions(
        self,
        user_id: str,
        status: PositionStatus | None = None,
        asset_type: AssetType | None = None,
    ) -> list[Position]:
        with self._lock:
            positions = [
                p
                for p in self._positions.values()
                if p.user_id == user_id
                and not p.is_deleted
                and (status is None or p.status == status)
                and (asset_type is None or p.asset_type == asset_type)
            ]
            positions.sort(key=lambda p: p.symbol)
            return copy.deepcopy(positions)

    def delete_position(self, position_id: str) -> Position:
        with self._lock:
            stored = self._get_live(position_id)
            stored.deleted_at = self.clock.now()
            stored.version += 1
            logger.info(f"Soft-deleted position {stored.symbol} ({position_id})")
            return copy.deepcopy(stored)

    def _get_live(self, position_id: str) -> Position:
        position = self._positions.get(position_id)
        if position is None or position.is_deleted:
            raise NotFoundError("Position", position_id)
        return position


class InMemoryLedgerEntryRepository(LedgerEntryRepository):
    """Thread-safe append-only transaction history."""

    def __init__(self) -> None:
        self._entries: dict[str, LedgerEntry] = {}
        self._lock = RLock()

    def append_entry(self, entry: LedgerEntry) -> LedgerEntry:
        with self._lock:
            entry_id = entry.id or str(uuid.uuid4())
            if entry_id in self._entries:
                raise ValidationError(f"Ledger entry already exists: {entry_id}")
            stored = copy.deepcopy(replace(entry, id=entry_id))
            self._entries[entry_id] = stored
            logger.debug(
                f"Recorded {stored.event_type.value} entry {entry_id} "
                f"for position {stored.position_id}"
            )
            return copy.deepcopy(stored)

    def load_entry(self, entry_id: str) -> LedgerEntry:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise NotFoundError("Ledger entry", entry_id)
            return copy.deepcopy(entry)

    def list_entries(
        self,
        user_id: str,
        position_id: str | None = None,
        event_type: LedgerEventType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[LedgerEntry]:
        start = to_utc(start) if start is not None else None
        end = to_utc(end) if end is not None else None
        with self._lock:
            entries = [
                e
                for e in self._entries.values()
                if e.user_id == user_id
                and (position_id is None or e.position_id == position_id)
                and (event_type is None or e.event_type == event_type)
                and (start is None or to_utc(e.recorded_at) >= start)
                and (end is None or to_utc(e.recorded_at) <= end)
            ]
            # Stable sort keeps append order for entries recorded at the same instant
            entries.sort(key=lambda e: to_utc(e.recorded_at))
            return copy.deepcopy(entries)


class InMemorySnapshotRepository(SnapshotRepository):
    """Thread-safe append-only snapshot store."""

    def __init__(self) -> None:
        self._snapshots: dict[str, PortfolioSnapshot] = {}
        self._lock = RLock()

    def load_latest_snapshot(self, user_id: str) -> PortfolioSnapshot | None:
        with self._lock:
            snapshots = self._for_user(user_id)
            return copy.deepcopy(snapshots[0]) if snapshots else None

    def save_snapshot(self, snapshot: PortfolioSnapshot) -> PortfolioSnapshot:
        with self._lock:
            if snapshot.id in self._snapshots:
                raise ValidationError(f"Snapshot already exists: {snapshot.id}")
            self._snapshots[snapshot.id] = copy.deepcopy(snapshot)
            logger.debug(f"Saved snapshot {snapshot.id} for user {snapshot.user_id}")
            return copy.deepcopy(snapshot)

    def load_snapshot(self, snapshot_id: str) -> PortfolioSnapshot:
        with self._lock:
            return copy.deepcopy(self._get(snapshot_id))

    def list_snapshots(
        self,
        user_id: str,
        period: SnapshotPeriod | None = None,
        limit: int | None = None,
    ) -> list[PortfolioSnapshot]:
        limit = validate_limit(limit, DEFAULT_SNAPSHOT_LIMIT, MAX_SNAPSHOT_LIMIT)
        with self._lock:
            snapshots = [
                s for s in self._for_user(user_id) if period is None or s.period == period
            ]
            return copy.deepcopy(snapshots[:limit])

    def list_snapshots_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[PortfolioSnapshot]:
        start = to_utc(start)
        end = to_utc(end)
        with self._lock:
            snapshots = [
                s
                for s in reversed(self._for_user(user_id))
                if start <= to_utc(s.snapshot_date) <= end
            ]
            return copy.deepcopy(snapshots)

    def delete_snapshot(self, snapshot_id: str) -> PortfolioSnapshot:
        with self._lock:
            snapshot = self._get(snapshot_id)
            del self._snapshots[snapshot_id]
            logger.info(f"Deleted snapshot {snapshot_id} for user {snapshot.user_id}")
            return copy.deepcopy(snapshot)

    def _get(self, snapshot_id: str) -> PortfolioSnapshot:
        snapshot = self._snapshots.get(snapshot_id)
        if snapshot is None:
            raise NotFoundError("Snapshot", snapshot_id)
        return snapshot

    def _for_user(self, user_id: str) -> list[PortfolioSnapshot]:
        """User's snapshots, newest snapshot_date first; ties keep insertion order reversed."""
        snapshots = [s for s in self._snapshots.values() if s.user_id == user_id]
        snapshots.reverse()
        snapshots.sort(key=lambda s: to_utc(s.snapshot_date), reverse=True)
        return snapshots

"""
Persistence interfaces for positions, ledger entries and snapshots.

Storage is an external collaborator: the core only needs these operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from finledger.core.enums import AssetType, LedgerEventType, PositionStatus, SnapshotPeriod
from finledger.core.models.events import LedgerEntry
from finledger.core.models.position import Position
from finledger.core.models.snapshot import PortfolioSnapshot


class PositionRepository(ABC):
    """Abstract interface for position storage with optimistic concurrency."""

    @abstractmethod
    def load_position(self, position_id: str) -> Position:
        """Load a position by id.

        Raises:
            NotFoundError: If no live position has that id
        """
        pass

    @abstractmethod
    def save_position(self, position: Position) -> Position:
        """Persist a modified position and return it with its new version.

        Raises:
            NotFoundError: If the position was never added
            ConcurrencyError: If the stored version differs from position.version
        """
        pass

    @abstractmethod
    def add_position(self, position: Position) -> Position:
        """Store a newly opened position.

        Raises:
            ValidationError: If a position with the same id already exists
            ConflictError: If the user already holds the symbol actively
        """
        pass

    @abstractmethod
    def find_by_symbol(self, user_id: str, symbol: str) -> Position | None:
        """Find the user's live position for a symbol, if any."""
        pass

    @abstractmethod
    def list_active_positions(self, user_id: str) -> list[Position]:
        """Return the user's active positions as one consistent read."""
        pass

    @abstractmethod
    def list_positions(
        self,
        user_id: str,
        status: PositionStatus | None = None,
        asset_type: AssetType | None = None,
    ) -> list[Position]:
        """Return the user's live positions, optionally filtered."""
        pass

    @abstractmethod
    def delete_position(self, position_id: str) -> Position:
        """Soft-delete a position.

        Raises:
            NotFoundError: If no live position has that id
        """
        pass


class LedgerEntryRepository(ABC):
    """Abstract interface for the append-only transaction history."""

    @abstractmethod
    def append_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Append an entry and return it with its assigned id."""
        pass

    @abstractmethod
    def load_entry(self, entry_id: str) -> LedgerEntry:
        """Load an entry by id.

        Raises:
            NotFoundError: If no entry has that id
        """
        pass

    @abstractmethod
    def list_entries(
        self,
        user_id: str,
        position_id: str | None = None,
        event_type: LedgerEventType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[LedgerEntry]:
        """Return the user's entries oldest first; start and end are inclusive."""
        pass


class SnapshotRepository(ABC):
    """Abstract interface for append-only snapshot storage."""

    @abstractmethod
    def load_latest_snapshot(self, user_id: str) -> PortfolioSnapshot | None:
        """Return the user's chronologically latest snapshot, or None."""
        pass

    @abstractmethod
    def save_snapshot(self, snapshot: PortfolioSnapshot) -> PortfolioSnapshot:
        """Append a snapshot.

        Raises:
            ValidationError: If a snapshot with the same id already exists
        """
        pass

    @abstractmethod
    def load_snapshot(self, snapshot_id: str) -> PortfolioSnapshot:
        """Load a snapshot by id.

        Raises:
            NotFoundError: If no snapshot has that id
        """
        pass

    @abstractmethod
    def list_snapshots(
        self,
        user_id: str,
        period: SnapshotPeriod | None = None,
        limit: int | None = None,
    ) -> list[PortfolioSnapshot]:
        """Return the user's snapshots, newest first."""
        pass

    @abstractmethod
    def list_snapshots_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[PortfolioSnapshot]:
        """Return every snapshot of the user dated within [start, end], oldest first."""
        pass

    @abstractmethod
    def delete_snapshot(self, snapshot_id: str) -> PortfolioSnapshot:
        """Remove a snapshot; later snapshots keep their recorded day change.

        Raises:
            NotFoundError: If no snapshot has that id
        """
        pass

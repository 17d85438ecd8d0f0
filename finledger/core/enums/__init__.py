"""
Core enumerations for the position ledger.

This module provides centralized enumerations for domain concepts
like asset types, position states, ledger events and snapshot kinds.
"""

from .asset_types import AssetType, PositionStatus
from .event_types import LedgerEventType
from .snapshot_types import SnapshotPeriod, SnapshotType

__all__ = ["AssetType", "PositionStatus", "LedgerEventType", "SnapshotType", "SnapshotPeriod"]

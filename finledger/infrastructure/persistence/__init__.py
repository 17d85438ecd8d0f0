"""
Persistence infrastructure.

This module provides in-memory storage for positions, ledger entries and
snapshots, suitable for tests and single-process deployments.
"""

from .memory_repository import (
    InMemoryLedgerEntryRepository,
    InMemoryPositionRepository,
    InMemorySnapshotRepository,
)

__all__ = [
    "InMemoryPositionRepository",
    "InMemoryLedgerEntryRepository",
    "InMemorySnapshotRepository",
]

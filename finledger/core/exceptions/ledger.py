"""
Custom exception hierarchy for the position ledger.

This module defines domain-specific exceptions for better error handling.
Validation and insufficient-quantity errors are user-correctable; a
ConcurrencyError signals a stale read that the caller may reload and retry.
"""


class LedgerException(Exception):
    """Base exception for all ledger-related errors."""

    pass


class ValidationError(LedgerException):
    """Raised when input validation fails."""

    pass


class NotFoundError(LedgerException):
    """Raised when a position or snapshot does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InsufficientQuantityError(LedgerException):
    """Raised when a sell exceeds the quantity held."""

    def __init__(self, requested: float, available: float, symbol: str = ""):
        self.requested = requested
        self.available = available
        self.symbol = symbol
        target = f" of {symbol}" if symbol else ""
        super().__init__(
            f"Insufficient quantity{target}: requested={requested:g}, available={available:g}"
        )


class ConflictError(LedgerException):
    """Raised when opening a symbol that already has an active position."""

    def __init__(self, user_id: str, symbol: str):
        self.user_id = user_id
        self.symbol = symbol
        super().__init__(f"Active position for symbol {symbol} already exists for user {user_id}")


class ConcurrencyError(LedgerException):
    """Raised when saving a position whose stored version moved on."""

    def __init__(self, entity_id: str, expected_version: int, actual_version: int):
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stale version for {entity_id}: expected={expected_version}, actual={actual_version}"
        )

"""
Ledger event type enumerations.

This module defines the closed set of mutations a position ledger accepts.
"""

from enum import StrEnum


class LedgerEventType(StrEnum):
    """
    Allowed ledger events.

    Open is not an event: it creates the position the events are applied to.
    """

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    PRICE_UPDATE = "price_update"

    @property
    def moves_cash(self) -> bool:
        """Check if the event represents money entering or leaving the position.

        Only cash-moving entries are kept in the transaction history.
        """
        return self in [self.BUY, self.SELL, self.DIVIDEND]

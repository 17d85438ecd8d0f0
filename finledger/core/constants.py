"""
Core constants and limits.

Defines ledger-wide defaults and resource limits shared by the position
ledger, the portfolio aggregator and the snapshot recorder.
"""

# Numeric tolerance
QUANTITY_TOLERANCE = 1e-9  # Quantities closer than this are treated as equal
COST_BASIS_TOLERANCE = 1e-6  # Allowed drift between total cost and qty * avg cost

# Position defaults
DEFAULT_CURRENCY = "USD"
MAX_SYMBOL_LENGTH = 20
UNCLASSIFIED_SECTOR = "unclassified"

# Concurrency
DEFAULT_CONCURRENCY_RETRIES = 1  # Reload-and-reapply attempts after a stale save
MAX_CONCURRENCY_RETRIES = 5

# Snapshot listing limits
DEFAULT_SNAPSHOT_LIMIT = 30
MAX_SNAPSHOT_LIMIT = 365

# Position listing limits
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

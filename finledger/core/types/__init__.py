"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    HUNDRED,
    ZERO,
    exceeds,
    percentage_of,
    safe_float_comparison,
)

__all__ = [
    # Utility functions
    "percentage_of",
    "safe_float_comparison",
    "exceeds",
    # Constants
    "ZERO",
    "HUNDRED",
]

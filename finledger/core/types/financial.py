"""
Financial helpers for ledger calculations.

The ledger works in plain float. Derived percentages are never rounded
inside the core; presentation rounding belongs to the calling layer.

IMPORTANT PRECISION CONSIDERATIONS:
- Float64 provides ~15-16 significant decimal digits
- Comparisons of quantities and costs must go through the tolerance helpers
- Repeated partial sells can leave a residue of ~1e-15 that is not a holding
"""

from finledger.core.constants import QUANTITY_TOLERANCE

# Common financial values as float constants
ZERO = 0.0
HUNDRED = 100.0


def percentage_of(part: float, base: float) -> float:
    """Express part as a percentage of base.

    Callers decide what happens when base is not positive; this helper
    returns ZERO in that case.

    Examples:
        >>> percentage_of(500.0, 10000.0)
        5.0
        >>> percentage_of(10.0, 0.0)
        0.0
    """
    if base <= ZERO:
        return ZERO
    return part / base * HUNDRED


def safe_float_comparison(a: float, b: float, tolerance: float = QUANTITY_TOLERANCE) -> bool:
    """Compare floats with tolerance for precision issues.

    Args:
        a: First float to compare
        b: Second float to compare
        tolerance: Acceptable difference (default: QUANTITY_TOLERANCE)

    Returns:
        True if floats are equal within tolerance

    Examples:
        >>> safe_float_comparison(0.1 + 0.2, 0.3)
        True
        >>> safe_float_comparison(1000000.1, 1000000.2, 0.01)
        False
    """
    return abs(a - b) < tolerance


def exceeds(requested: float, available: float, tolerance: float = QUANTITY_TOLERANCE) -> bool:
    """Check if requested is larger than available beyond the tolerance."""
    return requested - available > tolerance

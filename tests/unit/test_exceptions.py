"""
Unit tests for custom exceptions.
Testing all exception classes and their attributes.
"""

from finledger.core.exceptions.ledger import (
    ConcurrencyError,
    ConflictError,
    InsufficientQuantityError,
    LedgerException,
    NotFoundError,
    ValidationError,
)


class TestLedgerException:
    """Tests for LedgerException base class."""

    def test_should_create_base_exception_with_message(self) -> None:
        """Test creating base exception with message."""
        exc = LedgerException("Test error message")
        assert str(exc) == "Test error message"
        assert isinstance(exc, Exception)

    def test_should_derive_every_ledger_error_from_base(self) -> None:
        """Test that callers can catch the whole family at once."""
        for exc_type in (
            ValidationError,
            NotFoundError,
            InsufficientQuantityError,
            ConflictError,
            ConcurrencyError,
        ):
            assert issubclass(exc_type, LedgerException)


class TestValidationError:
    """Tests for ValidationError."""

    def test_should_create_validation_error_with_message(self) -> None:
        """Test creating validation error."""
        exc = ValidationError("price_per_unit must be non-negative, got -100.0")
        assert "price_per_unit" in str(exc)
        assert "-100" in str(exc)


class TestNotFoundError:
    """Tests for NotFoundError."""

    def test_should_include_entity_and_id(self) -> None:
        """Test not found error attributes and message."""
        exc = NotFoundError("Position", "pos-42")

        assert exc.entity == "Position"
        assert exc.entity_id == "pos-42"
        assert str(exc) == "Position not found: pos-42"


class TestInsufficientQuantityError:
    """Tests for InsufficientQuantityError."""

    def test_should_include_requested_and_available(self) -> None:
        """Test quantities in the error."""
        exc = InsufficientQuantityError(requested=1.5, available=0.25, symbol="BTC")

        assert exc.requested == 1.5
        assert exc.available == 0.25
        assert exc.symbol == "BTC"
        assert str(exc) == "Insufficient quantity of BTC: requested=1.5, available=0.25"

    def test_should_omit_symbol_when_unknown(self) -> None:
        """Test message without a symbol."""
        exc = InsufficientQuantityError(requested=2.0, available=1.0)

        assert str(exc) == "Insufficient quantity: requested=2, available=1"


class TestConflictError:
    """Tests for ConflictError."""

    def test_should_include_user_and_symbol(self) -> None:
        """Test duplicate active position error."""
        exc = ConflictError("user-1", "AAPL")

        assert exc.user_id == "user-1"
        assert exc.symbol == "AAPL"
        assert "AAPL" in str(exc)
        assert "user-1" in str(exc)


class TestConcurrencyError:
    """Tests for ConcurrencyError."""

    def test_should_include_versions(self) -> None:
        """Test stale version error."""
        exc = ConcurrencyError("pos-1", expected_version=3, actual_version=4)

        assert exc.entity_id == "pos-1"
        assert exc.expected_version == 3
        assert exc.actual_version == 4
        assert str(exc) == "Stale version for pos-1: expected=3, actual=4"

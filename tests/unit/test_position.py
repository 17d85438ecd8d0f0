"""
Unit tests for Position domain model.
"""

from datetime import UTC, datetime

import pytest

from finledger.core.enums import AssetType, PositionStatus
from finledger.core.exceptions.ledger import ValidationError
from finledger.core.models.position import Position, RiskMetrics


def make_position(**overrides) -> Position:
    fields = {
        "id": "pos-1",
        "user_id": "user-1",
        "symbol": "AAPL",
        "asset_type": AssetType.STOCK,
        "status": PositionStatus.ACTIVE,
        "quantity": 5.0,
        "average_cost_per_unit": 100.0,
        "total_cost": 500.0,
        "current_price": 120.0,
    }
    fields.update(overrides)
    return Position(**fields)


class TestPosition:
    """Test suite for Position domain model."""

    def test_should_normalize_symbol_and_enums(self) -> None:
        """Test that strings are coerced on construction."""
        position = make_position(symbol=" msft ", asset_type="ETF", status="Active")

        assert position.symbol == "MSFT"
        assert position.asset_type == AssetType.ETF
        assert position.status == PositionStatus.ACTIVE

    def test_should_reject_negative_quantity(self) -> None:
        """Test that quantity can never be negative."""
        with pytest.raises(ValidationError, match="quantity must be non-negative"):
            make_position(quantity=-1.0)

    def test_should_reject_empty_symbol(self) -> None:
        """Test that blank symbols are rejected."""
        with pytest.raises(ValidationError, match="symbol must not be empty"):
            make_position(symbol="   ")

    def test_should_recalculate_value_and_unrealized_gain(self) -> None:
        """Test derived fields from quantity, price and cost."""
        position = make_position()

        position.recalculate_metrics()

        assert position.current_value == 600.0
        assert position.unrealized_gain == 100.0
        assert position.unrealized_gain_pct == pytest.approx(20.0)

    def test_should_report_zero_unrealized_pct_without_cost(self) -> None:
        """Test that a zero cost base yields zero percentage, not a division error."""
        position = make_position(quantity=0.0, total_cost=0.0)

        position.recalculate_metrics()

        assert position.unrealized_gain_pct == 0.0

    def test_should_combine_realized_and_unrealized_in_total_return(self) -> None:
        """Test total return helpers."""
        position = make_position(realized_gain=50.0)
        position.recalculate_metrics()

        assert position.total_return() == pytest.approx(150.0)
        assert position.total_return_pct() == pytest.approx(30.0)

    def test_should_treat_deleted_position_as_inactive(self) -> None:
        """Test that soft delete removes a position from the active set."""
        position = make_position(deleted_at=datetime(2024, 1, 1, tzinfo=UTC))

        assert position.is_deleted is True
        assert position.is_active is False

    def test_should_detect_cost_basis_drift(self) -> None:
        """Test the cost basis consistency check."""
        assert make_position().cost_basis_consistent() is True
        assert make_position(total_cost=501.0).cost_basis_consistent() is False

    def test_should_serialize_risk_metrics_as_none_when_unknown(self) -> None:
        """Test that unknown risk metrics stay None in the dict form."""
        position = make_position(risk=RiskMetrics(beta=1.2))

        data = position.to_dict()

        assert data["beta"] == 1.2
        assert data["volatility"] is None
        assert data["asset_type"] == "stock"
        assert data["status"] == "active"


class TestRiskMetrics:
    """Tests for RiskMetrics."""

    def test_should_default_every_metric_to_none(self) -> None:
        """Test that metrics are unknown by default."""
        metrics = RiskMetrics()

        assert metrics.beta is None
        assert metrics.sharpe_ratio is None
        assert metrics.five_year_return is None

    def test_should_reject_non_finite_metric(self) -> None:
        """Test that NaN is not accepted as a metric value."""
        with pytest.raises(ValidationError, match="volatility must be finite"):
            RiskMetrics(volatility=float("nan"))

    def test_should_accept_negative_returns(self) -> None:
        """Test that returns and drawdowns may be negative."""
        metrics = RiskMetrics(max_drawdown=-35.5, one_year_return=-12)

        assert metrics.max_drawdown == -35.5
        assert metrics.one_year_return == -12.0

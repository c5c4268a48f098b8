import pytest
from decimal import Decimal
from types import SimpleNamespace
from app.models.shared.enums import StockTrend, Trajectory
from app.services.inventory.stock_valuation_service import (
    change_percent,
    classify_trajectory,
    classify_trend,
    value_item,
)

class TestTrendClassification:
    """Per-item trend and business trajectory"""

    @pytest.mark.parametrize("initial, current, trend", [
        ("0", "5", StockTrend.NEW),
        ("0", "0", StockTrend.STABLE),
        ("100", "101", StockTrend.STABLE),
        ("100", "150", StockTrend.GROWING),
        ("100", "40", StockTrend.SHRINKING),
    ])
    def test_classify_trend(self, initial, current, trend):
        assert classify_trend(Decimal(initial), Decimal(current)) == trend

    def test_change_percent_undefined_without_start(self):
        assert change_percent(Decimal("0"), Decimal("10")) is None
        assert change_percent(Decimal("50"), Decimal("75")) == Decimal("50")

    @pytest.mark.parametrize("change, with_data, trajectory", [
        (None, 0, Trajectory.NEW),
        (Decimal("25"), 3, Trajectory.EXPANDING),
        (Decimal("-25"), 3, Trajectory.DECLINING),
        (Decimal("5"), 3, Trajectory.STABLE),
        (None, 3, Trajectory.STABLE),
    ])
    def test_classify_trajectory(self, change, with_data, trajectory):
        assert classify_trajectory(change, with_data) == trajectory

class TestValueItem:
    def test_values_item_against_period_start(self):
        item = SimpleNamespace(current_sell_price=Decimal("100"))
        batches = [
            SimpleNamespace(id=1, received_at=100, initial_quantity=Decimal("50"),
                            quantity_remaining=Decimal("30"), buy_price_per_unit=Decimal("80")),
            SimpleNamespace(id=2, received_at=300, initial_quantity=Decimal("10"),
                            quantity_remaining=Decimal("10"), buy_price_per_unit=Decimal("90")),
        ]
        consumptions = [SimpleNamespace(batch_id=1, quantity=Decimal("20"), consumed_at=200)]

        valuation = value_item(item, batches, consumptions, start=150, display_name="Tomatoes")

        assert valuation.initial_stock == Decimal("50")
        assert valuation.initial_value == Decimal("4000")
        assert valuation.current_stock == Decimal("40")
        assert valuation.current_buy_price == Decimal("90")
        assert valuation.stock_change == Decimal("-10")
        assert valuation.stock_change_percent == Decimal("-20")
        assert valuation.trend == StockTrend.SHRINKING
        assert valuation.stock_value == Decimal("3600")
        assert valuation.sales_value == Decimal("4000")
        assert valuation.first_batch_date == 100
        assert valuation.total_ever_stocked == Decimal("60")

    def test_without_start_uses_first_receipt(self):
        item = SimpleNamespace(current_sell_price=Decimal("1"))
        batches = [SimpleNamespace(id=1, received_at=100, initial_quantity=Decimal("5"),
                                   quantity_remaining=Decimal("5"), buy_price_per_unit=Decimal("2"))]
        valuation = value_item(item, batches, [], start=None, display_name="Salt")
        assert valuation.initial_stock == Decimal("5")
        assert valuation.trend == StockTrend.STABLE

    def test_item_without_batches(self):
        item = SimpleNamespace(current_sell_price=Decimal("3"))
        valuation = value_item(item, [], [], start=None, display_name="Air")
        assert valuation.current_stock == 0
        assert valuation.value_change_percent is None
        assert valuation.first_batch_date is None

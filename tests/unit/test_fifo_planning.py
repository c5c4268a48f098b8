import pytest
from decimal import Decimal
from types import SimpleNamespace
from app.core.exceptions import InsufficientStockError
from app.services.inventory.batch_ledger_service import (
    fifo_order,
    plan_fifo,
    reconstruct_at,
    resolve_buy_price,
    value_batches,
)

def batch(id, received_at, remaining, cost, initial=None):
    return SimpleNamespace(
        id=id,
        received_at=received_at,
        quantity_remaining=Decimal(remaining),
        initial_quantity=Decimal(initial if initial is not None else remaining),
        buy_price_per_unit=Decimal(cost),
    )

def consumption(batch_id, quantity, consumed_at):
    return SimpleNamespace(batch_id=batch_id, quantity=Decimal(quantity), consumed_at=consumed_at)

class TestFifoPlanning:
    """FIFO slice planning over open batches"""

    def test_oldest_batch_is_drawn_first(self):
        batches = [batch(2, 200, "10", "90"), batch(1, 100, "30", "80")]
        slices = plan_fifo(batches, Decimal("35"))

        assert [(s.batch_id, s.quantity, s.unit_cost) for s in slices] == [
            (1, Decimal("30"), Decimal("80")),
            (2, Decimal("5"), Decimal("90")),
        ]
        assert sum(s.cost for s in slices) == Decimal("2850")

    def test_same_timestamp_breaks_ties_by_id(self):
        batches = [batch(5, 100, "1", "2"), batch(3, 100, "1", "1")]
        assert [b.id for b in fifo_order(batches)] == [3, 5]

    def test_exhausted_batches_are_skipped(self):
        batches = [batch(1, 100, "0", "50", initial="10"), batch(2, 200, "4", "60")]
        slices = plan_fifo(batches, Decimal("4"))
        assert [s.batch_id for s in slices] == [2]

    def test_shortfall_raises_and_leaves_batches_untouched(self):
        batches = [batch(1, 100, "3", "10"), batch(2, 200, "2", "12")]
        with pytest.raises(InsufficientStockError) as exc:
            plan_fifo(batches, Decimal("6"))

        assert "requested 6, available 5" in exc.value.detail
        assert [b.quantity_remaining for b in batches] == [Decimal("3"), Decimal("2")]

    def test_plan_conserves_quantity(self):
        batches = [batch(i, i * 10, "2.5", str(i)) for i in range(1, 6)]
        slices = plan_fifo(batches, Decimal("7.25"))
        assert sum(s.quantity for s in slices) == Decimal("7.25")
        assert all(s.quantity > 0 for s in slices)

class TestLedgerValuation:
    """Valued stock and buy price resolution"""

    def test_value_counts_only_remaining_quantity(self):
        stock = value_batches([batch(1, 100, "30", "80", initial="50"), batch(2, 200, "10", "90")])
        assert stock.quantity == Decimal("40")
        assert stock.value == Decimal("3300")

    def test_empty_ledger_is_zero(self):
        stock = value_batches([])
        assert stock.quantity == 0
        assert stock.value == 0
        assert resolve_buy_price([]) == 0

    def test_buy_price_prefers_newest_open_batch(self):
        batches = [batch(1, 100, "5", "80"), batch(2, 200, "0", "95", initial="5")]
        assert resolve_buy_price(batches) == Decimal("80")

    def test_buy_price_falls_back_to_newest_batch(self):
        batches = [batch(1, 100, "0", "80", initial="5"), batch(2, 200, "0", "95", initial="5")]
        assert resolve_buy_price(batches) == Decimal("95")

    def test_reconstruct_replays_consumptions_up_to_timestamp(self):
        batches = [batch(1, 100, "0", "10", initial="10"), batch(2, 300, "5", "20")]
        consumptions = [consumption(1, "4", 150), consumption(1, "6", 400)]

        before_second_batch = reconstruct_at(batches, consumptions, 200)
        assert before_second_batch.quantity == Decimal("6")
        assert before_second_batch.value == Decimal("60")

        later = reconstruct_at(batches, consumptions, 500)
        assert later.quantity == Decimal("5")
        assert later.value == Decimal("100")

    def test_reconstruct_before_first_receipt_is_empty(self):
        stock = reconstruct_at([batch(1, 100, "10", "10")], [], 99)
        assert stock.quantity == 0

import pytest
from decimal import Decimal
from app.core.exceptions import ExceedsStockError, InvalidQuantityError, ValidationError
from app.core.transaction import run_ledger_transaction
from app.models.shared.enums import AdjustmentReason
from app.services.inventory.batch_ledger_service import BatchLedgerService
from app.services.inventory.stock_adjustment_service import StockAdjustmentService
from tests.conftest import BUSINESS_ID, USER_ID

@pytest.mark.asyncio
class TestStockAdjustments:
    """Manual corrections booked through the ledger"""

    async def test_tomatoes_scenario(self, db, make_item):
        tomatoes = await make_item("Tomatoes", sell_price="120")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        service = StockAdjustmentService(db, BUSINESS_ID)

        await run_ledger_transaction(db, lambda: ledger.receive(tomatoes.id, "50", "80", received_at=100))
        stock = await ledger.valued_stock(tomatoes.id)
        assert (stock.quantity, stock.value) == (Decimal("50"), Decimal("4000"))

        spoiled = await run_ledger_transaction(
            db, lambda: service.adjust(tomatoes.id, "decrease", "20", "spoilage", None, USER_ID)
        )
        assert spoiled.system_stock == Decimal("50")
        assert spoiled.actual_stock == Decimal("30")
        assert spoiled.difference == Decimal("-20")
        stock = await ledger.valued_stock(tomatoes.id)
        assert (stock.quantity, stock.value) == (Decimal("30"), Decimal("2400"))

        await run_ledger_transaction(
            db, lambda: service.adjust(tomatoes.id, "increase", "10", "restock", None, USER_ID, unit_cost="90")
        )
        batches = await ledger.get_batches(tomatoes.id, open_only=True)
        assert [(b.quantity_remaining, b.buy_price_per_unit) for b in batches] == [
            (Decimal("30"), Decimal("80")),
            (Decimal("10"), Decimal("90")),
        ]
        stock = await ledger.valued_stock(tomatoes.id)
        assert (stock.quantity, stock.value) == (Decimal("40"), Decimal("3300"))
        assert tomatoes.current_stock == Decimal("40")

    async def test_decrease_beyond_stock_is_rejected(self, db, make_item):
        item = await make_item("Lettuce")
        await BatchLedgerService(db, BUSINESS_ID).receive(item.id, "5", "1", received_at=100)
        await db.commit()
        item_id = item.id
        service = StockAdjustmentService(db, BUSINESS_ID)

        with pytest.raises(ExceedsStockError):
            await run_ledger_transaction(
                db, lambda: service.adjust(item_id, "decrease", "6", "theft", None, USER_ID)
            )
        assert await service.list_adjustments(item_id=item_id) == []

    async def test_increase_without_cost_uses_latest_batch(self, db, make_item):
        item = await make_item("Lettuce")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "5", "1.50", received_at=100)
        await db.commit()
        service = StockAdjustmentService(db, BUSINESS_ID)

        adjustment = await run_ledger_transaction(
            db, lambda: service.adjust(item.id, "increase", "2", "counting_error", "found in back", USER_ID)
        )

        assert "found in back" in adjustment.notes
        assert "taken from most recent batch" in adjustment.notes
        batches = await ledger.get_batches(item.id)
        assert batches[-1].buy_price_per_unit == Decimal("1.50")
        assert batches[-1].source_reference == f"adjustment:{adjustment.id}"

    async def test_increase_with_no_history_costs_zero(self, db, make_item):
        item = await make_item("Herbs")
        service = StockAdjustmentService(db, BUSINESS_ID)

        adjustment = await run_ledger_transaction(
            db, lambda: service.adjust(item.id, "increase", "3", "other", None, USER_ID)
        )

        assert adjustment.notes == "no prior batch, unit cost 0"
        assert (await BatchLedgerService(db, BUSINESS_ID).valued_stock(item.id)).value == 0

    async def test_invalid_input(self, db, make_item):
        item = await make_item("Herbs")
        service = StockAdjustmentService(db, BUSINESS_ID)
        with pytest.raises(InvalidQuantityError):
            await service.adjust(item.id, "increase", "0", "restock", None, USER_ID)
        with pytest.raises(ValidationError):
            await service.adjust(item.id, "sideways", "1", "restock", None, USER_ID)
        with pytest.raises(ValidationError):
            await service.adjust(item.id, "increase", "1", "magic", None, USER_ID)

    async def test_stock_take_only_adjusts_differences(self, db, make_item):
        apples = await make_item("Apples")
        pears = await make_item("Pears")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(apples.id, "10", "2", received_at=100)
        await ledger.receive(pears.id, "8", "3", received_at=100)
        await db.commit()
        service = StockAdjustmentService(db, BUSINESS_ID)

        results = await run_ledger_transaction(db, lambda: service.stock_take([
            {"item_id": apples.id, "actual_stock": "7"},
            {"item_id": pears.id, "actual_stock": "8"},
        ], USER_ID))

        assert [r.difference for r in results] == [Decimal("-3"), Decimal("0")]
        assert results[0].adjustment.reason == AdjustmentReason.COUNTING_ERROR
        assert results[1].adjustment is None
        assert (await ledger.valued_stock(apples.id)).quantity == Decimal("7")

    async def test_stock_take_requires_entries(self, db):
        with pytest.raises(ValidationError):
            await StockAdjustmentService(db, BUSINESS_ID).stock_take([], USER_ID)

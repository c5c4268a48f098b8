import pytest
from decimal import Decimal
from sqlalchemy.future import select
from app.core.exceptions import InsufficientStockError, InvalidQuantityError, NotFoundError, ValidationError
from app.core.transaction import run_ledger_transaction
from app.models.inventory.batch_consumption import BatchConsumption
from app.models.shared.enums import ConsumptionReference
from app.services.inventory.batch_ledger_service import BatchLedgerService
from tests.conftest import BUSINESS_ID, OTHER_BUSINESS_ID

@pytest.mark.asyncio
class TestBatchLedger:
    """FIFO batch ledger against the database"""

    async def test_receive_creates_batch_and_syncs_stock(self, db, make_item):
        item = await make_item("Rice", sell_price="3")
        ledger = BatchLedgerService(db, BUSINESS_ID)

        batch = await run_ledger_transaction(db, lambda: ledger.receive(item.id, "25", "2.40", received_at=100))

        assert batch.quantity_remaining == Decimal("25")
        assert batch.buy_price_per_unit == Decimal("2.40")
        assert item.current_stock == Decimal("25")

    async def test_consume_walks_batches_oldest_first(self, db, make_item):
        item = await make_item("Rice")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "10", "2", received_at=200)
        await ledger.receive(item.id, "10", "1", received_at=100)
        await db.commit()

        slices = await run_ledger_transaction(
            db, lambda: ledger.consume(item.id, "15", reference_type=ConsumptionReference.SALE, reference_id=1)
        )

        assert [(s.quantity, s.unit_cost) for s in slices] == [
            (Decimal("10"), Decimal("1")),
            (Decimal("5"), Decimal("2")),
        ]
        stock = await ledger.valued_stock(item.id)
        assert stock.quantity == Decimal("5")
        assert stock.value == Decimal("10")

        rows = (await db.execute(select(BatchConsumption).where(BatchConsumption.item_id == item.id))).scalars().all()
        assert sum(r.quantity for r in rows) == Decimal("15")

    async def test_shortfall_rolls_back_everything(self, db, make_item):
        item = await make_item("Rice")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "4", "2", received_at=100)
        await db.commit()
        item_id = item.id

        with pytest.raises(InsufficientStockError):
            await run_ledger_transaction(
                db, lambda: ledger.consume(item_id, "5", reference_type=ConsumptionReference.SALE)
            )

        stock = await ledger.valued_stock(item_id)
        assert stock.quantity == Decimal("4")
        consumed = (await db.execute(select(BatchConsumption))).scalars().all()
        assert consumed == []

    async def test_conservation_across_receipts_and_consumption(self, db, make_item):
        item = await make_item("Flour")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        received = Decimal("0")
        for ts, qty in ((100, "3.5"), (200, "7"), (300, "1.25")):
            await ledger.receive(item.id, qty, "1", received_at=ts)
            received += Decimal(qty)
        await ledger.consume(item.id, "4", reference_type=ConsumptionReference.SALE)
        await ledger.consume(item.id, "2.75", reference_type=ConsumptionReference.ADJUSTMENT)
        await db.commit()

        batches = await ledger.get_batches(item.id)
        assert all(b.quantity_remaining >= 0 for b in batches)
        assert sum(b.quantity_remaining for b in batches) == received - Decimal("6.75")

    async def test_invalid_quantities(self, db, make_item):
        item = await make_item("Salt")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        with pytest.raises(InvalidQuantityError):
            await ledger.receive(item.id, "0", "1")
        with pytest.raises(InvalidQuantityError):
            await ledger.receive(item.id, "1", "-1")
        with pytest.raises(InvalidQuantityError):
            await ledger.consume(item.id, "-2", reference_type=ConsumptionReference.SALE)

    async def test_parent_items_cannot_receive(self, db, make_item):
        parent = await make_item("Eggs")
        await make_item("Eggs", parent=parent, variant_name="Tray")
        ledger = BatchLedgerService(db, BUSINESS_ID)

        with pytest.raises(ValidationError):
            await ledger.receive(parent.id, "1", "1")

    async def test_tenants_are_isolated(self, db, make_item):
        item = await make_item("Rice")
        other = BatchLedgerService(db, OTHER_BUSINESS_ID)
        with pytest.raises(NotFoundError):
            await other.receive(item.id, "1", "1")

    async def test_cost_of_goods_does_not_mutate(self, db, make_item):
        item = await make_item("Oil")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "2", "5", received_at=100)
        await ledger.receive(item.id, "2", "7", received_at=200)
        await db.commit()

        assert await ledger.cost_of_goods(item.id, "3") == Decimal("17")
        assert (await ledger.valued_stock(item.id)).quantity == Decimal("4")

    async def test_stock_at_replays_history(self, db, make_item):
        item = await make_item("Oil")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "10", "5", received_at=100)
        await ledger.consume(item.id, "4", reference_type=ConsumptionReference.SALE, consumed_at=200)
        await ledger.receive(item.id, "6", "6", received_at=300)
        await db.commit()

        assert (await ledger.stock_at(item.id, 150)).quantity == Decimal("10")
        at_250 = await ledger.stock_at(item.id, 250)
        assert at_250.quantity == Decimal("6")
        assert at_250.value == Decimal("30")
        assert (await ledger.stock_at(item.id, 400)).quantity == Decimal("12")
        assert await ledger.current_buy_price(item.id) == Decimal("6")

    async def test_inputs_are_rounded_to_stored_scale(self, db, session_maker, make_item):
        item = await make_item("Saffron")
        item_id = item.id
        ledger = BatchLedgerService(db, BUSINESS_ID)

        with pytest.raises(InvalidQuantityError):
            await ledger.receive(item_id, "0.0004", "12.345")

        batch = await run_ledger_transaction(db, lambda: ledger.receive(item_id, "1.0004", "12.345", received_at=100))
        assert batch.initial_quantity == Decimal("1.000")
        assert batch.buy_price_per_unit == Decimal("12.35")

        async with session_maker() as fresh:
            stored = await BatchLedgerService(fresh, BUSINESS_ID).valued_stock(item_id)
        assert stored.quantity == Decimal("1.000")
        assert stored.value == Decimal("12.35")

        with pytest.raises(InvalidQuantityError):
            await ledger.consume(item_id, "0.0004", reference_type=ConsumptionReference.SALE)

    async def test_inactive_items_are_not_found(self, db, make_item):
        item = await make_item("Old stock")
        item.active = False
        await db.commit()

        with pytest.raises(NotFoundError):
            await BatchLedgerService(db, BUSINESS_ID).receive(item.id, "1", "1")

    async def test_write_off_targets_the_named_batch(self, db, make_item):
        item = await make_item("Flour")
        ledger = BatchLedgerService(db, BUSINESS_ID)
        await ledger.receive(item.id, "5", "1", received_at=100)
        newest = await ledger.receive(item.id, "5", "2", received_at=200)
        await db.commit()

        piece = await run_ledger_transaction(
            db, lambda: ledger.write_off_from_batch(newest.id, "2", reference_type=ConsumptionReference.ADJUSTMENT)
        )

        assert piece.unit_cost == Decimal("2")
        assert [b.quantity_remaining for b in await ledger.get_batches(item.id)] == [Decimal("5"), Decimal("3")]
        assert item.current_stock == Decimal("8")

        with pytest.raises(InsufficientStockError):
            await ledger.write_off_from_batch(newest.id, "4", reference_type=ConsumptionReference.ADJUSTMENT)

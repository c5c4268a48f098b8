import asyncio
import pytest
from decimal import Decimal
from sqlalchemy.future import select
from app.core.exceptions import LedgerTimeoutError
from app.core.transaction import run_ledger_transaction
from app.models.inventory.inventory_batch import InventoryBatch
from app.models.inventory.stock_adjustment import StockAdjustment
from app.services.inventory.batch_ledger_service import BatchLedgerService
from app.services.inventory.stock_adjustment_service import StockAdjustmentService
from tests.conftest import BUSINESS_ID, USER_ID

@pytest.mark.asyncio
class TestLedgerTransaction:
    """Commit, rollback and timeout behaviour of ledger writes"""

    async def test_commits_on_success(self, db, session_maker, make_item):
        item = await make_item("Rice")
        item_id = item.id
        ledger = BatchLedgerService(db, BUSINESS_ID)

        await run_ledger_transaction(db, lambda: ledger.receive(item_id, "3", "2", received_at=100))

        async with session_maker() as fresh:
            stored = await BatchLedgerService(fresh, BUSINESS_ID).valued_stock(item_id)
        assert stored.quantity == Decimal("3")

    async def test_timeout_rolls_back_and_is_retryable(self, db, make_item):
        item = await make_item("Rice")
        item_id = item.id
        service = StockAdjustmentService(db, BUSINESS_ID)

        async def slow_receipt():
            await service.receive_purchase(item_id, "5", "2", USER_ID, wastage_quantity="1")
            await asyncio.sleep(1)

        with pytest.raises(LedgerTimeoutError) as exc:
            await run_ledger_transaction(db, slow_receipt, timeout=0.01)

        assert exc.value.status_code == 503
        assert exc.value.retryable is True
        assert (await db.execute(select(InventoryBatch))).scalars().all() == []
        assert (await db.execute(select(StockAdjustment))).scalars().all() == []
        assert (await BatchLedgerService(db, BUSINESS_ID).valued_stock(item_id)).quantity == Decimal("0")

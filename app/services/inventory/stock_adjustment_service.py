import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.core.exceptions import ExceedsStockError, InvalidQuantityError, ValidationError
from app.models.inventory.inventory_batch import InventoryBatch
from app.models.inventory.stock_adjustment import StockAdjustment
from app.models.shared.enums import AdjustmentReason, AdjustmentType, ConsumptionReference
from app.services.inventory.batch_ledger_service import BatchLedgerService
from app.utils.epoch import now_epoch
from app.utils.validators.validation_utils import ZERO, Number, parse_enum, to_money, to_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockTakeResult:
    item_id: int
    system_stock: Decimal
    actual_stock: Decimal
    difference: Decimal
    adjustment: Optional[StockAdjustment] = None


@dataclass(frozen=True)
class PurchaseReceipt:
    batch: InventoryBatch
    wastage: Optional[StockAdjustment] = None


def _append_note(notes: Optional[str], extra: str) -> str:
    return f"{notes.strip()} ({extra})" if notes and notes.strip() else extra


class StockAdjustmentService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id
        self.ledger = BatchLedgerService(db, business_id)

    async def adjust(
        self,
        item_id: int,
        adjustment_type: Any,
        quantity: Number,
        reason: Any,
        notes: Optional[str],
        actor_id: int,
        unit_cost: Optional[Number] = None,
    ) -> StockAdjustment:
        """
        Apply a manual stock correction through the batch ledger.

        Decreases consume batches oldest first; increases open a new batch.
        Flushes only, the caller owns the transaction.
        """
        # Validate before touching any row
        adjustment_type = parse_enum(AdjustmentType, adjustment_type, "adjustment type")
        reason = parse_enum(AdjustmentReason, reason, "reason")
        quantity = to_quantity(quantity)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than 0")
        if unit_cost is not None:
            unit_cost = to_money(unit_cost, "unit_cost")
            if unit_cost < 0:
                raise InvalidQuantityError("Unit cost cannot be negative")

        item = await self.ledger.get_item(item_id, lock=True)
        system_stock = (await self.ledger.valued_stock(item.id)).quantity

        if adjustment_type == AdjustmentType.DECREASE:
            if quantity > system_stock:
                raise ExceedsStockError(
                    f"Cannot remove {quantity} from '{item.name}': only {system_stock} in stock"
                )
            actual_stock = system_stock - quantity
        else:
            actual_stock = system_stock + quantity
            if reason != AdjustmentReason.RESTOCK or unit_cost is None:
                unit_cost, note = await self._fallback_unit_cost(item.id)
                notes = _append_note(notes, note)

        adjustment = StockAdjustment(
            business_id=self.business_id,
            item_id=item.id,
            system_stock=system_stock,
            actual_stock=actual_stock,
            difference=actual_stock - system_stock,
            reason=reason,
            notes=notes,
            adjusted_by=actor_id,
        )
        self.db.add(adjustment)
        await self.db.flush()

        if adjustment_type == AdjustmentType.DECREASE:
            await self.ledger.consume(
                item.id,
                quantity,
                reference_type=ConsumptionReference.ADJUSTMENT,
                reference_id=adjustment.id,
            )
        else:
            await self.ledger.receive(
                item.id,
                quantity,
                unit_cost,
                source_reference=f"adjustment:{adjustment.id}",
            )

        logger.info(
            f"✏️ Stock adjustment {adjustment.id} on item {item.id}: "
            f"{system_stock} -> {actual_stock} ({reason.value}) by user {actor_id}"
        )
        return adjustment

    async def receive_purchase(
        self,
        item_id: int,
        usable_quantity: Number,
        unit_cost: Number,
        actor_id: int,
        wastage_quantity: Optional[Number] = None,
        notes: Optional[str] = None,
        received_at: Optional[int] = None,
        source_reference: Optional[str] = None,
    ) -> PurchaseReceipt:
        """
        Book a supplier delivery, split into usable stock and wastage.

        The whole delivery becomes one batch at `unit_cost`. Wastage is then
        written off from that same batch and logged as a spoilage adjustment,
        so its cost shows up as a stock loss instead of hiding in the price
        of the usable units. Flushes only.
        """
        usable = to_quantity(usable_quantity, "usable_quantity")
        if usable <= 0:
            raise InvalidQuantityError("Usable quantity must be greater than 0")
        wastage = ZERO if wastage_quantity is None else to_quantity(wastage_quantity, "wastage_quantity")
        if wastage < 0:
            raise InvalidQuantityError("Wastage quantity cannot be negative")

        moment = received_at if received_at is not None else now_epoch()
        batch = await self.ledger.receive(
            item_id,
            usable + wastage,
            unit_cost,
            received_at=moment,
            source_reference=source_reference,
        )
        if wastage == 0:
            return PurchaseReceipt(batch=batch)

        system_stock = (await self.ledger.valued_stock(batch.item_id)).quantity
        adjustment = StockAdjustment(
            business_id=self.business_id,
            item_id=batch.item_id,
            system_stock=system_stock,
            actual_stock=system_stock - wastage,
            difference=-wastage,
            reason=AdjustmentReason.SPOILAGE,
            notes=_append_note(notes, "wastage from purchase breakdown"),
            adjusted_by=actor_id,
            created_at=moment,
        )
        self.db.add(adjustment)
        await self.db.flush()

        await self.ledger.write_off_from_batch(
            batch.id,
            wastage,
            reference_type=ConsumptionReference.ADJUSTMENT,
            reference_id=adjustment.id,
            consumed_at=moment,
        )
        logger.info(
            f"🧺 Purchase breakdown for item {batch.item_id}: {usable} usable, "
            f"{wastage} wasted (adjustment {adjustment.id}) by user {actor_id}"
        )
        return PurchaseReceipt(batch=batch, wastage=adjustment)

    async def _fallback_unit_cost(self, item_id: int):
        latest = await self.ledger.latest_unit_cost(item_id)
        if latest is None:
            return ZERO, "no prior batch, unit cost 0"
        return latest, f"unit cost {latest} taken from most recent batch"

    async def stock_take(self, entries: Sequence[Dict[str, Any]], actor_id: int) -> List[StockTakeResult]:
        """Reconcile counted quantities against the ledger, one adjustment per differing item"""
        if not entries:
            raise ValidationError("Items are required")

        results = []
        for entry in entries:
            actual = to_quantity(entry.get("actual_stock"), "actual_stock")
            if actual < 0:
                raise InvalidQuantityError("Actual stock cannot be negative")

            item = await self.ledger.get_item(entry.get("item_id"), lock=True)
            system_stock = (await self.ledger.valued_stock(item.id)).quantity
            difference = actual - system_stock

            if difference == 0:
                results.append(StockTakeResult(item.id, system_stock, actual, ZERO))
                continue

            adjustment = await self.adjust(
                item.id,
                AdjustmentType.INCREASE if difference > 0 else AdjustmentType.DECREASE,
                abs(difference),
                entry.get("reason") or AdjustmentReason.COUNTING_ERROR,
                entry.get("notes"),
                actor_id,
                unit_cost=entry.get("unit_cost"),
            )
            results.append(StockTakeResult(item.id, system_stock, actual, difference, adjustment))

        logger.info(
            f"📋 Stock take by user {actor_id}: {len(results)} item(s), "
            f"{sum(1 for r in results if r.adjustment)} adjustment(s)"
        )
        return results

    async def list_adjustments(
        self,
        item_id: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[StockAdjustment]:
        """Audit trail, newest first"""
        conditions = [StockAdjustment.business_id == self.business_id]
        if item_id:
            conditions.append(StockAdjustment.item_id == item_id)
        if start is not None:
            conditions.append(StockAdjustment.created_at >= start)
        if end is not None:
            conditions.append(StockAdjustment.created_at <= end)

        result = await self.db.execute(
            select(StockAdjustment)
            .where(and_(*conditions))
            .order_by(desc(StockAdjustment.created_at), desc(StockAdjustment.id))
            .offset(skip)
            .limit(limit)
        )
        return result.scalars().all()


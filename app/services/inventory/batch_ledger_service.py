"""
FIFO batch ledger.

Every unit of stock an item holds lives in an InventoryBatch with the unit
cost it was bought at. Batches are consumed oldest first, ordered by
(received_at, id). Consumption writes one BatchConsumption row per batch it
touches, which lets the ledger be replayed to any past timestamp.

Writes lock the item row and its batches; none of the methods commit.
Callers wrap them in app.core.transaction.run_ledger_transaction.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence
from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.core.exceptions import InsufficientStockError, InvalidQuantityError, NotFoundError, ValidationError
from app.models.inventory.batch_consumption import BatchConsumption
from app.models.inventory.inventory_batch import InventoryBatch
from app.models.inventory.item import Item
from app.models.shared.enums import ConsumptionReference
from app.utils.epoch import now_epoch
from app.utils.validators.validation_utils import ZERO, Number, to_money, to_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSlice:
    """Quantity taken from a single batch at that batch's unit cost"""
    batch_id: int
    quantity: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True)
class ValuedStock:
    quantity: Decimal
    value: Decimal


def fifo_order(batches: Iterable[InventoryBatch]) -> List[InventoryBatch]:
    return sorted(batches, key=lambda b: (b.received_at, b.id))


def plan_fifo(batches: Sequence[InventoryBatch], quantity: Decimal) -> List[BatchSlice]:
    """
    Decide which batches a consumption of `quantity` draws from.

    Pure: batches are not modified. Raises InsufficientStockError when the
    open batches cannot cover the full quantity.
    """
    open_batches = [b for b in fifo_order(batches) if b.quantity_remaining > 0]
    available = sum((b.quantity_remaining for b in open_batches), ZERO)
    if available < quantity:
        raise InsufficientStockError(
            f"Insufficient stock: requested {quantity}, available {available}"
        )

    slices = []
    remaining = quantity
    for batch in open_batches:
        if remaining <= 0:
            break
        take = min(batch.quantity_remaining, remaining)
        slices.append(BatchSlice(batch_id=batch.id, quantity=take, unit_cost=batch.buy_price_per_unit))
        remaining -= take
    return slices


def value_batches(batches: Iterable[InventoryBatch]) -> ValuedStock:
    quantity = ZERO
    value = ZERO
    for batch in batches:
        if batch.quantity_remaining > 0:
            quantity += batch.quantity_remaining
            value += batch.quantity_remaining * batch.buy_price_per_unit
    return ValuedStock(quantity=quantity, value=value)


def resolve_buy_price(batches: Sequence[InventoryBatch]) -> Decimal:
    """Newest batch still holding stock, else the newest batch, else zero."""
    ordered = fifo_order(batches)
    for batch in reversed(ordered):
        if batch.quantity_remaining > 0:
            return batch.buy_price_per_unit
    if ordered:
        return ordered[-1].buy_price_per_unit
    return ZERO


def reconstruct_at(
    batches: Iterable[InventoryBatch],
    consumptions: Iterable[BatchConsumption],
    timestamp: int,
) -> ValuedStock:
    """Ledger state as it stood at `timestamp` (inclusive)."""
    consumed: Dict[int, Decimal] = {}
    for consumption in consumptions:
        if consumption.consumed_at <= timestamp:
            consumed[consumption.batch_id] = consumed.get(consumption.batch_id, ZERO) + consumption.quantity

    quantity = ZERO
    value = ZERO
    for batch in batches:
        if batch.received_at > timestamp:
            continue
        remaining = batch.initial_quantity - consumed.get(batch.id, ZERO)
        if remaining > 0:
            quantity += remaining
            value += remaining * batch.buy_price_per_unit
    return ValuedStock(quantity=quantity, value=value)


class BatchLedgerService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id

    # ------------------------------------------------------------------ lookups

    async def get_item(self, item_id: int, lock: bool = False) -> Item:
        query = select(Item).where(and_(
            Item.id == item_id,
            Item.business_id == self.business_id,
            Item.active == True,
        ))
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    async def has_variants(self, item_id: int) -> bool:
        result = await self.db.execute(
            select(func.count(Item.id)).where(
                and_(
                    Item.parent_item_id == item_id,
                    Item.business_id == self.business_id,
                    Item.active == True,
                )
            )
        )
        return (result.scalar() or 0) > 0

    async def get_batches(self, item_id: int, open_only: bool = False, lock: bool = False) -> List[InventoryBatch]:
        query = select(InventoryBatch).where(
            and_(InventoryBatch.item_id == item_id, InventoryBatch.business_id == self.business_id)
        )
        if open_only:
            query = query.where(InventoryBatch.quantity_remaining > 0)
        if lock:
            query = query.with_for_update()
        query = query.order_by(InventoryBatch.received_at, InventoryBatch.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_batches_for_items(self, item_ids: Sequence[int]) -> Dict[int, List[InventoryBatch]]:
        grouped: Dict[int, List[InventoryBatch]] = {item_id: [] for item_id in item_ids}
        if not item_ids:
            return grouped
        result = await self.db.execute(
            select(InventoryBatch)
            .where(
                and_(
                    InventoryBatch.business_id == self.business_id,
                    InventoryBatch.item_id.in_(item_ids),
                )
            )
            .order_by(InventoryBatch.received_at, InventoryBatch.id)
        )
        for batch in result.scalars().all():
            grouped.setdefault(batch.item_id, []).append(batch)
        return grouped

    async def get_consumptions_for_items(
        self,
        item_ids: Sequence[int],
        until: Optional[int] = None,
    ) -> Dict[int, List[BatchConsumption]]:
        grouped: Dict[int, List[BatchConsumption]] = {item_id: [] for item_id in item_ids}
        if not item_ids:
            return grouped
        query = select(BatchConsumption).where(
            and_(
                BatchConsumption.business_id == self.business_id,
                BatchConsumption.item_id.in_(item_ids),
            )
        )
        if until is not None:
            query = query.where(BatchConsumption.consumed_at <= until)
        result = await self.db.execute(query)
        for consumption in result.scalars().all():
            grouped.setdefault(consumption.item_id, []).append(consumption)
        return grouped

    # ------------------------------------------------------------------ writes

    async def receive(
        self,
        item_id: int,
        quantity: Number,
        unit_cost: Number,
        received_at: Optional[int] = None,
        source_reference: Optional[str] = None,
    ) -> InventoryBatch:
        """Append a new batch; the item's cached stock is refreshed from the ledger."""
        quantity = to_quantity(quantity)
        unit_cost = to_money(unit_cost, "unit_cost")
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero")
        if unit_cost < 0:
            raise InvalidQuantityError("Unit cost cannot be negative")

        item = await self.get_item(item_id, lock=True)
        if await self.has_variants(item.id):
            raise ValidationError("Parent items cannot hold stock; receive into a variant instead")

        batch = InventoryBatch(
            business_id=self.business_id,
            item_id=item.id,
            initial_quantity=quantity,
            quantity_remaining=quantity,
            buy_price_per_unit=unit_cost,
            received_at=received_at if received_at is not None else now_epoch(),
            source_reference=source_reference,
        )
        self.db.add(batch)
        await self.db.flush()
        await self.sync_item_stock(item)

        logger.info(f"📦 Received {quantity} of item {item.id} @ {unit_cost} into batch {batch.id}")
        return batch

    async def consume(
        self,
        item_id: int,
        quantity: Number,
        reference_type: ConsumptionReference,
        reference_id: Optional[int] = None,
        consumed_at: Optional[int] = None,
    ) -> List[BatchSlice]:
        """
        Take `quantity` from the item's batches oldest first.

        All-or-nothing: the shortfall check runs before any batch is touched.
        """
        quantity = to_quantity(quantity)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero")

        item = await self.get_item(item_id, lock=True)
        batches = await self.get_batches(item.id, open_only=True, lock=True)
        slices = plan_fifo(batches, quantity)
        await self._apply_slices(item, batches, slices, reference_type, reference_id, consumed_at)

        logger.info(
            f"🔻 Consumed {quantity} of item {item.id} across {len(slices)} batch(es) "
            f"for {reference_type.value} {reference_id or ''}"
        )
        return slices

    async def write_off_from_batch(
        self,
        batch_id: int,
        quantity: Number,
        reference_type: ConsumptionReference,
        reference_id: Optional[int] = None,
        consumed_at: Optional[int] = None,
    ) -> BatchSlice:
        """
        Remove `quantity` from one named batch, bypassing FIFO order.

        Used for wastage found on delivery, which belongs to the batch it
        arrived with rather than the oldest stock on hand.
        """
        quantity = to_quantity(quantity)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero")

        result = await self.db.execute(
            select(InventoryBatch)
            .where(and_(InventoryBatch.id == batch_id, InventoryBatch.business_id == self.business_id))
            .with_for_update()
        )
        batch = result.scalar_one_or_none()
        if not batch:
            raise NotFoundError(f"Batch {batch_id} not found")
        if batch.quantity_remaining < quantity:
            raise InsufficientStockError(
                f"Insufficient stock in batch {batch.id}: requested {quantity}, available {batch.quantity_remaining}"
            )

        item = await self.get_item(batch.item_id, lock=True)
        piece = BatchSlice(batch_id=batch.id, quantity=quantity, unit_cost=batch.buy_price_per_unit)
        await self._apply_slices(item, [batch], [piece], reference_type, reference_id, consumed_at)

        logger.info(f"🗑️ Wrote off {quantity} of item {item.id} from batch {batch.id}")
        return piece

    async def _apply_slices(
        self,
        item: Item,
        batches: Sequence[InventoryBatch],
        slices: Sequence[BatchSlice],
        reference_type: ConsumptionReference,
        reference_id: Optional[int],
        consumed_at: Optional[int],
    ) -> None:
        by_id = {batch.id: batch for batch in batches}
        moment = consumed_at if consumed_at is not None else now_epoch()
        for piece in slices:
            batch = by_id[piece.batch_id]
            batch.quantity_remaining = batch.quantity_remaining - piece.quantity
            self.db.add(BatchConsumption(
                business_id=self.business_id,
                item_id=item.id,
                batch_id=piece.batch_id,
                quantity=piece.quantity,
                unit_cost=piece.unit_cost,
                reference_type=reference_type,
                reference_id=reference_id,
                consumed_at=moment,
            ))

        await self.db.flush()
        await self.sync_item_stock(item)

    async def sync_item_stock(self, item: Item) -> Decimal:
        """Recompute the denormalised current_stock from the ledger."""
        stock = await self.valued_stock(item.id)
        item.current_stock = stock.quantity
        await self.db.flush()
        return stock.quantity

    # ------------------------------------------------------------------ reads

    async def cost_of_goods(self, item_id: int, quantity: Number) -> Decimal:
        """What `consume` would charge for `quantity`, without touching the ledger."""
        quantity = to_quantity(quantity)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero")
        await self.get_item(item_id)
        batches = await self.get_batches(item_id, open_only=True)
        return sum((piece.cost for piece in plan_fifo(batches, quantity)), ZERO)

    async def valued_stock(self, item_id: int) -> ValuedStock:
        batches = await self.get_batches(item_id, open_only=True)
        return value_batches(batches)

    async def latest_unit_cost(self, item_id: int) -> Optional[Decimal]:
        result = await self.db.execute(
            select(InventoryBatch.buy_price_per_unit)
            .where(
                and_(InventoryBatch.item_id == item_id, InventoryBatch.business_id == self.business_id)
            )
            .order_by(InventoryBatch.received_at.desc(), InventoryBatch.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def current_buy_price(self, item_id: int) -> Decimal:
        return resolve_buy_price(await self.get_batches(item_id))

    async def stock_at(self, item_id: int, timestamp: int) -> ValuedStock:
        batches = await self.get_batches(item_id)
        consumptions = await self.get_consumptions_for_items([item_id], until=timestamp)
        return reconstruct_at(batches, consumptions[item_id], timestamp)

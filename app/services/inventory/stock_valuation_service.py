"""
Stock valuation and growth over time.

For every sellable item the batch ledger is read twice: as it stood at the
start of the period and as it stands now. Stock is valued at cost
(current buy price) and at potential revenue (current sell price); the two
are reported side by side and never mixed.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.config import settings
from app.models.inventory.inventory_batch import InventoryBatch
from app.models.inventory.item import Item
from app.models.shared.enums import StockTrend, Trajectory
from app.services.inventory.batch_ledger_service import (
    BatchLedgerService,
    ValuedStock,
    fifo_order,
    reconstruct_at,
    resolve_buy_price,
    value_batches,
)
from app.services.inventory.item_service import refresh_sell_prices
from app.services.inventory.variant_hierarchy import variant_display_name
from app.utils.epoch import SECONDS_PER_DAY, now_epoch
from app.utils.validators.validation_utils import ZERO

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def classify_trend(initial: Decimal, current: Decimal, threshold: Optional[Decimal] = None) -> StockTrend:
    if threshold is None:
        threshold = Decimal(str(settings.STABLE_TREND_THRESHOLD))
    if initial == 0 and current > 0:
        return StockTrend.NEW
    if abs(current - initial) / max(initial, Decimal(1)) < threshold:
        return StockTrend.STABLE
    if current > initial:
        return StockTrend.GROWING
    return StockTrend.SHRINKING


def change_percent(initial: Decimal, current: Decimal) -> Optional[Decimal]:
    """Relative change, undefined (None) without a starting quantity"""
    if initial == 0:
        return None
    return (current - initial) / initial * HUNDRED


def classify_trajectory(change: Optional[Decimal], items_with_data: int) -> Trajectory:
    if items_with_data == 0:
        return Trajectory.NEW
    limit = Decimal(str(settings.TRAJECTORY_CHANGE_PERCENT))
    if change is not None and change > limit:
        return Trajectory.EXPANDING
    if change is not None and change < -limit:
        return Trajectory.DECLINING
    return Trajectory.STABLE


@dataclass(frozen=True)
class ItemValuation:
    item: Item
    display_name: str
    initial: ValuedStock
    current: ValuedStock
    current_buy_price: Decimal
    first_batch_date: Optional[int]
    total_ever_stocked: Decimal

    @property
    def initial_stock(self) -> Decimal:
        return self.initial.quantity

    @property
    def current_stock(self) -> Decimal:
        return self.current.quantity

    @property
    def stock_change(self) -> Decimal:
        return self.current_stock - self.initial_stock

    @property
    def stock_change_percent(self) -> Optional[Decimal]:
        return change_percent(self.initial_stock, self.current_stock)

    @property
    def initial_value(self) -> Decimal:
        return self.initial.value

    @property
    def stock_value(self) -> Decimal:
        return self.current_stock * self.current_buy_price

    @property
    def sales_value(self) -> Decimal:
        return self.current_stock * self.item.current_sell_price

    @property
    def value_change(self) -> Decimal:
        return self.sales_value - self.stock_value

    @property
    def value_change_percent(self) -> Optional[Decimal]:
        if self.stock_value == 0:
            return None
        return self.value_change / self.stock_value * HUNDRED

    @property
    def trend(self) -> StockTrend:
        return classify_trend(self.initial_stock, self.current_stock)


def value_item(
    item: Item,
    batches: Sequence[InventoryBatch],
    consumptions: Sequence,
    start: Optional[int],
    display_name: str,
) -> ItemValuation:
    ordered = fifo_order(batches)
    first_batch_date = ordered[0].received_at if ordered else None
    at = start if start is not None else first_batch_date
    initial = reconstruct_at(ordered, consumptions, at) if at is not None else ValuedStock(ZERO, ZERO)
    return ItemValuation(
        item=item,
        display_name=display_name,
        initial=initial,
        current=value_batches(ordered),
        current_buy_price=resolve_buy_price(ordered),
        first_batch_date=first_batch_date,
        total_ever_stocked=sum((b.initial_quantity for b in ordered), ZERO),
    )


class StockValuationService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id
        self.ledger = BatchLedgerService(db, business_id)

    async def _sellable_items(self) -> List[Item]:
        """Active variants and standalone items; parents never hold stock"""
        parents = select(Item.parent_item_id).where(and_(
            Item.business_id == self.business_id,
            Item.active == True,
            Item.parent_item_id.isnot(None),
        ))
        result = await self.db.execute(
            select(Item)
            .options(selectinload(Item.parent), selectinload(Item.category))
            .where(and_(
                Item.business_id == self.business_id,
                Item.active == True,
                Item.id.notin_(parents),
            ))
            .order_by(Item.name, Item.id)
        )
        return result.scalars().all()

    async def valuations(self, start: Optional[int] = None) -> List[ItemValuation]:
        items = await self._sellable_items()
        await refresh_sell_prices(self.db, items)
        item_ids = [item.id for item in items]
        batches = await self.ledger.get_batches_for_items(item_ids)
        consumptions = await self.ledger.get_consumptions_for_items(item_ids, until=start)

        valuations = []
        for item in items:
            name = variant_display_name(item.parent.name, item.variant_name) if item.parent else item.name
            valuations.append(value_item(item, batches[item.id], consumptions[item.id], start, name))
        return valuations

    async def first_activity_date(self) -> Optional[int]:
        result = await self.db.execute(
            select(func.min(InventoryBatch.received_at)).where(InventoryBatch.business_id == self.business_id)
        )
        return result.scalar()

    async def analysis(self, start: Optional[int] = None, now: Optional[int] = None) -> Dict:
        valuations = await self.valuations(start)
        now = now if now is not None else now_epoch()
        first_activity = await self.first_activity_date()

        initial_stock = current_stock = initial_value = current_value = ZERO
        with_data = 0
        breakdown = {trend: 0 for trend in StockTrend}
        for valuation in valuations:
            breakdown[valuation.trend] += 1
            if valuation.initial_stock > 0:
                with_data += 1
                initial_stock += valuation.initial_stock
                initial_value += valuation.initial_value
            current_stock += valuation.current_stock
            current_value += valuation.stock_value

        overall_change = change_percent(initial_stock, current_stock)
        trajectory = classify_trajectory(overall_change, with_data)
        limit = settings.RANKING_LIMIT

        growing = [v for v in valuations if v.trend == StockTrend.GROWING and v.stock_change_percent is not None]
        shrinking = [v for v in valuations if v.trend == StockTrend.SHRINKING]
        new_items = [v for v in valuations if v.trend == StockTrend.NEW]

        logger.debug(f"Stock analysis for business {self.business_id}: {len(valuations)} item(s), {trajectory.value}")
        return {
            "summary": {
                "first_activity_date": first_activity,
                "days_since_start": (now - first_activity) // SECONDS_PER_DAY if first_activity else 0,
                "trajectory": trajectory,
                "total_items": len(valuations),
                "items_with_data": with_data,
                "new_items_count": breakdown[StockTrend.NEW],
            },
            "stock_growth": {
                "initial_total_stock": initial_stock,
                "current_total_stock": current_stock,
                "stock_change": current_stock - initial_stock,
                "stock_change_percent": overall_change,
                "initial_total_value": initial_value,
                "current_total_value": current_value,
                "value_change": current_value - initial_value,
                "value_change_percent": change_percent(initial_value, current_value),
            },
            "trend_breakdown": {trend.value: count for trend, count in breakdown.items()},
            "items": sorted(valuations, key=lambda v: v.stock_change, reverse=True),
            "top_growing": sorted(growing, key=lambda v: v.stock_change_percent, reverse=True)[:limit],
            "shrinking": sorted(shrinking, key=lambda v: v.stock_change_percent or ZERO)[:limit],
            "new_items": new_items[:limit],
        }

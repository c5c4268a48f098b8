"""
Profit over a period: gross figures from FIFO-costed sale lines, net figures
after scaling the normalised daily operating cost to the period length.

Break-even sales only exists for a positive margin. For a zero or negative
margin it is reported as None and never coerced to 0 or infinity.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.finance.expense import Expense
from app.models.inventory.batch_consumption import BatchConsumption
from app.models.inventory.item import Item
from app.models.inventory.stock_adjustment import StockAdjustment
from app.models.sales.sale import Sale, SaleItem
from app.models.shared.enums import LOSS_REASONS, ConsumptionReference, SaleStatus
from app.services.finance import expense_normalizer
from app.utils.epoch import inclusive_day_count, local_day, months_ago_epoch, now_epoch
from app.utils.validators.validation_utils import ZERO

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def period_days(start: int, end: int) -> int:
    if start is None or end is None:
        raise ValidationError("Start and end timestamps are required")
    if end < start:
        raise ValidationError("End must not be before start")
    return inclusive_day_count(start, end)


def margin_of(profit: Decimal, sales: Decimal) -> Decimal:
    return profit / sales if sales > 0 else ZERO


def break_even_sales(scaled_expense: Decimal, margin: Decimal) -> Optional[Decimal]:
    """Sales needed to cover the scaled expense at the given margin; None when no margin"""
    if margin > 0:
        return scaled_expense / margin
    return None


def is_low_margin(profit: Decimal, sales: Decimal, threshold_percent: Decimal = None) -> bool:
    threshold = Decimal(str(settings.LOW_MARGIN_PERCENT)) if threshold_percent is None else threshold_percent
    if profit < 0:
        return True
    return sales > 0 and profit / sales * HUNDRED < threshold


@dataclass
class ItemProfit:
    item_id: int
    item_name: str
    total_profit: Decimal = ZERO
    total_sales: Decimal = ZERO
    total_cost: Decimal = ZERO
    quantity_sold: Decimal = ZERO
    variant_name: Optional[str] = None
    parent_name: Optional[str] = None
    is_parent: bool = False
    variant_ids: set = field(default_factory=set)

    @property
    def variant_count(self) -> int:
        return len(self.variant_ids)

    @property
    def margin_percent(self) -> Optional[Decimal]:
        return self.total_profit / self.total_sales * HUNDRED if self.total_sales > 0 else None


@dataclass(frozen=True)
class ProfitSummary:
    gross_sales: Decimal
    gross_cost: Decimal
    period_days: int
    daily_operating_cost: Decimal

    @property
    def gross_profit(self) -> Decimal:
        return self.gross_sales - self.gross_cost

    @property
    def margin(self) -> Decimal:
        return margin_of(self.gross_profit, self.gross_sales)

    @property
    def scaled_expense(self) -> Decimal:
        return self.daily_operating_cost * self.period_days

    @property
    def net_profit(self) -> Decimal:
        return self.gross_profit - self.scaled_expense

    @property
    def break_even_sales(self) -> Optional[Decimal]:
        return break_even_sales(self.scaled_expense, self.margin)


def rank_items(
    items: Sequence[ItemProfit],
    limit: Optional[int] = None,
) -> Tuple[List[ItemProfit], List[ItemProfit], List[ItemProfit]]:
    """Top earners, least profitable, and everything under the low-margin line"""
    limit = settings.RANKING_LIMIT if limit is None else limit
    top = sorted(items, key=lambda i: i.total_profit, reverse=True)[:limit]
    least = sorted(items, key=lambda i: i.total_profit)[:limit]
    low = [i for i in items if is_low_margin(i.total_profit, i.total_sales)]
    return top, least, low


@dataclass
class DailyProfit:
    date: str
    revenue: Decimal = ZERO
    cost: Decimal = ZERO
    stock_loss: Decimal = ZERO
    transactions: int = 0

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost - self.stock_loss


def daily_stats(days: Iterable[DailyProfit]) -> Dict[str, Decimal]:
    max_profit = ZERO
    min_profit = ZERO
    active = profitable = losing = 0
    for day in days:
        active += 1
        profit = day.profit
        max_profit = max(max_profit, profit)
        min_profit = min(min_profit, profit)
        if profit > 0:
            profitable += 1
        elif profit < 0:
            losing += 1
    return {
        "max_profit": max_profit,
        "min_profit": min_profit,
        "total_days_with_activity": active,
        "profitable_days": profitable,
        "loss_days": losing,
        "neutral_days": active - profitable - losing,
    }


def fold_item_profits(lines: Iterable, group_by_parent: bool = False) -> List[ItemProfit]:
    """Per-item profit from sale lines, variants optionally folded into their parent"""
    grouped: Dict[int, ItemProfit] = OrderedDict()
    for line in lines:
        item_id, qty, sell, buy, _sale_id, _date, name, variant_name, parent_id, parent_name = line
        if group_by_parent and parent_id:
            key = parent_id
            entry = grouped.get(key) or ItemProfit(item_id=parent_id, item_name=parent_name, is_parent=True)
        else:
            key = item_id
            entry = grouped.get(key) or ItemProfit(
                item_id=item_id,
                item_name=name,
                variant_name=variant_name,
                parent_name=parent_name,
            )
        grouped[key] = entry
        entry.variant_ids.add(item_id)
        entry.total_sales += qty * sell
        entry.total_cost += qty * buy
        entry.total_profit += qty * (sell - buy)
        entry.quantity_sold += qty

    rows = [p for p in grouped.values() if p.total_profit != 0 or p.total_sales != 0]
    return sorted(rows, key=lambda p: p.total_profit, reverse=True)


class ProfitabilityService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id

    async def _sale_lines(self, start: int, end: int):
        parent = aliased(Item)
        result = await self.db.execute(
            select(
                SaleItem.item_id,
                SaleItem.quantity_sold,
                SaleItem.sell_price_per_unit,
                SaleItem.buy_price_per_unit,
                Sale.id,
                Sale.sale_date,
                Item.name,
                Item.variant_name,
                Item.parent_item_id,
                parent.name,
            )
            .join(Sale, SaleItem.sale_id == Sale.id)
            .join(Item, SaleItem.item_id == Item.id)
            .outerjoin(parent, Item.parent_item_id == parent.id)
            .where(and_(
                Sale.business_id == self.business_id,
                Sale.status == SaleStatus.COMPLETED,
                Sale.sale_date >= start,
                Sale.sale_date <= end,
            ))
        )
        return result.all()

    async def item_profits(self, start: int, end: int, group_by_parent: bool = False) -> List[ItemProfit]:
        return fold_item_profits(await self._sale_lines(start, end), group_by_parent)

    async def operating_cost(self, days: int, period_end: Optional[int] = None):
        result = await self.db.execute(
            select(Expense).where(and_(Expense.business_id == self.business_id, Expense.active == True))
        )
        return expense_normalizer.aggregate(result.scalars().all(), period_days=days, period_end=period_end)

    async def profit_report(self, start: int, end: int, group_by_parent: bool = False) -> Dict:
        days = period_days(start, end)
        lines = await self._sale_lines(start, end)
        items = fold_item_profits(lines, group_by_parent)
        cost = await self.operating_cost(days, period_end=end)

        gross_sales = sum((qty * sell for _, qty, sell, *_rest in lines), ZERO)
        gross_cost = sum((qty * buy for _, qty, _s, buy, *_rest in lines), ZERO)
        summary = ProfitSummary(
            gross_sales=gross_sales,
            gross_cost=gross_cost,
            period_days=days,
            daily_operating_cost=cost.daily_operating_cost,
        )
        top, least, low = rank_items(items)

        quantity = sum((line[1] for line in lines), ZERO)
        transactions = len({line[4] for line in lines})
        break_even = summary.break_even_sales
        logger.debug(
            f"Profit {start}..{end} for business {self.business_id}: "
            f"gross {summary.gross_profit}, net {summary.net_profit}"
        )
        return {
            "total_profit": summary.gross_profit,
            "total_sales": summary.gross_sales,
            "total_cost": summary.gross_cost,
            "profit_margin": summary.margin,
            "total_quantity_sold": quantity,
            "total_transactions": transactions,
            "unique_items_sold": len({line[0] for line in lines}),
            "average_items_per_sale": quantity / transactions if transactions else ZERO,
            "period_days": days,
            "daily_operating_cost": cost.daily_operating_cost,
            "fixed_daily_cost": cost.fixed_daily_cost,
            "variable_daily_cost": cost.variable_daily_cost,
            "scaled_expense": summary.scaled_expense,
            "net_profit": summary.net_profit,
            "break_even_sales": break_even,
            "break_even_defined": break_even is not None,
            "item_profits": items,
            "top_profit_items": top,
            "least_profitable_items": least,
            "low_margin_items": low,
        }

    async def _stock_losses(self, start: int, end: int) -> List[Tuple[int, Decimal]]:
        """(created_at, cost) of every loss adjustment, costed at the batches it consumed"""
        result = await self.db.execute(
            select(StockAdjustment.created_at, BatchConsumption.quantity, BatchConsumption.unit_cost)
            .join(
                BatchConsumption,
                and_(
                    BatchConsumption.reference_type == ConsumptionReference.ADJUSTMENT,
                    BatchConsumption.reference_id == StockAdjustment.id,
                ),
            )
            .where(and_(
                StockAdjustment.business_id == self.business_id,
                StockAdjustment.difference < 0,
                StockAdjustment.reason.in_(LOSS_REASONS),
                StockAdjustment.created_at >= start,
                StockAdjustment.created_at <= end,
            ))
        )
        return [(created_at, qty * unit_cost) for created_at, qty, unit_cost in result.all()]

    async def daily_profit(self, months: int = 12, tz_offset_minutes: int = 0, now: Optional[int] = None) -> Dict:
        """Per local day revenue, COGS and stock losses over the last `months` months"""
        if months < 1:
            raise ValidationError("months must be at least 1")
        end = now if now is not None else now_epoch()
        start = months_ago_epoch(months, reference=end)

        days: Dict[str, DailyProfit] = {}

        def bucket(timestamp: int) -> DailyProfit:
            key = local_day(timestamp, tz_offset_minutes).isoformat()
            if key not in days:
                days[key] = DailyProfit(date=key)
            return days[key]

        sales_per_day: Dict[str, set] = {}
        for _item_id, qty, sell, buy, sale_id, sale_date, *_rest in await self._sale_lines(start, end):
            day = bucket(sale_date)
            day.revenue += qty * sell
            day.cost += qty * buy
            sales_per_day.setdefault(day.date, set()).add(sale_id)

        for created_at, loss in await self._stock_losses(start, end):
            bucket(created_at).stock_loss += loss

        for key, sale_ids in sales_per_day.items():
            days[key].transactions = len(sale_ids)

        ordered = [days[key] for key in sorted(days)]
        return {
            "daily_profits": ordered,
            "stats": daily_stats(ordered),
            "date_range": {
                "start": local_day(start, tz_offset_minutes).isoformat(),
                "end": local_day(end, tz_offset_minutes).isoformat(),
            },
        }

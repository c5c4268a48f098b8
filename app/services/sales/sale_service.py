import logging
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.exceptions import InvalidQuantityError, NotFoundError, ValidationError
from app.models.sales.sale import Sale, SaleItem
from app.models.shared.enums import ConsumptionReference, SaleStatus
from app.services.inventory.batch_ledger_service import BatchLedgerService
from app.services.inventory.item_service import refresh_sell_prices
from app.utils.epoch import now_epoch
from app.utils.validators.validation_utils import ZERO, to_money, to_quantity

logger = logging.getLogger(__name__)


class SaleService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id
        self.ledger = BatchLedgerService(db, business_id)

    async def record_sale(self, lines: Sequence[Dict[str, Any]], user_id: int) -> Sale:
        """
        Record a completed sale, costing every line against the batch ledger.

        Each line is consumed oldest batch first and stored as one sale item per
        batch touched, so COGS is exact per batch. Any shortfall rejects the
        whole sale. Flushes only; the caller commits.
        """
        if not lines:
            raise ValidationError("Items are required")

        parsed = []
        for line in lines:
            quantity = to_quantity(line.get("quantity"))
            if quantity <= 0:
                raise InvalidQuantityError("Quantity must be greater than 0")
            price = line.get("price")
            if price is not None:
                price = to_money(price, "price")
                if price < 0:
                    raise ValidationError("Price cannot be negative")
            parsed.append((line.get("item_id"), quantity, price))

        now = now_epoch()
        sale = Sale(
            business_id=self.business_id,
            user_id=user_id,
            total_amount=ZERO,
            status=SaleStatus.COMPLETED,
            sale_date=now,
            items=[],
        )
        self.db.add(sale)
        await self.db.flush()

        total = ZERO
        for item_id, quantity, price in parsed:
            item = await self.ledger.get_item(item_id, lock=True)
            if await self.ledger.has_variants(item.id):
                raise ValidationError(f"'{item.name}' is a parent item; sell one of its variants")
            if price is None:
                await refresh_sell_prices(self.db, [item], at=now)
            unit_price = price if price is not None else item.current_sell_price

            slices = await self.ledger.consume(
                item.id,
                quantity,
                reference_type=ConsumptionReference.SALE,
                reference_id=sale.id,
                consumed_at=now,
            )
            for piece in slices:
                sale.items.append(SaleItem(
                    item_id=item.id,
                    inventory_batch_id=piece.batch_id,
                    quantity_sold=piece.quantity,
                    sell_price_per_unit=unit_price,
                    buy_price_per_unit=piece.unit_cost,
                    profit=to_money((unit_price - piece.unit_cost) * piece.quantity),
                ))
            total += unit_price * quantity

        sale.total_amount = to_money(total)
        await self.db.flush()

        logger.info(f"🧾 Sale {sale.id} recorded by user {user_id}: {len(parsed)} line(s), total {total}")
        return sale

    async def get_sale(self, sale_id: int) -> Sale:
        result = await self.db.execute(
            select(Sale)
            .options(selectinload(Sale.items))
            .where(and_(Sale.id == sale_id, Sale.business_id == self.business_id))
        )
        sale = result.scalar_one_or_none()
        if not sale:
            raise NotFoundError("Sale not found")
        return sale

    async def get_sales(
        self,
        start: Optional[int] = None,
        end: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Sale]:
        conditions = [Sale.business_id == self.business_id]
        if start is not None:
            conditions.append(Sale.sale_date >= start)
        if end is not None:
            conditions.append(Sale.sale_date <= end)
        result = await self.db.execute(
            select(Sale)
            .options(selectinload(Sale.items))
            .where(and_(*conditions))
            .order_by(desc(Sale.sale_date), desc(Sale.id))
            .offset(skip)
            .limit(limit)
        )
        return result.scalars().all()

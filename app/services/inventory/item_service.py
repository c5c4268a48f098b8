import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, desc, or_
from app.models.inventory.item import Item
from app.models.inventory.selling_price import SellingPrice
from app.models.shared.enums import UnitType
from app.schemas.inventory.item import ItemCreate, ItemPriceUpdate, ItemUpdate
from app.core.exceptions import NotFoundError, ValidationError
from app.services.inventory.batch_ledger_service import BatchLedgerService
from app.services.inventory.category_service import CategoryService
from app.services.inventory.variant_hierarchy import (
    filter_catalog,
    group,
    item_kind,
    validate_parent_reference,
    variant_display_name,
)
from app.utils.epoch import now_epoch
from app.utils.validators.validation_utils import ZERO, to_money, to_quantity

logger = logging.getLogger(__name__)


def display_name(item: Item) -> str:
    if item.parent_item_id and item.parent is not None:
        return variant_display_name(item.parent.name, item.variant_name)
    return item.name


def item_view(item: Item, has_variants: bool) -> Dict[str, Any]:
    """Flat representation with the computed kind and display name"""
    return {
        "id": item.id,
        "category_id": item.category_id,
        "parent_item_id": item.parent_item_id,
        "name": item.name,
        "variant_name": item.variant_name,
        "display_name": display_name(item),
        "unit_type": item.unit_type,
        "kind": item_kind(item, has_variants),
        "current_stock": item.current_stock,
        "current_sell_price": item.current_sell_price,
        "min_stock_level": item.min_stock_level,
        "active": item.active,
        "created_at": item.created_at,
    }


async def effective_prices(db: AsyncSession, item_ids: Iterable[int], at: Optional[int] = None) -> Dict[int, Decimal]:
    """Newest price row per item whose effective time has been reached by `at`"""
    item_ids = list(item_ids)
    if not item_ids:
        return {}
    moment = at if at is not None else now_epoch()
    result = await db.execute(
        select(SellingPrice.item_id, SellingPrice.price)
        .where(and_(SellingPrice.item_id.in_(item_ids), SellingPrice.effective_from <= moment))
        .order_by(SellingPrice.item_id, SellingPrice.effective_from, SellingPrice.id)
    )
    prices = {}
    for item_id, price in result.all():
        prices[item_id] = price
    return prices


async def refresh_sell_prices(db: AsyncSession, items: Sequence[Item], at: Optional[int] = None) -> None:
    """
    Bring the cached current_sell_price up to date.

    A future-dated price row only takes effect once its time is reached, so
    the cache is re-resolved wherever the price is read. Pass sellable items
    only: a parent keeps the history from before it had variants but is
    never priced.
    """
    prices = await effective_prices(db, (item.id for item in items), at)
    for item in items:
        price = prices.get(item.id)
        if price is not None and price != item.current_sell_price:
            item.current_sell_price = price


def _stock_level(value) -> Optional[Decimal]:
    return None if value is None else to_quantity(value, "min_stock_level")


class ItemService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id
        self.ledger = BatchLedgerService(db, business_id)

    async def create_item(self, item_data: ItemCreate, current_user_id: int) -> Item:
        """
        Create a standalone item, a parent container or a variant.

        Opening stock goes through the ledger as the item's first batch, so
        this flushes only and the caller commits.
        """
        name = (item_data.name or "").strip()
        if not name:
            raise ValidationError("Name is required")

        parent = None
        category_id = item_data.category_id
        if item_data.parent_item_id:
            if item_data.is_parent:
                raise ValidationError("A variant cannot also be a parent item")
            parent = await self._get_parent(item_data.parent_item_id)
            if not (item_data.variant_name or "").strip():
                raise ValidationError("Variant name is required")
            # Variants always live in their parent's category
            category_id = parent.category_id

        if not category_id:
            raise ValidationError("Category is required")
        await CategoryService(self.db, self.business_id).require_category(category_id)

        stock = to_quantity(item_data.initial_stock or ZERO, "initial_stock")
        if item_data.is_parent:
            if stock > 0:
                raise ValidationError("Parent items cannot hold stock")
            unit_type = item_data.unit_type or UnitType.PIECE
            price = ZERO
        else:
            if item_data.unit_type is None or item_data.sell_price is None:
                raise ValidationError("Missing required fields")
            price = to_money(item_data.sell_price, "sell_price")
            if price <= 0:
                raise ValidationError("Sell price must be greater than 0")
            if stock > 0 and (not item_data.buy_price or to_money(item_data.buy_price, "buy_price") <= 0):
                raise ValidationError("Buy price is required when setting initial stock")
            unit_type = item_data.unit_type

        if parent is not None:
            await self._prepare_parent(parent)

        now = now_epoch()
        item = Item(
            business_id=self.business_id,
            category_id=category_id,
            parent=parent,
            name=name,
            variant_name=item_data.variant_name.strip() if parent else None,
            unit_type=unit_type,
            current_stock=ZERO,
            current_sell_price=price,
            min_stock_level=None if item_data.is_parent else _stock_level(item_data.min_stock_level),
            active=True,
            created_at=now,
        )
        self.db.add(item)
        await self.db.flush()

        if price > 0:
            self.db.add(SellingPrice(item_id=item.id, price=price, effective_from=now, set_by=current_user_id))

        if stock > 0:
            await self.ledger.receive(
                item.id,
                stock,
                item_data.buy_price,
                received_at=now,
                source_reference="initial stock",
            )

        await self.db.flush()
        logger.info(f"🆕 Created item {item.id} '{name}' for business {self.business_id}")
        return await self.get_item(item.id)

    async def _get_parent(self, parent_item_id: int) -> Item:
        result = await self.db.execute(
            select(Item).where(and_(
                Item.id == parent_item_id,
                Item.business_id == self.business_id,
                Item.active == True,
            ))
        )
        parent = result.scalar_one_or_none()
        if not parent:
            raise NotFoundError("Parent item not found")
        validate_parent_reference(parent)
        return parent

    async def _prepare_parent(self, parent: Item):
        """A parent is never sold directly, so it cannot keep stock or a price once it has variants"""
        stock = await self.ledger.valued_stock(parent.id)
        if stock.quantity > 0:
            raise ValidationError("Cannot add variants to an item that holds stock")
        parent.current_sell_price = ZERO
        parent.current_stock = ZERO

    def _base_query(self):
        return select(Item).options(selectinload(Item.parent)).where(
            and_(Item.business_id == self.business_id, Item.active == True)
        )

    async def get_item(self, item_id: int) -> Item:
        result = await self.db.execute(self._base_query().where(Item.id == item_id))
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Item not found")
        return item

    async def parent_ids_with_variants(self) -> set:
        result = await self.db.execute(
            select(Item.parent_item_id).where(and_(
                Item.business_id == self.business_id,
                Item.active == True,
                Item.parent_item_id.isnot(None),
            )).distinct()
        )
        return set(result.scalars().all())

    async def get_items(
        self,
        category_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        search: Optional[str] = None,
        all_items: bool = False,
        parents_only: bool = False,
        sellable_only: bool = False,
    ) -> List[Item]:
        """Catalog listing with the POS filters"""
        query = self._base_query()

        if parent_id:
            result = await self.db.execute(
                query.where(Item.parent_item_id == parent_id).order_by(Item.variant_name, Item.unit_type)
            )
            return result.scalars().all()

        if search:
            term = f"%{search}%"
            result = await self.db.execute(
                query.where(or_(Item.name.ilike(term), Item.variant_name.ilike(term))).order_by(Item.name)
            )
            return result.scalars().all()

        if not all_items:
            if not category_id:
                raise ValidationError("categoryId is required")
            query = query.where(Item.category_id == category_id)

        result = await self.db.execute(query.order_by(Item.name, Item.id))
        items = result.scalars().all()
        return filter_catalog(
            items,
            parents_only=parents_only,
            sellable_only=sellable_only,
            with_variants=await self.parent_ids_with_variants(),
        )

    async def get_grouped_items(self, category_id: Optional[int] = None):
        query = self._base_query()
        if category_id:
            query = query.where(Item.category_id == category_id)
        result = await self.db.execute(query.order_by(Item.name, Item.id))
        grouped = group(result.scalars().all())

        sellable = []
        for entry in grouped:
            sellable.extend(entry.variants if entry.is_parent else [entry.item])
        await refresh_sell_prices(self.db, sellable)
        return grouped

    async def describe(self, items: Sequence[Item]) -> List[Dict[str, Any]]:
        with_variants = await self.parent_ids_with_variants()
        await refresh_sell_prices(self.db, [item for item in items if item.id not in with_variants])
        return [item_view(item, item.id in with_variants) for item in items]

    async def update_item(self, item_id: int, item_data: ItemUpdate, current_user_id: int) -> Item:
        """
        Partial update of catalog fields.

        Parents only take a name and category, and moving a parent moves its
        variants with it. A changed sell price is appended to the price
        history rather than overwritten. Flushes only.
        """
        item = await self.get_item(item_id)
        updates = item_data.model_dump(exclude_unset=True)
        is_parent = await self.ledger.has_variants(item.id)

        if is_parent and any(updates.get(f) is not None for f in ("unit_type", "sell_price", "min_stock_level")):
            raise ValidationError("Parent items only take a name and category")

        if "name" in updates:
            name = (updates["name"] or "").strip()
            if not name:
                raise ValidationError("Name cannot be empty")
            item.name = name

        if "variant_name" in updates:
            if not item.parent_item_id:
                raise ValidationError("Only variants have a variant name")
            variant_name = (updates["variant_name"] or "").strip()
            if not variant_name:
                raise ValidationError("Variant name is required")
            item.variant_name = variant_name

        category_id = updates.get("category_id")
        if category_id is not None and category_id != item.category_id:
            if item.parent_item_id:
                raise ValidationError("Variants always live in their parent's category")
            await CategoryService(self.db, self.business_id).require_category(category_id)
            item.category_id = category_id
            if is_parent:
                for variant in await self.get_items(parent_id=item.id):
                    variant.category_id = category_id

        if updates.get("unit_type") is not None:
            item.unit_type = updates["unit_type"]
        if "min_stock_level" in updates:
            level = _stock_level(updates["min_stock_level"])
            if level is not None and level < 0:
                raise ValidationError("Minimum stock level cannot be negative")
            item.min_stock_level = level

        if updates.get("sell_price") is not None:
            price = to_money(updates["sell_price"], "sell_price")
            if price <= 0:
                raise ValidationError("Sell price must be greater than 0")
            if price != item.current_sell_price:
                now = now_epoch()
                await self._append_price(item, price, now, current_user_id, now)

        await self.db.flush()
        logger.info(f"✏️ Updated item {item.id} '{item.name}' ({', '.join(sorted(updates)) or 'no changes'})")
        return await self.get_item(item.id)

    async def set_price(self, item_id: int, price_data: ItemPriceUpdate, current_user_id: int) -> SellingPrice:
        """Append to the price history; the item's cached price follows the newest effective row"""
        price = None if price_data.price is None else to_money(price_data.price, "price")
        if price is None or price <= 0:
            raise ValidationError("Price must be greater than 0")

        item = await self.get_item(item_id)
        if await self.ledger.has_variants(item.id):
            raise ValidationError("Parent items are not sellable and cannot carry a price")

        now = now_epoch()
        entry = await self._append_price(item, price, price_data.effective_from or now, current_user_id, now)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def _append_price(self, item: Item, price: Decimal, effective_from: int, user_id: int, now: int) -> SellingPrice:
        entry = SellingPrice(item_id=item.id, price=price, effective_from=effective_from, set_by=user_id)
        self.db.add(entry)
        await self.db.flush()
        await refresh_sell_prices(self.db, [item], at=now)
        return entry

    async def current_price(self, item_id: int, at: Optional[int] = None) -> Decimal:
        prices = await effective_prices(self.db, [item_id], at)
        return prices.get(item_id, ZERO)

    async def get_price_history(self, item_id: int) -> List[SellingPrice]:
        item = await self.get_item(item_id)
        result = await self.db.execute(
            select(SellingPrice)
            .where(SellingPrice.item_id == item.id)
            .order_by(desc(SellingPrice.effective_from), desc(SellingPrice.id))
        )
        return result.scalars().all()

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.api.dependencies import get_actor_id, get_business_id
from app.core.database import get_async_session
from app.core.transaction import run_ledger_transaction
from app.schemas.common.response import ApiResponse
from app.schemas.inventory.item import GroupedItem, Item, ItemCreate, ItemPriceUpdate, ItemUpdate, SellingPrice
from app.services.inventory.item_service import ItemService, item_view

router = APIRouter()

@router.get("", response_model=ApiResponse[List[Item]])
async def get_items(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    parent_id: Optional[int] = Query(None, alias="parentId"),
    search: Optional[str] = Query(None),
    all_items: bool = Query(False, alias="all"),
    parents_only: bool = Query(False, alias="parentsOnly"),
    sellable_only: bool = Query(False, alias="sellableOnly"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Catalog listing; categoryId is required unless all, search or parentId is given"""
    service = ItemService(db, business_id)
    items = await service.get_items(
        category_id=category_id,
        parent_id=parent_id,
        search=search,
        all_items=all_items,
        parents_only=parents_only,
        sellable_only=sellable_only,
    )
    return {"success": True, "data": await service.describe(items)}

@router.get("/grouped", response_model=ApiResponse[List[GroupedItem]])
async def get_grouped_items(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Parents with their variants nested, followed by standalone items"""
    service = ItemService(db, business_id)
    grouped = await service.get_grouped_items(category_id)
    data = [
        {
            "item": item_view(entry.item, entry.is_parent),
            "is_parent": entry.is_parent,
            "variant_count": entry.variant_count,
            "total_variant_stock": entry.total_variant_stock,
            "variants": [item_view(variant, False) for variant in entry.variants],
        }
        for entry in grouped
    ]
    return {"success": True, "data": data}

@router.post("", response_model=ApiResponse[Item], status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Create a standalone item, a parent or a variant; opening stock becomes the first batch"""
    service = ItemService(db, business_id)
    item = await run_ledger_transaction(db, lambda: service.create_item(item_data, actor_id))
    return {
        "success": True,
        "message": "Item created successfully",
        "data": (await service.describe([item]))[0],
    }

@router.get("/{item_id}", response_model=ApiResponse[Item])
async def get_item(
    item_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Get item by ID"""
    service = ItemService(db, business_id)
    item = await service.get_item(item_id)
    return {"success": True, "data": (await service.describe([item]))[0]}

@router.put("/{item_id}", response_model=ApiResponse[Item])
async def update_item(
    item_id: int,
    item_data: ItemUpdate,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Rename, recategorise or reprice an item"""
    service = ItemService(db, business_id)
    item = await run_ledger_transaction(db, lambda: service.update_item(item_id, item_data, actor_id))
    return {
        "success": True,
        "message": "Item updated successfully",
        "data": (await service.describe([item]))[0],
    }

@router.post("/{item_id}/price", response_model=ApiResponse[SellingPrice], status_code=status.HTTP_201_CREATED)
async def set_item_price(
    item_id: int,
    price_data: ItemPriceUpdate,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Append a selling price to the item's history"""
    service = ItemService(db, business_id)
    entry = await service.set_price(item_id, price_data, actor_id)
    return {"success": True, "message": "Price updated successfully", "data": entry}

@router.get("/{item_id}/prices", response_model=ApiResponse[List[SellingPrice]])
async def get_price_history(
    item_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Selling price history, newest first"""
    service = ItemService(db, business_id)
    return {"success": True, "data": await service.get_price_history(item_id)}

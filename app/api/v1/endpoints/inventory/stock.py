from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.api.dependencies import get_actor_id, get_business_id
from app.core.database import get_async_session
from app.core.transaction import run_ledger_transaction
from app.schemas.common.response import ApiResponse
from app.schemas.inventory.stock import (
    ItemBatches,
    StockAdjustment,
    StockAdjustRequest,
    StockAdjustResult,
    StockAnalysis,
    StockItem,
    StockReceiveRequest,
    StockReceiveResult,
    StockTakeRequest,
    StockTakeResult,
)
from app.services.inventory.batch_ledger_service import BatchLedgerService, resolve_buy_price, value_batches
from app.services.inventory.item_service import ItemService
from app.services.inventory.stock_adjustment_service import StockAdjustmentService
from app.services.inventory.stock_valuation_service import ItemValuation, StockValuationService

router = APIRouter()

def adjustment_view(adjustment) -> dict:
    return {
        "id": adjustment.id,
        "item_id": adjustment.item_id,
        "system_stock": adjustment.system_stock,
        "actual_stock": adjustment.actual_stock,
        "difference": adjustment.difference,
        "reason": adjustment.reason.value,
        "notes": adjustment.notes,
        "adjusted_by": adjustment.adjusted_by,
        "created_at": adjustment.created_at,
    }

def stock_item_view(valuation: ItemValuation) -> dict:
    item = valuation.item
    return {
        "id": item.id,
        "name": item.name,
        "display_name": valuation.display_name,
        "variant_name": item.variant_name,
        "parent_item_id": item.parent_item_id,
        "category_id": item.category_id,
        "category_name": item.category.name if item.category else None,
        "unit_type": item.unit_type,
        "current_stock": valuation.current_stock,
        "current_sell_price": item.current_sell_price,
        "current_buy_price": valuation.current_buy_price,
        "min_stock_level": item.min_stock_level,
        "first_batch_date": valuation.first_batch_date,
        "total_ever_stocked": valuation.total_ever_stocked,
        "initial_stock": valuation.initial_stock,
        "stock_change": valuation.stock_change,
        "stock_change_percent": valuation.stock_change_percent,
        "initial_value": valuation.initial_value,
        "stock_value": valuation.stock_value,
        "sales_value": valuation.sales_value,
        "value_change": valuation.value_change,
        "value_change_percent": valuation.value_change_percent,
        "trend": valuation.trend,
    }

async def _item_batches(ledger: BatchLedgerService, item_id: int) -> dict:
    batches = await ledger.get_batches(item_id)
    stock = value_batches(batches)
    return {
        "item_id": item_id,
        "quantity": stock.quantity,
        "value": stock.value,
        "current_buy_price": resolve_buy_price(batches),
        "batches": batches,
    }

@router.get("", response_model=ApiResponse[List[StockItem]])
async def get_stock(
    start: Optional[int] = Query(None, ge=0, description="Period start (unix seconds)"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Sellable items with stock valuation and trend since `start`"""
    service = StockValuationService(db, business_id)
    valuations = await service.valuations(start)
    return {"success": True, "data": [stock_item_view(v) for v in valuations]}

@router.get("/analysis", response_model=ApiResponse[StockAnalysis])
async def get_stock_analysis(
    start: Optional[int] = Query(None, ge=0),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Business-wide stock growth summary"""
    service = StockValuationService(db, business_id)
    analysis = await service.analysis(start)
    for key in ("items", "top_growing", "shrinking", "new_items"):
        analysis[key] = [stock_item_view(v) for v in analysis[key]]
    return {"success": True, "data": analysis}

@router.post("/adjust", response_model=ApiResponse[StockAdjustResult])
async def adjust_stock(
    adjust_data: StockAdjustRequest,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Manual increase or decrease through the batch ledger"""
    service = StockAdjustmentService(db, business_id)

    async def operation():
        return await service.adjust(
            adjust_data.item_id,
            adjust_data.adjustment_type,
            adjust_data.quantity,
            adjust_data.reason,
            adjust_data.notes,
            actor_id,
            unit_cost=adjust_data.unit_cost,
        )

    adjustment = await run_ledger_transaction(db, operation)
    item_service = ItemService(db, business_id)
    item = await item_service.get_item(adjustment.item_id)
    return {
        "success": True,
        "message": "Stock adjusted successfully",
        "data": {
            "item": (await item_service.describe([item]))[0],
            "adjustment": adjustment_view(adjustment),
        },
    }

@router.post("/take", response_model=ApiResponse[StockTakeResult])
async def stock_take(
    take_data: StockTakeRequest,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Reconcile physically counted quantities with the ledger"""
    service = StockAdjustmentService(db, business_id)
    entries = [entry.model_dump() for entry in take_data.items]

    results = await run_ledger_transaction(db, lambda: service.stock_take(entries, actor_id))
    lines = [
        {
            "item_id": r.item_id,
            "system_stock": r.system_stock,
            "actual_stock": r.actual_stock,
            "difference": r.difference,
            "adjustment_id": r.adjustment.id if r.adjustment else None,
            "note": None if r.adjustment else "No adjustment needed",
        }
        for r in results
    ]
    return {
        "success": True,
        "message": f"Stock take completed for {len(lines)} item(s)",
        "data": {
            "processed": len(lines),
            "adjustments": sum(1 for r in results if r.adjustment),
            "results": lines,
        },
    }

@router.post("/receive", response_model=ApiResponse[StockReceiveResult], status_code=status.HTTP_201_CREATED)
async def receive_stock(
    receive_data: StockReceiveRequest,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Book a purchase receipt as a new cost batch; wastage is written off as spoilage"""
    service = StockAdjustmentService(db, business_id)

    async def operation():
        return await service.receive_purchase(
            receive_data.item_id,
            receive_data.quantity,
            receive_data.unit_cost,
            actor_id,
            wastage_quantity=receive_data.wastage_quantity,
            notes=receive_data.notes,
            received_at=receive_data.received_at,
            source_reference=receive_data.source_reference or f"receipt by user {actor_id}",
        )

    receipt = await run_ledger_transaction(db, operation)
    data = await _item_batches(service.ledger, receipt.batch.item_id)
    data["wastage"] = adjustment_view(receipt.wastage) if receipt.wastage else None
    return {
        "success": True,
        "message": "Stock received successfully",
        "data": data,
    }

@router.get("/adjustments", response_model=ApiResponse[List[StockAdjustment]])
async def get_adjustments(
    item_id: Optional[int] = Query(None, alias="itemId"),
    start: Optional[int] = Query(None, ge=0),
    end: Optional[int] = Query(None, ge=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Stock adjustment audit trail, newest first"""
    service = StockAdjustmentService(db, business_id)
    adjustments = await service.list_adjustments(item_id=item_id, start=start, end=end, skip=skip, limit=limit)
    return {"success": True, "data": [adjustment_view(a) for a in adjustments]}

@router.get("/{item_id}/batches", response_model=ApiResponse[ItemBatches])
async def get_item_batches(
    item_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Every batch of an item in FIFO order, exhausted ones included"""
    ledger = BatchLedgerService(db, business_id)
    await ledger.get_item(item_id)
    return {"success": True, "data": await _item_batches(ledger, item_id)}

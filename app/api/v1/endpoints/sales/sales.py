from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.api.dependencies import get_actor_id, get_business_id
from app.core.database import get_async_session
from app.core.transaction import run_ledger_transaction
from app.schemas.common.response import ApiResponse
from app.schemas.sales.sale_schema import Sale, SaleCreate
from app.services.sales.sale_service import SaleService

router = APIRouter()

@router.post("", response_model=ApiResponse[Sale], status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale_data: SaleCreate,
    business_id: int = Depends(get_business_id),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Record a completed sale; every line is costed oldest batch first"""
    service = SaleService(db, business_id)
    lines = [line.model_dump() for line in sale_data.items]
    sale = await run_ledger_transaction(db, lambda: service.record_sale(lines, actor_id))
    return {
        "success": True,
        "message": "Sale recorded successfully",
        "data": await service.get_sale(sale.id),
    }

@router.get("", response_model=ApiResponse[List[Sale]])
async def get_sales(
    start: Optional[int] = Query(None, ge=0),
    end: Optional[int] = Query(None, ge=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Sales, newest first"""
    service = SaleService(db, business_id)
    return {"success": True, "data": await service.get_sales(start=start, end=end, skip=skip, limit=limit)}

@router.get("/{sale_id}", response_model=ApiResponse[Sale])
async def get_sale(
    sale_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Get sale with its batch-costed lines"""
    service = SaleService(db, business_id)
    return {"success": True, "data": await service.get_sale(sale_id)}

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from app.api.dependencies import get_business_id
from app.core.database import get_async_session
from app.schemas.common.response import ApiResponse
from app.schemas.finance.profit_schema import DailyProfitReport, ItemProfit, ProfitReport
from app.services.finance.profitability_service import ProfitabilityService

router = APIRouter()

ITEM_LISTS = ("item_profits", "top_profit_items", "least_profitable_items", "low_margin_items")

@router.get("", response_model=ApiResponse[ProfitReport])
async def get_profit(
    start: Optional[int] = Query(None, ge=0, description="Period start (unix seconds)"),
    end: Optional[int] = Query(None, ge=0, description="Period end (unix seconds)"),
    group_by_parent: bool = Query(False, alias="groupByParent"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Gross and net profit for a period, with item rankings and break-even sales"""
    service = ProfitabilityService(db, business_id)
    report = await service.profit_report(start, end, group_by_parent=group_by_parent)
    for key in ITEM_LISTS:
        report[key] = [ItemProfit.model_validate(p) for p in report[key]]
    return {"success": True, "data": report}

@router.get("/daily", response_model=ApiResponse[DailyProfitReport])
async def get_daily_profit(
    months: int = Query(12, ge=1, le=120),
    tz: int = Query(0, ge=-840, le=840, description="UTC offset of the shop in minutes"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Per-day revenue, cost of goods, stock losses and profit"""
    service = ProfitabilityService(db, business_id)
    report = await service.daily_profit(months=months, tz_offset_minutes=tz)
    report["daily_profits"] = {
        day.date: {
            "date": day.date,
            "profit": day.profit,
            "revenue": day.revenue,
            "cost": day.cost,
            "stock_loss": day.stock_loss,
            "transactions": day.transactions,
        }
        for day in report["daily_profits"]
    }
    return {"success": True, "data": report}

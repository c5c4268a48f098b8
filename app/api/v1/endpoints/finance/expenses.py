from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_business_id
from app.core.database import get_async_session
from app.schemas.common.response import ApiResponse
from app.schemas.finance.expense_schema import DailyCost, Expense, ExpenseCreate, ExpenseList, ExpenseUpdate
from app.services.finance import expense_normalizer
from app.services.finance.expense_service import ExpenseService, expense_view

router = APIRouter()

@router.get("", response_model=ApiResponse[ExpenseList])
async def get_expenses(
    active_only: bool = Query(False, alias="activeOnly"),
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """All expenses with the normalised daily cost of the active ones"""
    service = ExpenseService(db, business_id)
    expenses = await service.get_expenses(active_only=active_only)
    return {
        "success": True,
        "data": {
            "expenses": [expense_view(e) for e in expenses],
            "summary": expense_normalizer.summary(e for e in expenses if e.active),
            "total_count": len(expenses),
        },
    }

@router.post("", response_model=ApiResponse[Expense], status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Create a recurring operating expense"""
    service = ExpenseService(db, business_id)
    expense = await service.create_expense(expense_data)
    return {"success": True, "message": "Expense created successfully", "data": expense_view(expense)}

@router.get("/daily-cost", response_model=ApiResponse[DailyCost])
async def get_daily_cost(
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Normalised daily operating cost, split fixed/variable"""
    service = ExpenseService(db, business_id)
    return {"success": True, "data": await service.daily_cost_summary()}

@router.get("/{expense_id}", response_model=ApiResponse[Expense])
async def get_expense(
    expense_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Get expense by ID"""
    service = ExpenseService(db, business_id)
    return {"success": True, "data": expense_view(await service.get_expense(expense_id))}

@router.put("/{expense_id}", response_model=ApiResponse[Expense])
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Update expense"""
    service = ExpenseService(db, business_id)
    expense = await service.update_expense(expense_id, expense_data)
    return {"success": True, "message": "Expense updated successfully", "data": expense_view(expense)}

@router.delete("/{expense_id}", response_model=ApiResponse[Expense])
async def delete_expense(
    expense_id: int,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Deactivate expense; it stops counting towards the operating cost"""
    service = ExpenseService(db, business_id)
    expense = await service.deactivate_expense(expense_id)
    return {"success": True, "message": "Expense deactivated", "data": expense_view(expense)}

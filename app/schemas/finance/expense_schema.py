from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from app.schemas.common.response import CamelModel

class ExpenseCreate(CamelModel):
    name: str
    category: str
    amount: Decimal
    frequency: str
    start_date: Optional[int] = None
    notes: Optional[str] = None

class ExpenseUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[Decimal] = None
    frequency: Optional[str] = None
    start_date: Optional[int] = None
    notes: Optional[str] = None
    active: Optional[bool] = None

class Expense(BaseModel):
    id: int
    name: str
    category: str
    amount: float
    frequency: str
    start_date: int
    notes: Optional[str] = None
    active: bool
    daily_cost: float
    created_at: int

class DailyCost(CamelModel):
    daily_operating_cost: float
    fixed_daily_cost: float
    variable_daily_cost: float
    weekly_operating_cost: float
    monthly_operating_cost: float
    expense_count: int

class ExpenseList(CamelModel):
    expenses: List[Expense]
    summary: DailyCost
    total_count: int

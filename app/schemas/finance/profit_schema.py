from pydantic import BaseModel
from typing import Dict, List, Optional
from app.schemas.common.response import CamelModel

class ItemProfit(BaseModel):
    item_id: int
    item_name: str
    variant_name: Optional[str] = None
    parent_name: Optional[str] = None
    is_parent: bool = False
    variant_count: int = 1
    total_profit: float
    total_sales: float
    total_cost: float
    quantity_sold: float
    margin_percent: Optional[float] = None

    class Config:
        from_attributes = True

class ProfitReport(CamelModel):
    total_profit: float
    total_sales: float
    total_cost: float
    profit_margin: float
    total_quantity_sold: float
    total_transactions: int
    unique_items_sold: int
    average_items_per_sale: float
    period_days: int
    daily_operating_cost: float
    fixed_daily_cost: float
    variable_daily_cost: float
    scaled_expense: float
    net_profit: float
    # None when the margin is zero or negative
    break_even_sales: Optional[float] = None
    break_even_defined: bool
    item_profits: List[ItemProfit]
    top_profit_items: List[ItemProfit]
    least_profitable_items: List[ItemProfit]
    low_margin_items: List[ItemProfit]

class DailyProfit(CamelModel):
    date: str
    profit: float
    revenue: float
    cost: float
    stock_loss: float
    transactions: int

class DailyProfitStats(CamelModel):
    max_profit: float
    min_profit: float
    total_days_with_activity: int
    profitable_days: int
    loss_days: int
    neutral_days: int

class DailyProfitReport(CamelModel):
    daily_profits: Dict[str, DailyProfit]
    stats: DailyProfitStats
    date_range: Dict[str, str]

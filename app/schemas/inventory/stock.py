from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from app.models.shared.enums import StockTrend, Trajectory, UnitType
from app.schemas.common.response import CamelModel
from app.schemas.inventory.item import Item

# --- Requests ---
class StockAdjustRequest(CamelModel):
    item_id: int
    adjustment_type: str
    quantity: Decimal
    reason: str
    notes: Optional[str] = None
    unit_cost: Optional[Decimal] = None

class StockTakeEntry(CamelModel):
    item_id: int
    actual_stock: Decimal
    reason: Optional[str] = None
    notes: Optional[str] = None
    unit_cost: Optional[Decimal] = None

class StockTakeRequest(CamelModel):
    items: List[StockTakeEntry]

class StockReceiveRequest(CamelModel):
    item_id: int
    quantity: Decimal
    unit_cost: Decimal
    wastage_quantity: Optional[Decimal] = None
    notes: Optional[str] = None
    received_at: Optional[int] = None
    source_reference: Optional[str] = None

# --- Responses ---
class StockAdjustment(BaseModel):
    id: int
    item_id: int
    system_stock: float
    actual_stock: float
    difference: float
    reason: str
    notes: Optional[str] = None
    adjusted_by: int
    created_at: int

class StockAdjustResult(BaseModel):
    item: Item
    adjustment: StockAdjustment

class StockTakeLine(BaseModel):
    item_id: int
    system_stock: float
    actual_stock: float
    difference: float
    adjustment_id: Optional[int] = None
    note: Optional[str] = None

class StockTakeResult(BaseModel):
    processed: int
    adjustments: int
    results: List[StockTakeLine]

class Batch(BaseModel):
    id: int
    item_id: int
    initial_quantity: float
    quantity_remaining: float
    buy_price_per_unit: float
    received_at: int
    source_reference: Optional[str] = None
    is_exhausted: bool

    class Config:
        from_attributes = True

class ItemBatches(BaseModel):
    item_id: int
    quantity: float
    value: float
    current_buy_price: float
    batches: List[Batch]

class StockReceiveResult(ItemBatches):
    wastage: Optional[StockAdjustment] = None

class StockItem(BaseModel):
    id: int
    name: str
    display_name: str
    variant_name: Optional[str] = None
    parent_item_id: Optional[int] = None
    category_id: int
    category_name: Optional[str] = None
    unit_type: UnitType
    current_stock: float
    current_sell_price: float
    current_buy_price: float
    min_stock_level: Optional[float] = None
    first_batch_date: Optional[int] = None
    total_ever_stocked: float
    initial_stock: float
    stock_change: float
    stock_change_percent: Optional[float] = None
    initial_value: float
    stock_value: float
    sales_value: float
    value_change: float
    value_change_percent: Optional[float] = None
    trend: StockTrend

class AnalysisSummary(CamelModel):
    first_activity_date: Optional[int] = None
    days_since_start: int
    trajectory: Trajectory
    total_items: int
    items_with_data: int
    new_items_count: int

class StockGrowth(CamelModel):
    initial_total_stock: float
    current_total_stock: float
    stock_change: float
    stock_change_percent: Optional[float] = None
    initial_total_value: float
    current_total_value: float
    value_change: float
    value_change_percent: Optional[float] = None

class StockAnalysis(CamelModel):
    summary: AnalysisSummary
    stock_growth: StockGrowth
    trend_breakdown: dict
    items: List[StockItem]
    top_growing: List[StockItem]
    shrinking: List[StockItem]
    new_items: List[StockItem]

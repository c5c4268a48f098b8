from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from app.models.shared.enums import SaleStatus
from app.schemas.common.response import CamelModel

class SaleLineCreate(CamelModel):
    item_id: int
    quantity: Decimal
    price: Optional[Decimal] = None

class SaleCreate(CamelModel):
    items: List[SaleLineCreate]

class SaleItem(BaseModel):
    id: int
    item_id: int
    inventory_batch_id: Optional[int] = None
    quantity_sold: float
    sell_price_per_unit: float
    buy_price_per_unit: float
    profit: float

    class Config:
        from_attributes = True

class Sale(BaseModel):
    id: int
    user_id: int
    total_amount: float
    status: SaleStatus
    sale_date: int
    items: List[SaleItem] = []

    class Config:
        from_attributes = True

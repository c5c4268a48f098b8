from pydantic import field_validator
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from app.models.shared.enums import ItemKind, UnitType
from app.schemas.common.response import CamelModel

class ItemCreate(CamelModel):
    name: str
    category_id: Optional[int] = None
    unit_type: Optional[UnitType] = None
    initial_stock: Optional[Decimal] = None
    buy_price: Optional[Decimal] = None
    sell_price: Optional[Decimal] = None
    min_stock_level: Optional[Decimal] = None
    is_parent: bool = False
    parent_item_id: Optional[int] = None
    variant_name: Optional[str] = None

    @field_validator('initial_stock', 'buy_price', 'min_stock_level')
    @classmethod
    def validate_not_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Value cannot be negative')
        return v

class ItemUpdate(CamelModel):
    name: Optional[str] = None
    category_id: Optional[int] = None
    unit_type: Optional[UnitType] = None
    variant_name: Optional[str] = None
    sell_price: Optional[Decimal] = None
    min_stock_level: Optional[Decimal] = None

class ItemPriceUpdate(CamelModel):
    price: Decimal
    effective_from: Optional[int] = None

class Item(BaseModel):
    id: int
    category_id: int
    parent_item_id: Optional[int] = None
    name: str
    variant_name: Optional[str] = None
    display_name: str
    unit_type: UnitType
    kind: ItemKind
    current_stock: float
    current_sell_price: float
    min_stock_level: Optional[float] = None
    active: bool
    created_at: int

class SellingPrice(BaseModel):
    id: int
    item_id: int
    price: float
    effective_from: int
    set_by: int

    class Config:
        from_attributes = True

class GroupedItem(BaseModel):
    item: Item
    is_parent: bool
    variant_count: int
    total_variant_stock: float
    variants: List[Item] = []

from sqlalchemy import Column, Integer, String, Boolean, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, enum_column_type
from app.models.shared.enums import UnitType

class Item(BaseModel):
    __tablename__ = 'items'

    business_id = Column(Integer, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=False)
    parent_item_id = Column(Integer, ForeignKey('items.id'), nullable=True)
    name = Column(String(200), nullable=False)
    variant_name = Column(String(100), nullable=True)
    unit_type = Column(enum_column_type(UnitType), nullable=False, default=UnitType.PIECE)
    # Cached projection of the batch ledger, recomputed after every ledger mutation
    current_stock = Column(Numeric(12, 3), nullable=False, default=0)
    current_sell_price = Column(Numeric(12, 2), nullable=False, default=0)
    min_stock_level = Column(Numeric(12, 3), nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_items_parent", "parent_item_id"),
    )

    # Relationships
    category = relationship("Category", back_populates="items")
    parent = relationship("Item", remote_side="Item.id", back_populates="variants")
    variants = relationship("Item", back_populates="parent")
    batches = relationship("InventoryBatch", back_populates="item", order_by="InventoryBatch.received_at")
    selling_prices = relationship("SellingPrice", back_populates="item")
    stock_adjustments = relationship("StockAdjustment", back_populates="item")

    @property
    def is_variant(self) -> bool:
        return self.parent_item_id is not None

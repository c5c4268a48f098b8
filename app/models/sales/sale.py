from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, enum_column_type
from app.models.shared.enums import SaleStatus
from app.utils.epoch import now_epoch

class Sale(BaseModel):
    __tablename__ = 'sales'

    business_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(enum_column_type(SaleStatus), nullable=False, default=SaleStatus.COMPLETED)
    sale_date = Column(Integer, nullable=False, default=now_epoch)

    __table_args__ = (
        Index("idx_sales_business_date", "business_id", "sale_date"),
    )

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

class SaleItem(BaseModel):
    """One sold slice, costed against exactly one inventory batch"""
    __tablename__ = 'sale_items'

    sale_id = Column(Integer, ForeignKey('sales.id'), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    inventory_batch_id = Column(Integer, ForeignKey('inventory_batches.id'), nullable=True)
    quantity_sold = Column(Numeric(12, 3), nullable=False)
    sell_price_per_unit = Column(Numeric(12, 2), nullable=False)
    buy_price_per_unit = Column(Numeric(12, 2), nullable=False)
    profit = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")

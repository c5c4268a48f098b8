from sqlalchemy import Column, Integer, Numeric, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, enum_column_type
from app.models.shared.enums import AdjustmentReason

class StockAdjustment(BaseModel):
    """Immutable audit record of a manual stock correction"""
    __tablename__ = 'stock_adjustments'

    business_id = Column(Integer, nullable=False, index=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False)
    system_stock = Column(Numeric(12, 3), nullable=False)
    actual_stock = Column(Numeric(12, 3), nullable=False)
    difference = Column(Numeric(12, 3), nullable=False)
    reason = Column(enum_column_type(AdjustmentReason), nullable=False)
    notes = Column(Text)
    adjusted_by = Column(Integer, nullable=False)  # User ID

    __table_args__ = (
        Index("idx_stock_adjustments_date", "business_id", "created_at"),
    )

    item = relationship("Item", back_populates="stock_adjustments")

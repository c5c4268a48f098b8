from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.utils.epoch import now_epoch

class SellingPrice(BaseModel):
    """Append-only price history; the newest effective row is the current price"""
    __tablename__ = 'selling_prices'

    item_id = Column(Integer, ForeignKey('items.id'), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    effective_from = Column(Integer, nullable=False, default=now_epoch)
    set_by = Column(Integer, nullable=False)  # User ID

    __table_args__ = (
        Index("idx_selling_prices_item_effective", "item_id", "effective_from"),
    )

    item = relationship("Item", back_populates="selling_prices")

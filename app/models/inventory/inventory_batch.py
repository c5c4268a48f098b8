from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.utils.epoch import now_epoch

class InventoryBatch(BaseModel):
    __tablename__ = 'inventory_batches'

    business_id = Column(Integer, nullable=False, index=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False)
    initial_quantity = Column(Numeric(12, 3), nullable=False)
    quantity_remaining = Column(Numeric(12, 3), nullable=False)
    buy_price_per_unit = Column(Numeric(12, 2), nullable=False)
    received_at = Column(Integer, nullable=False, default=now_epoch)
    source_reference = Column(String(100), nullable=True)  # purchase receipt, adjustment, item setup

    __table_args__ = (
        # FIFO walk order
        Index("idx_inventory_batches_received_at", "item_id", "received_at", "id"),
        CheckConstraint("quantity_remaining >= 0", name="ck_batches_remaining_non_negative"),
        CheckConstraint("quantity_remaining <= initial_quantity", name="ck_batches_remaining_le_initial"),
    )

    # Relationships
    item = relationship("Item", back_populates="batches")
    consumptions = relationship("BatchConsumption", back_populates="batch")

    @property
    def is_exhausted(self) -> bool:
        return self.quantity_remaining <= 0

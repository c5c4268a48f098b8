from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, enum_column_type
from app.models.shared.enums import ConsumptionReference
from app.utils.epoch import now_epoch

class BatchConsumption(BaseModel):
    """One slice taken from one batch by a FIFO consume call"""
    __tablename__ = 'batch_consumptions'

    business_id = Column(Integer, nullable=False, index=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False)
    batch_id = Column(Integer, ForeignKey('inventory_batches.id'), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=False)
    reference_type = Column(enum_column_type(ConsumptionReference), nullable=False)
    reference_id = Column(Integer, nullable=True)
    consumed_at = Column(Integer, nullable=False, default=now_epoch)

    __table_args__ = (
        Index("idx_batch_consumptions_item_time", "item_id", "consumed_at"),
        Index("idx_batch_consumptions_reference", "reference_type", "reference_id"),
    )

    batch = relationship("InventoryBatch", back_populates="consumptions")

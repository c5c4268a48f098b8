from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, Index
from app.db.base import BaseModel, enum_column_type
from app.models.shared.enums import ExpenseCategory, ExpenseFrequency
from app.utils.epoch import now_epoch

class Expense(BaseModel):
    __tablename__ = 'expenses'

    business_id = Column(Integer, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(enum_column_type(ExpenseCategory), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(enum_column_type(ExpenseFrequency), nullable=False)
    start_date = Column(Integer, nullable=False, default=now_epoch)
    notes = Column(Text)
    # Soft-deactivated, never hard-deleted
    active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_expenses_active", "business_id", "active"),
    )

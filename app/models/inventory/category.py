from sqlalchemy import Column, Integer, String, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Category(BaseModel):
    __tablename__ = 'categories'

    business_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("business_id", "name", name="uq_categories_business_name"),
    )

    items = relationship("Item", back_populates="category")

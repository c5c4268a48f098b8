from sqlalchemy import Column, Integer, Enum as SQLEnum
from sqlalchemy.orm import declarative_base
from app.utils.epoch import now_epoch

Base = declarative_base()

def enum_column_type(enum_cls):
    """Store enum values (not member names) as plain strings"""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
        length=32,
    )

class BaseModel(Base):
    """Base model with common fields"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # Unix epoch seconds
    created_at = Column(Integer, nullable=False, default=now_epoch)

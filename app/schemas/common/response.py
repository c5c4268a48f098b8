from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

class CamelModel(BaseModel):
    """Request/response bodies exchanged with the POS client in camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.api.dependencies import get_business_id
from app.core.database import get_async_session
from app.schemas.common.response import ApiResponse
from app.schemas.inventory.category import Category, CategoryCreate
from app.services.inventory.category_service import CategoryService

router = APIRouter()

@router.post("", response_model=ApiResponse[Category], status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Create a new category"""
    service = CategoryService(db, business_id)
    category = await service.create_category(category_data)
    return {"success": True, "message": "Category created successfully", "data": category}

@router.get("", response_model=ApiResponse[List[Category]])
async def get_categories(
    business_id: int = Depends(get_business_id),
    db: AsyncSession = Depends(get_async_session)
):
    """Get all active categories"""
    service = CategoryService(db, business_id)
    return {"success": True, "data": await service.get_categories()}

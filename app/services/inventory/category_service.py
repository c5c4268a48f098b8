import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func

from app.models.inventory.category import Category
from app.schemas.inventory.category import CategoryCreate
from app.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id

    async def create_category(self, category_data: CategoryCreate) -> Category:
        name = category_data.name.strip()
        if not name:
            raise ValidationError("Category name is required")

        # Check for duplicate name within the business
        existing = await self.db.execute(
            select(Category).where(and_(
                Category.business_id == self.business_id,
                func.lower(Category.name) == name.lower(),
            ))
        )
        if existing.scalar_one_or_none():
            raise ValidationError("Category name already exists")

        category = Category(
            business_id=self.business_id,
            name=name,
            description=category_data.description,
        )

        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        logger.info(f"📁 Category {category.id} '{category.name}' created for business {self.business_id}")
        return category

    async def get_category_by_id(self, category_id: int) -> Optional[Category]:
        result = await self.db.execute(
            select(Category).where(and_(
                Category.id == category_id,
                Category.business_id == self.business_id,
                Category.is_active == True,
            ))
        )
        return result.scalar_one_or_none()

    async def require_category(self, category_id: int) -> Category:
        category = await self.get_category_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def get_categories(self) -> List[Category]:
        result = await self.db.execute(
            select(Category)
            .where(and_(Category.business_id == self.business_id, Category.is_active == True))
            .order_by(Category.name)
        )
        return result.scalars().all()

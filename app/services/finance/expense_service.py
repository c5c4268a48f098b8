import logging
from typing import Any, Dict, List
from sqlalchemy import and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.core.exceptions import NotFoundError, ValidationError
from app.models.finance.expense import Expense
from app.schemas.finance.expense_schema import ExpenseCreate, ExpenseUpdate
from app.services.finance import expense_normalizer
from app.utils.epoch import now_epoch
from app.utils.validators.validation_utils import to_money

logger = logging.getLogger(__name__)


def expense_view(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "name": expense.name,
        "category": expense.category.value,
        "amount": expense.amount,
        "frequency": expense.frequency.value,
        "start_date": expense.start_date,
        "notes": expense.notes,
        "active": expense.active,
        "daily_cost": expense_normalizer.daily_cost(expense),
        "created_at": expense.created_at,
    }


class ExpenseService:
    def __init__(self, db: AsyncSession, business_id: int):
        self.db = db
        self.business_id = business_id

    def _validate_amount(self, amount):
        amount = None if amount is None else to_money(amount, "amount")
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        return amount

    async def create_expense(self, expense_data: ExpenseCreate) -> Expense:
        if not (expense_data.name or "").strip():
            raise ValidationError("Name, category, amount, and frequency are required")
        category = expense_normalizer.parse_category(expense_data.category)
        frequency = expense_normalizer.parse_frequency(expense_data.frequency)
        amount = self._validate_amount(expense_data.amount)

        expense = Expense(
            business_id=self.business_id,
            name=expense_data.name.strip(),
            category=category,
            amount=amount,
            frequency=frequency,
            start_date=expense_data.start_date or now_epoch(),
            notes=expense_data.notes,
            active=True,
        )
        self.db.add(expense)
        await self.db.commit()
        await self.db.refresh(expense)
        logger.info(f"💸 Expense {expense.id} '{expense.name}' created for business {self.business_id}")
        return expense

    async def get_expense(self, expense_id: int) -> Expense:
        result = await self.db.execute(
            select(Expense).where(and_(Expense.id == expense_id, Expense.business_id == self.business_id))
        )
        expense = result.scalar_one_or_none()
        if not expense:
            raise NotFoundError("Expense not found")
        return expense

    async def get_expenses(self, active_only: bool = False) -> List[Expense]:
        query = select(Expense).where(Expense.business_id == self.business_id)
        if active_only:
            query = query.where(Expense.active == True)
        result = await self.db.execute(query.order_by(Expense.category, desc(Expense.amount), Expense.id))
        return result.scalars().all()

    async def update_expense(self, expense_id: int, expense_data: ExpenseUpdate) -> Expense:
        expense = await self.get_expense(expense_id)
        updates = expense_data.model_dump(exclude_unset=True)
        for field in ("start_date", "active"):
            if updates.get(field, True) is None:
                updates.pop(field)

        if "category" in updates:
            updates["category"] = expense_normalizer.parse_category(updates["category"])
        if "frequency" in updates:
            updates["frequency"] = expense_normalizer.parse_frequency(updates["frequency"])
        if "amount" in updates:
            updates["amount"] = self._validate_amount(updates["amount"])
        if "name" in updates:
            if not (updates["name"] or "").strip():
                raise ValidationError("Name cannot be empty")
            updates["name"] = updates["name"].strip()

        for field, value in updates.items():
            setattr(expense, field, value)

        await self.db.commit()
        await self.db.refresh(expense)
        return expense

    async def deactivate_expense(self, expense_id: int) -> Expense:
        """Expenses are never hard-deleted; past periods keep their history"""
        expense = await self.get_expense(expense_id)
        expense.active = False
        await self.db.commit()
        await self.db.refresh(expense)
        logger.info(f"🗑️ Expense {expense.id} deactivated")
        return expense

    async def daily_cost_summary(self) -> Dict[str, Any]:
        return expense_normalizer.summary(await self.get_expenses(active_only=True))

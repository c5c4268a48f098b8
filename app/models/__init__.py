from app.db.base import Base
from app.models.inventory.category import Category
from app.models.inventory.item import Item
from app.models.inventory.inventory_batch import InventoryBatch
from app.models.inventory.batch_consumption import BatchConsumption
from app.models.inventory.stock_adjustment import StockAdjustment
from app.models.inventory.selling_price import SellingPrice
from app.models.finance.expense import Expense
from app.models.sales.sale import Sale, SaleItem


__all__ = [
    "Base",
    "Category",
    "Item",
    "InventoryBatch",
    "BatchConsumption",
    "StockAdjustment",
    "SellingPrice",
    "Expense",
    "Sale",
    "SaleItem",
]

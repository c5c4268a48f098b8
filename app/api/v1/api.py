from fastapi import APIRouter
from app.api.v1.endpoints.finance import expenses, profit
from app.api.v1.endpoints.inventory import categories, items, stock
from app.api.v1.endpoints.sales import sales

api_router = APIRouter()

# Inventory routes
api_router.include_router(categories.router, prefix="/categories", tags=["Inventory"])
api_router.include_router(items.router, prefix="/items", tags=["Inventory"])
api_router.include_router(stock.router, prefix="/stock", tags=["Stock"])

# Sales routes
api_router.include_router(sales.router, prefix="/sales", tags=["Sales"])

# Finance routes
api_router.include_router(expenses.router, prefix="/expenses", tags=["Finance"])
api_router.include_router(profit.router, prefix="/profit", tags=["Finance"])

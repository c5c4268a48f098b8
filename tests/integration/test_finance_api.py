import pytest
from httpx import AsyncClient
from fastapi import status
from app.utils.epoch import SECONDS_PER_DAY, now_epoch

@pytest.fixture
async def stocked_item(client: AsyncClient, tenant_headers: dict) -> dict:
    category = (await client.post("/api/v1/categories", json={"name": "Produce"}, headers=tenant_headers)).json()
    response = await client.post("/api/v1/items", json={
        "name": "Tomatoes", "categoryId": category["data"]["id"], "unitType": "kg",
        "initialStock": 50, "buyPrice": 80, "sellPrice": 120,
    }, headers=tenant_headers)
    return response.json()["data"]

@pytest.mark.asyncio
class TestExpensesApi:
    """Expense CRUD and daily cost normalisation"""

    async def test_daily_cost_scenario(self, client: AsyncClient, tenant_headers: dict):
        for payload in (
            {"name": "Rent", "category": "fixed", "amount": 9000, "frequency": "monthly"},
            {"name": "Packaging", "category": "variable", "amount": 700, "frequency": "weekly"},
        ):
            response = await client.post("/api/v1/expenses", json=payload, headers=tenant_headers)
            assert response.status_code == status.HTTP_201_CREATED

        response = await client.get("/api/v1/expenses/daily-cost", headers=tenant_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["dailyOperatingCost"] == 400
        assert data["fixedDailyCost"] == 300
        assert data["variableDailyCost"] == 100
        assert data["weeklyOperatingCost"] == 2800
        assert data["monthlyOperatingCost"] == 12000
        assert data["expenseCount"] == 2

    async def test_expense_crud(self, client: AsyncClient, tenant_headers: dict):
        response = await client.post("/api/v1/expenses", json={
            "name": "Electricity", "category": "variable", "amount": 3000, "frequency": "monthly",
        }, headers=tenant_headers)
        expense = response.json()["data"]
        assert expense["daily_cost"] == 100

        response = await client.put(f"/api/v1/expenses/{expense['id']}", json={"frequency": "yearly", "amount": 36500},
                                    headers=tenant_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["frequency"] == "yearly"
        assert response.json()["data"]["daily_cost"] == 100

        response = await client.delete(f"/api/v1/expenses/{expense['id']}", headers=tenant_headers)
        assert response.json()["data"]["active"] is False

        listing = (await client.get("/api/v1/expenses", headers=tenant_headers)).json()["data"]
        assert listing["totalCount"] == 1
        assert listing["summary"]["dailyOperatingCost"] == 0

    async def test_invalid_expense(self, client: AsyncClient, tenant_headers: dict):
        response = await client.post("/api/v1/expenses", json={
            "name": "Rent", "category": "sometimes", "amount": 10, "frequency": "monthly",
        }, headers=tenant_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Category must be fixed or variable"

        response = await client.post("/api/v1/expenses", json={
            "name": "Rent", "category": "fixed", "amount": 0, "frequency": "monthly",
        }, headers=tenant_headers)
        assert response.json()["message"] == "Amount must be greater than 0"

    async def test_unknown_expense(self, client: AsyncClient, tenant_headers: dict):
        response = await client.get("/api/v1/expenses/999", headers=tenant_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "message": "Expense not found"}

@pytest.mark.asyncio
class TestSalesAndProfitApi:
    """Sales through the ledger and the profit reports built on them"""

    async def test_sale_then_profit(self, client: AsyncClient, tenant_headers: dict, stocked_item: dict):
        response = await client.post("/api/v1/sales", json={
            "items": [{"itemId": stocked_item["id"], "quantity": 10}],
        }, headers=tenant_headers)
        assert response.status_code == status.HTTP_201_CREATED
        sale = response.json()["data"]
        assert sale["total_amount"] == 1200
        assert sale["status"] == "completed"
        assert sale["items"][0]["buy_price_per_unit"] == 80

        await client.post("/api/v1/expenses", json={
            "name": "Rent", "category": "fixed", "amount": 9000, "frequency": "monthly", "startDate": 0,
        }, headers=tenant_headers)

        start = now_epoch() - 3 * SECONDS_PER_DAY
        response = await client.get(
            f"/api/v1/profit?start={start}&end={start + 6 * SECONDS_PER_DAY}", headers=tenant_headers
        )
        assert response.status_code == status.HTTP_200_OK
        report = response.json()["data"]
        assert report["totalSales"] == 1200
        assert report["totalCost"] == 800
        assert report["totalProfit"] == 400
        assert report["periodDays"] == 7
        assert report["scaledExpense"] == 2100
        assert report["netProfit"] == -1700
        assert report["breakEvenSales"] == pytest.approx(6300)
        assert report["itemProfits"][0]["item_name"] == "Tomatoes"
        assert report["itemProfits"][0]["margin_percent"] == pytest.approx(100 / 3)

    async def test_profit_requires_period(self, client: AsyncClient, tenant_headers: dict):
        response = await client.get("/api/v1/profit", headers=tenant_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"] == "Start and end timestamps are required"

    async def test_break_even_is_null_without_margin(self, client: AsyncClient, tenant_headers: dict):
        response = await client.get(f"/api/v1/profit?start=0&end={SECONDS_PER_DAY}", headers=tenant_headers)
        report = response.json()["data"]
        assert report["breakEvenSales"] is None
        assert report["breakEvenDefined"] is False

    async def test_oversell_is_rejected(self, client: AsyncClient, tenant_headers: dict, stocked_item: dict):
        response = await client.post("/api/v1/sales", json={
            "items": [{"itemId": stocked_item["id"], "quantity": 51}],
        }, headers=tenant_headers)
        assert response.status_code == status.HTTP_409_CONFLICT

        sales = (await client.get("/api/v1/sales", headers=tenant_headers)).json()["data"]
        assert sales == []
        item = (await client.get(f"/api/v1/items/{stocked_item['id']}", headers=tenant_headers)).json()["data"]
        assert item["current_stock"] == 50

    async def test_daily_profit(self, client: AsyncClient, tenant_headers: dict, stocked_item: dict):
        await client.post("/api/v1/sales", json={
            "items": [{"itemId": stocked_item["id"], "quantity": 2, "price": 100}],
        }, headers=tenant_headers)

        response = await client.get("/api/v1/profit/daily?months=1", headers=tenant_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        days = list(data["dailyProfits"].values())
        assert len(days) == 1
        assert days[0]["revenue"] == 200
        assert days[0]["profit"] == 40
        assert data["stats"]["profitableDays"] == 1

import pytest
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status
from tests.integration.helpers import balance_of, receive


@pytest.fixture
async def pancakes(client: AsyncClient, catalog: dict) -> dict:
    """Recipe yielding 2 portions from 200 g of flour and 250 ml of milk"""
    await receive(client, catalog, catalog["flour"], "10", "5")
    await receive(client, catalog, catalog["milk"], "5", "2")

    response = await client.post("/api/v1/recipes/", json={
        "name": "Pancakes",
        "portion_size": "2",
        "margin_percent": "100",
        "ingredients": [
            {"product_id": catalog["flour"], "quantity": "200", "unit_id": catalog["units"]["g"], "is_main": True},
            {"product_id": catalog["milk"], "quantity": "250", "unit_id": catalog["units"]["ml"]},
        ],
    }, headers={"X-User-Id": "3"})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["data"]


@pytest.mark.asyncio
class TestRecipeCosting:
    async def test_cost_is_calculated_in_product_units(self, pancakes: dict):
        # 0.2 kg x 5 + 0.25 l x 2 = 1.50 for 2 portions
        assert Decimal(pancakes["cost_price"]) == Decimal("0.75")
        assert Decimal(pancakes["selling_price"]) == Decimal("1.50")
        assert pancakes["created_by"] == 3
        assert [i["product"]["name"] for i in pancakes["ingredients"]] == ["Flour", "Milk"]

    async def test_calculate_cost_uses_default_margin(self, client: AsyncClient, catalog: dict):
        response = await client.post("/api/v1/recipes/calculate-cost", json={
            "ingredients": [
                {"product_id": catalog["flour"], "quantity": "200", "unit_id": catalog["units"]["g"], "cost_per_unit": "5"},
            ],
        })
        assert response.status_code == status.HTTP_200_OK
        calculation = response.json()["data"]
        assert Decimal(calculation["total_cost"]) == Decimal("1.00")
        assert Decimal(calculation["selling_price"]) == Decimal("1.30")
        assert Decimal(calculation["ingredients"][0]["costing_quantity"]) == Decimal("0.2")

    async def test_incompatible_ingredient_unit(self, client: AsyncClient, catalog: dict):
        response = await client.post("/api/v1/recipes/calculate-cost", json={
            "ingredients": [
                {"product_id": catalog["flour"], "quantity": "1", "unit_id": catalog["units"]["l"]},
            ],
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_scale_recipe(self, client: AsyncClient, pancakes: dict):
        response = await client.get(f"/api/v1/recipes/{pancakes['id']}/scale", params={"factor": "2"})
        calculation = response.json()["data"]
        assert Decimal(calculation["total_cost"]) == Decimal("3.00")
        assert Decimal(calculation["cost_per_portion"]) == Decimal("0.75")

    async def test_profitability_report(self, client: AsyncClient, pancakes: dict):
        response = await client.get("/api/v1/recipes/profitability")
        [row] = response.json()["data"]
        assert row["recipe_name"] == "Pancakes"
        assert Decimal(row["profit"]) == Decimal("0.75")
        assert Decimal(row["profit_margin"]) == Decimal("50")

    async def test_duplicate_name_is_rejected(self, client: AsyncClient, catalog: dict, pancakes: dict):
        response = await client.post("/api/v1/recipes/", json={
            "name": "Pancakes",
            "ingredients": [{"product_id": catalog["flour"], "quantity": "1", "unit_id": catalog["units"]["kg"]}],
        })
        assert response.status_code == status.HTTP_409_CONFLICT


@pytest.mark.asyncio
class TestProduction:
    async def test_availability_reports_shortage(self, client: AsyncClient, catalog: dict, pancakes: dict):
        response = await client.get(
            f"/api/v1/recipes/{pancakes['id']}/availability",
            params={"warehouse_id": catalog["main"], "portions": "100"}
        )
        availability = response.json()["data"]
        assert availability["can_produce"] is False
        by_name = {line["product_name"]: line for line in availability["ingredients"]}
        assert by_name["Flour"]["is_available"] is True
        assert Decimal(by_name["Milk"]["required_quantity"]) == Decimal("12.5")
        assert Decimal(by_name["Milk"]["shortage"]) == Decimal("7.5")

    async def test_produce_consumes_converted_quantities(self, client: AsyncClient, catalog: dict, pancakes: dict):
        response = await client.post(
            f"/api/v1/recipes/{pancakes['id']}/produce",
            json={"warehouse_id": catalog["main"], "portions": "4"}
        )
        assert response.status_code == status.HTTP_200_OK, response.text
        result = response.json()["data"]
        assert Decimal(result["total_cost"]) == Decimal("3.00")
        assert {m["type"] for m in result["movements"]} == {"PRODUCTION_USE"}

        flour = await balance_of(client, catalog["main"], catalog["flour"])
        milk = await balance_of(client, catalog["main"], catalog["milk"])
        assert Decimal(flour["quantity"]) == Decimal("9.6")
        assert Decimal(milk["quantity"]) == Decimal("4.5")

    async def test_failed_production_changes_nothing(self, client: AsyncClient, catalog: dict, pancakes: dict):
        response = await client.post(
            f"/api/v1/recipes/{pancakes['id']}/produce",
            json={"warehouse_id": catalog["main"], "portions": "100"}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        flour = await balance_of(client, catalog["main"], catalog["flour"])
        assert Decimal(flour["quantity"]) == Decimal("10")
        movements = await client.get("/api/v1/stock-movements/", params={"type": "PRODUCTION_USE"})
        assert movements.json()["data"]["count"] == 0

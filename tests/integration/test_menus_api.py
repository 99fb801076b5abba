import pytest
from datetime import date, timedelta
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status
from tests.integration.helpers import receive


@pytest.fixture
async def menu_setup(client: AsyncClient, catalog: dict) -> dict:
    """A lunch menu with a pancake dish on a recipe and a bottled drink without one"""
    recipe = await client.post("/api/v1/recipes/", json={
        "name": "Pancakes",
        "portion_size": "2",
        "ingredients": [
            {"product_id": catalog["flour"], "quantity": "200", "unit_id": catalog["units"]["g"], "cost_per_unit": "5"},
            {"product_id": catalog["milk"], "quantity": "250", "unit_id": catalog["units"]["ml"], "cost_per_unit": "2"},
        ],
    })
    assert recipe.status_code == status.HTTP_201_CREATED, recipe.text

    desserts = await client.post("/api/v1/menus/categories", json={"name": "Desserts", "sort_order": 2})
    drinks = await client.post("/api/v1/menus/categories", json={"name": "Drinks", "sort_order": 1})
    menu = await client.post("/api/v1/menus/", json={"name": "Lunch"}, headers={"X-User-Id": "4"})
    assert menu.status_code == status.HTTP_201_CREATED, menu.text

    pancakes = await client.post("/api/v1/menus/items", json={
        "menu_id": menu.json()["data"]["id"],
        "category_id": desserts.json()["data"]["id"],
        "recipe_id": recipe.json()["data"]["id"],
        "name": "Pancakes with jam",
        "price": "3.50",
    })
    lemonade = await client.post("/api/v1/menus/items", json={
        "menu_id": menu.json()["data"]["id"],
        "category_id": drinks.json()["data"]["id"],
        "name": "Lemonade",
        "price": "2",
        "cost_price": "0.6",
    })
    assert pancakes.status_code == status.HTTP_201_CREATED, pancakes.text

    return {
        "recipe": recipe.json()["data"],
        "desserts": desserts.json()["data"]["id"],
        "drinks": drinks.json()["data"]["id"],
        "menu": menu.json()["data"],
        "pancakes": pancakes.json()["data"],
        "lemonade": lemonade.json()["data"],
    }


@pytest.mark.asyncio
class TestMenuCatalog:
    async def test_item_takes_cost_from_recipe(self, menu_setup: dict):
        pancakes = menu_setup["pancakes"]
        assert Decimal(pancakes["cost_price"]) == Decimal("0.75")
        assert pancakes["recipe"]["name"] == "Pancakes"
        assert pancakes["category"]["name"] == "Desserts"
        assert Decimal(menu_setup["lemonade"]["cost_price"]) == Decimal("0.60")
        assert menu_setup["menu"]["created_by"] == 4

    async def test_menu_lists_its_items(self, client: AsyncClient, menu_setup: dict):
        response = await client.get(f"/api/v1/menus/{menu_setup['menu']['id']}")
        names = [item["name"] for item in response.json()["data"]["items"]]
        assert sorted(names) == ["Lemonade", "Pancakes with jam"]

    async def test_item_filters(self, client: AsyncClient, menu_setup: dict):
        response = await client.get("/api/v1/menus/items", params={"price_min": "3"})
        assert [i["name"] for i in response.json()["data"]["data"]] == ["Pancakes with jam"]

        response = await client.get("/api/v1/menus/items", params={"category_id": menu_setup["drinks"]})
        assert [i["name"] for i in response.json()["data"]["data"]] == ["Lemonade"]

        response = await client.get("/api/v1/menus/items", params={"search": "jam"})
        assert response.json()["data"]["count"] == 1

    async def test_duplicate_names_are_rejected(self, client: AsyncClient, menu_setup: dict):
        response = await client.post("/api/v1/menus/categories", json={"name": "Drinks"})
        assert response.status_code == status.HTTP_409_CONFLICT

        response = await client.post("/api/v1/menus/", json={"name": "Lunch"})
        assert response.status_code == status.HTTP_409_CONFLICT

        response = await client.post("/api/v1/menus/items", json={
            "menu_id": menu_setup["menu"]["id"],
            "category_id": menu_setup["drinks"],
            "name": "Lemonade",
            "price": "2.5",
        })
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_unknown_references_are_rejected(self, client: AsyncClient, menu_setup: dict):
        response = await client.post("/api/v1/menus/items", json={
            "category_id": menu_setup["drinks"],
            "recipe_id": 999,
            "name": "Mystery",
            "price": "1",
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_null_and_invalid_updates_are_rejected(self, client: AsyncClient, menu_setup: dict):
        item_id = menu_setup["lemonade"]["id"]
        response = await client.put(f"/api/v1/menus/items/{item_id}", json={"price": None})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        response = await client.put(f"/api/v1/menus/items/{item_id}", json={"price": "0"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        response = await client.put(f"/api/v1/menus/{menu_setup['menu']['id']}", json={
            "start_date": "2026-06-01", "end_date": "2026-05-01"
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_changing_recipe_updates_cost(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        tea = await client.post("/api/v1/recipes/", json={
            "name": "Milk tea",
            "ingredients": [
                {"product_id": catalog["milk"], "quantity": "100", "unit_id": catalog["units"]["ml"], "cost_per_unit": "2"},
            ],
        })
        response = await client.put(f"/api/v1/menus/items/{menu_setup['lemonade']['id']}", json={
            "recipe_id": tea.json()["data"]["id"]
        })
        assert response.status_code == status.HTTP_200_OK, response.text
        assert Decimal(response.json()["data"]["cost_price"]) == Decimal("0.20")

    async def test_category_in_use_cannot_be_deleted(self, client: AsyncClient, menu_setup: dict):
        response = await client.delete(f"/api/v1/menus/categories/{menu_setup['drinks']}")
        assert response.status_code == status.HTTP_409_CONFLICT

        await client.delete(f"/api/v1/menus/items/{menu_setup['lemonade']['id']}")
        response = await client.delete(f"/api/v1/menus/categories/{menu_setup['drinks']}")
        assert response.status_code == status.HTTP_200_OK

    async def test_recipe_on_menu_cannot_be_deleted(self, client: AsyncClient, menu_setup: dict):
        response = await client.delete(f"/api/v1/recipes/{menu_setup['recipe']['id']}")
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_deleting_menu_removes_items(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        menu_id = menu_setup["menu"]["id"]
        await client.post(f"/api/v1/menus/warehouses/{catalog['kitchen']}", json={"menu_id": menu_id})

        response = await client.delete(f"/api/v1/menus/{menu_id}")
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"/api/v1/menus/items/{menu_setup['pancakes']['id']}")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        response = await client.get(f"/api/v1/menus/warehouses/{catalog['kitchen']}")
        assert response.json()["data"] == []

    async def test_menus_filtered_by_period(self, client: AsyncClient, menu_setup: dict):
        await client.post("/api/v1/menus/", json={
            "name": "Summer", "start_date": "2026-06-01", "end_date": "2026-08-31"
        })
        response = await client.get("/api/v1/menus/", params={"date_from": "2026-09-01"})
        assert [m["name"] for m in response.json()["data"]["data"]] == ["Lunch"]

        response = await client.get("/api/v1/menus/", params={"date_from": "2026-07-01", "date_to": "2026-07-31"})
        assert [m["name"] for m in response.json()["data"]["data"]] == ["Lunch", "Summer"]


@pytest.mark.asyncio
class TestMenuAvailability:
    async def test_item_without_recipe_is_available(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        response = await client.get(
            f"/api/v1/menus/items/{menu_setup['lemonade']['id']}/availability",
            params={"warehouse_id": catalog["main"]}
        )
        availability = response.json()["data"]
        assert availability["is_available"] is True
        assert availability["missing_ingredients"] == []

    async def test_recipe_stock_decides(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        await receive(client, catalog, catalog["flour"], "10", "5")
        await receive(client, catalog, catalog["milk"], "1", "2")
        url = f"/api/v1/menus/items/{menu_setup['pancakes']['id']}/availability"

        response = await client.get(url, params={"warehouse_id": catalog["main"], "quantity": "8"})
        assert response.json()["data"]["is_available"] is True

        # 10 portions need 1.25 l of milk
        response = await client.get(url, params={"warehouse_id": catalog["main"], "quantity": "10"})
        availability = response.json()["data"]
        assert availability["is_available"] is False
        assert [line["product_name"] for line in availability["missing_ingredients"]] == ["Milk"]
        assert Decimal(availability["missing_ingredients"][0]["shortage"]) == Decimal("0.25")

    async def test_switched_off_item_is_unavailable(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        item_id = menu_setup["lemonade"]["id"]
        await client.put(f"/api/v1/menus/items/{item_id}", json={"is_available": False})
        response = await client.get(
            f"/api/v1/menus/items/{item_id}/availability", params={"warehouse_id": catalog["main"]}
        )
        assert response.json()["data"]["is_available"] is False

    async def test_unknown_warehouse(self, client: AsyncClient, menu_setup: dict):
        response = await client.get(
            f"/api/v1/menus/items/{menu_setup['lemonade']['id']}/availability", params={"warehouse_id": 999}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
class TestWarehouseMenus:
    async def test_link_and_duplicate(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        url = f"/api/v1/menus/warehouses/{catalog['kitchen']}"
        response = await client.post(url, json={"menu_id": menu_setup["menu"]["id"]})
        assert response.status_code == status.HTTP_201_CREATED, response.text
        link = response.json()["data"]
        assert link["menu"]["name"] == "Lunch"
        assert link["is_active"] is True

        response = await client.post(url, json={"menu_id": menu_setup["menu"]["id"]})
        assert response.status_code == status.HTTP_409_CONFLICT

        response = await client.get(url)
        assert [l["menu_id"] for l in response.json()["data"]] == [menu_setup["menu"]["id"]]

    async def test_available_menu_groups_served_items(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        kitchen = catalog["kitchen"]
        await client.post(f"/api/v1/menus/warehouses/{kitchen}", json={"menu_id": menu_setup["menu"]["id"]})
        hidden = await client.post("/api/v1/menus/items", json={
            "menu_id": menu_setup["menu"]["id"],
            "category_id": menu_setup["drinks"],
            "name": "Cold brew",
            "price": "4",
            "is_available": False,
        })
        assert hidden.status_code == status.HTTP_201_CREATED

        response = await client.get(f"/api/v1/menus/warehouses/{kitchen}/available")
        assert response.status_code == status.HTTP_200_OK, response.text
        categories = response.json()["data"]
        assert [c["name"] for c in categories] == ["Drinks", "Desserts"]
        assert [i["name"] for i in categories[0]["items"]] == ["Lemonade"]

        response = await client.get(f"/api/v1/menus/warehouses/{catalog['main']}/available")
        assert response.json()["data"] == []

    async def test_inactive_link_and_period_hide_the_menu(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        kitchen = catalog["kitchen"]
        menu_id = menu_setup["menu"]["id"]
        await client.post(f"/api/v1/menus/warehouses/{kitchen}", json={"menu_id": menu_id})

        tomorrow = date.today() + timedelta(days=1)
        await client.put(f"/api/v1/menus/{menu_id}", json={"start_date": tomorrow.isoformat()})
        response = await client.get(f"/api/v1/menus/warehouses/{kitchen}/available")
        assert response.json()["data"] == []
        response = await client.get(
            f"/api/v1/menus/warehouses/{kitchen}/available", params={"on_date": tomorrow.isoformat()}
        )
        assert len(response.json()["data"]) == 2

        response = await client.put(f"/api/v1/menus/warehouses/{kitchen}/{menu_id}", json={"is_active": False})
        assert response.json()["data"]["is_active"] is False
        response = await client.get(
            f"/api/v1/menus/warehouses/{kitchen}/available", params={"on_date": tomorrow.isoformat()}
        )
        assert response.json()["data"] == []

    async def test_unlink(self, client: AsyncClient, catalog: dict, menu_setup: dict):
        url = f"/api/v1/menus/warehouses/{catalog['kitchen']}"
        await client.post(url, json={"menu_id": menu_setup["menu"]["id"]})

        response = await client.delete(f"{url}/{menu_setup['menu']['id']}")
        assert response.status_code == status.HTTP_200_OK
        response = await client.delete(f"{url}/{menu_setup['menu']['id']}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

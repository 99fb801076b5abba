import pytest
from httpx import AsyncClient
from fastapi import status


@pytest.mark.asyncio
class TestSettings:
    """Typed system settings"""

    async def test_defaults_are_seeded(self, client: AsyncClient):
        public = (await client.get("/api/v1/settings/")).json()["data"]
        everything = (await client.get("/api/v1/settings/", params={"include_private": True})).json()["data"]

        public_keys = {s["key"] for s in public}
        assert "app.name" in public_keys
        assert "inventory.default_margin_percent" not in public_keys
        assert len(everything) > len(public)

    async def test_get_setting_value_is_tagged(self, client: AsyncClient):
        response = await client.get("/api/v1/settings/notifications.low_stock_threshold")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["value"] == {"kind": "integer", "value": 10}

    async def test_update_keeps_registered_category(self, client: AsyncClient, user_headers: dict):
        response = await client.put(
            "/api/v1/settings/inventory.default_margin_percent",
            json={"value": {"kind": "decimal", "value": "25"}},
            headers=user_headers
        )
        assert response.status_code == status.HTTP_200_OK
        setting = response.json()["data"]
        assert setting["category"] == "inventory"
        assert setting["updated_by"] == 7

    async def test_wrong_kind_is_rejected(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/settings/notifications.low_stock_threshold",
            json={"value": {"kind": "string", "value": "ten"}}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_value_not_matching_kind_is_rejected(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/settings/notifications.low_stock_enabled",
            json={"value": {"kind": "boolean", "value": "yes"}}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_custom_setting_needs_category(self, client: AsyncClient):
        response = await client.put("/api/v1/settings/app.theme", json={"value": {"kind": "string", "value": "dark"}})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.put("/api/v1/settings/app.theme", json={
            "value": {"kind": "string", "value": "dark"}, "category": "app", "is_public": True
        })
        assert response.status_code == status.HTTP_200_OK

        response = await client.delete("/api/v1/settings/app.theme")
        assert response.status_code == status.HTTP_200_OK
        assert (await client.get("/api/v1/settings/app.theme")).status_code == status.HTTP_404_NOT_FOUND

    async def test_filter_by_category(self, client: AsyncClient):
        response = await client.get("/api/v1/settings/", params={"category": "inventory", "include_private": True})
        assert {s["category"] for s in response.json()["data"]} == {"inventory"}

        categories = (await client.get("/api/v1/settings/categories")).json()["data"]
        assert {c["category"] for c in categories} == {"app", "inventory", "notifications"}

    async def test_export_import_and_reset(self, client: AsyncClient):
        exported = (await client.get("/api/v1/settings/export")).json()["data"]
        for item in exported:
            if item["key"] == "app.language":
                item["value"]["value"] = "de"

        response = await client.post("/api/v1/settings/import", json={"settings": exported, "overwrite": True})
        result = response.json()["data"]
        assert result["created"] == 0
        assert result["updated"] == len(exported)

        language = (await client.get("/api/v1/settings/app.language")).json()["data"]
        assert language["value"]["value"] == "de"

        response = await client.post("/api/v1/settings/reset", params={"category": "app"})
        assert response.status_code == status.HTTP_200_OK
        language = (await client.get("/api/v1/settings/app.language")).json()["data"]
        assert language["value"]["value"] == "en"

import pytest
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from backoffice.models.document.document_item import DocumentItem
from tests.integration.helpers import balance_of, create_document, receive


@pytest.mark.asyncio
class TestDocumentLifecycle:
    """Posting documents to the stock ledger"""

    async def test_receipt_draft_has_number_and_total(self, client: AsyncClient, catalog: dict, user_headers: dict):
        document = await create_document(client, {
            "type": "RECEIPT",
            "supplier_id": catalog["supplier"],
            "warehouse_to_id": catalog["main"],
            "items": [
                {"product_id": catalog["flour"], "quantity": "10", "price": "5"},
                {"product_id": catalog["milk"], "quantity": "2.5", "price": "1.2"},
            ],
        }, user_headers)

        assert document["status"] == "DRAFT"
        assert document["number"].startswith("RCP-")
        assert document["created_by"] == 7
        assert Decimal(document["total_amount"]) == Decimal("53")

    async def test_weighted_average_and_writeoff(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "10", "5")
        await receive(client, catalog, catalog["flour"], "10", "7")

        balance = await balance_of(client, catalog["main"], catalog["flour"])
        assert Decimal(balance["quantity"]) == Decimal("20")
        assert Decimal(balance["avg_price"]) == Decimal("6")

        writeoff = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
            "items": [{"product_id": catalog["flour"], "quantity": "5"}],
        })
        response = await client.post(f"/api/v1/documents/{writeoff['id']}/approve")
        assert response.status_code == status.HTTP_200_OK

        movements = response.json()["data"]["movements"]
        assert len(movements) == 1
        assert movements[0]["type"] == "WRITEOFF"
        assert Decimal(movements[0]["quantity"]) == Decimal("-5")
        assert Decimal(movements[0]["price"]) == Decimal("6")

        balance = await balance_of(client, catalog["main"], catalog["flour"])
        assert Decimal(balance["quantity"]) == Decimal("15")
        assert Decimal(balance["avg_price"]) == Decimal("6")
        assert Decimal(balance["total_value"]) == Decimal("90")

    async def test_cancel_restores_balance(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "3", "1.11")
        before = await balance_of(client, catalog["main"], catalog["flour"])

        second = await receive(client, catalog, catalog["flour"], "7", "2.33")
        response = await client.post(f"/api/v1/documents/{second['id']}/cancel")
        assert response.status_code == status.HTTP_200_OK

        cancelled = response.json()["data"]
        assert cancelled["status"] == "CANCELLED"
        assert cancelled["cancelled_at"] is not None
        reversal = [m for m in cancelled["movements"] if m["reverses_id"] is not None]
        assert len(reversal) == 1
        assert Decimal(reversal[0]["quantity"]) == Decimal("-7")

        after = await balance_of(client, catalog["main"], catalog["flour"])
        for field in ("quantity", "avg_price", "total_value"):
            assert Decimal(after[field]) == Decimal(before[field])

        verify = await client.get(f"/api/v1/stock-balances/{catalog['main']}/{catalog['flour']}/verify")
        assert verify.json()["data"]["consistent"] is True
        assert verify.json()["data"]["movements_count"] == 3

    async def test_cancel_twice_is_rejected(self, client: AsyncClient, catalog: dict):
        document = await receive(client, catalog, catalog["milk"], "4", "1")
        first = await client.post(f"/api/v1/documents/{document['id']}/cancel")
        assert first.status_code == status.HTTP_200_OK

        second = await client.post(f"/api/v1/documents/{document['id']}/cancel")
        assert second.status_code == status.HTTP_409_CONFLICT
        assert second.json()["success"] is False

    async def test_cannot_cancel_draft(self, client: AsyncClient, catalog: dict):
        document = await create_document(client, {
            "type": "RECEIPT",
            "supplier_id": catalog["supplier"],
            "warehouse_to_id": catalog["main"],
            "items": [{"product_id": catalog["milk"], "quantity": "1", "price": "1"}],
        })
        response = await client.post(f"/api/v1/documents/{document['id']}/cancel")
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_approve_twice_is_rejected(self, client: AsyncClient, catalog: dict):
        document = await receive(client, catalog, catalog["milk"], "1", "1")
        response = await client.post(f"/api/v1/documents/{document['id']}/approve")
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_approve_without_items_is_rejected(self, client: AsyncClient, catalog: dict):
        document = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })
        response = await client.post(f"/api/v1/documents/{document['id']}/approve")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_insufficient_stock_leaves_everything_unchanged(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "2", "3")
        writeoff = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
            "items": [
                {"product_id": catalog["flour"], "quantity": "1"},
                {"product_id": catalog["flour"], "quantity": "5"},
            ],
        })

        response = await client.post(f"/api/v1/documents/{writeoff['id']}/approve")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Flour" in response.json()["message"]

        balance = await balance_of(client, catalog["main"], catalog["flour"])
        assert Decimal(balance["quantity"]) == Decimal("2")

        document = (await client.get(f"/api/v1/documents/{writeoff['id']}")).json()["data"]
        assert document["status"] == "DRAFT"
        assert document["movements"] == []

    async def test_transfer_moves_stock_at_source_cost(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "10", "5")
        transfer = await create_document(client, {
            "type": "TRANSFER",
            "warehouse_from_id": catalog["main"],
            "warehouse_to_id": catalog["kitchen"],
            "items": [{"product_id": catalog["flour"], "quantity": "4", "price": "99"}],
        })
        assert transfer["number"].startswith("TRF-")

        response = await client.post(f"/api/v1/documents/{transfer['id']}/approve")
        assert response.status_code == status.HTTP_200_OK
        types = sorted(m["type"] for m in response.json()["data"]["movements"])
        assert types == ["TRANSFER_IN", "TRANSFER_OUT"]

        source = await balance_of(client, catalog["main"], catalog["flour"])
        target = await balance_of(client, catalog["kitchen"], catalog["flour"])
        assert Decimal(source["quantity"]) == Decimal("6")
        assert Decimal(target["quantity"]) == Decimal("4")
        assert Decimal(target["avg_price"]) == Decimal("5")


@pytest.mark.asyncio
class TestDraftEditing:
    async def test_delete_draft_but_not_approved(self, client: AsyncClient, catalog: dict):
        draft = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })
        response = await client.delete(f"/api/v1/documents/{draft['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert (await client.get(f"/api/v1/documents/{draft['id']}")).status_code == status.HTTP_404_NOT_FOUND

        approved = await receive(client, catalog, catalog["milk"], "1", "1")
        response = await client.delete(f"/api/v1/documents/{approved['id']}")
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_items_recalculate_total(self, client: AsyncClient, catalog: dict):
        draft = await create_document(client, {
            "type": "RECEIPT",
            "supplier_id": catalog["supplier"],
            "warehouse_to_id": catalog["main"],
        })
        response = await client.post(
            f"/api/v1/documents/{draft['id']}/items",
            json={"product_id": catalog["flour"], "quantity": "3", "price": "2.5"}
        )
        assert response.status_code == status.HTTP_201_CREATED
        document = response.json()["data"]
        assert Decimal(document["total_amount"]) == Decimal("7.5")

        item_id = document["items"][0]["id"]
        response = await client.delete(f"/api/v1/documents/{draft['id']}/items/{item_id}")
        assert Decimal(response.json()["data"]["total_amount"]) == Decimal("0")

    async def test_receipt_requires_supplier(self, client: AsyncClient, catalog: dict):
        response = await client.post("/api/v1/documents/", json={
            "type": "RECEIPT",
            "warehouse_to_id": catalog["main"],
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_non_positive_quantity_is_rejected(self, client: AsyncClient, catalog: dict):
        response = await client.post("/api/v1/documents/", json={
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
            "items": [{"product_id": catalog["flour"], "quantity": "0"}],
        })
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
class TestLedgerQueries:
    async def test_movements_filtered_by_document(self, client: AsyncClient, catalog: dict):
        document = await receive(client, catalog, catalog["flour"], "5", "2")
        await receive(client, catalog, catalog["milk"], "5", "2")

        response = await client.get("/api/v1/stock-movements/", params={"document_id": document["id"]})
        page = response.json()["data"]
        assert page["count"] == 1
        assert page["data"][0]["product_id"] == catalog["flour"]

    async def test_rebuild_finds_nothing_to_correct(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "5", "2")
        await receive(client, catalog, catalog["flour"], "5", "4")

        response = await client.post("/api/v1/stock-balances/rebuild")
        result = response.json()["data"]
        assert result["balances_checked"] == 1
        assert result["balances_corrected"] == 0

    async def test_low_stock_uses_threshold_setting(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "3", "1")
        await receive(client, catalog, catalog["milk"], "50", "1")

        response = await client.get("/api/v1/stock-balances/low-stock")
        names = [item["product_name"] for item in response.json()["data"]]
        assert names == ["Flour"]

        await client.put("/api/v1/settings/notifications.low_stock_threshold", json={
            "value": {"kind": "integer", "value": 2}
        })
        response = await client.get("/api/v1/stock-balances/low-stock")
        assert response.json()["data"] == []


@pytest.mark.asyncio
class TestDocumentResponses:
    """Approved and cancelled documents load with their movements"""

    async def test_approve_and_cancel_return_full_document(self, client: AsyncClient, catalog: dict):
        document = await create_document(client, {
            "type": "RECEIPT",
            "supplier_id": catalog["supplier"],
            "warehouse_to_id": catalog["main"],
            "items": [{"product_id": catalog["flour"], "quantity": "2", "price": "3"}],
        })

        response = await client.post(f"/api/v1/documents/{document['id']}/approve")
        assert response.status_code == status.HTTP_200_OK, response.text
        approved = response.json()["data"]
        assert approved["status"] == "APPROVED"
        assert approved["supplier"]["name"] == "Fresh Farm"
        assert approved["items"][0]["product_id"] == catalog["flour"]
        assert approved["movements"][0]["warehouse"]["id"] == catalog["main"]
        assert approved["movements"][0]["product"]["name"] == "Flour"
        assert approved["movements"][0]["document_id"] == document["id"]

        response = await client.get(f"/api/v1/documents/{document['id']}")
        assert response.status_code == status.HTTP_200_OK, response.text
        assert len(response.json()["data"]["movements"]) == 1

        response = await client.post(f"/api/v1/documents/{document['id']}/cancel")
        assert response.status_code == status.HTTP_200_OK, response.text
        cancelled = response.json()["data"]
        assert cancelled["status"] == "CANCELLED"
        assert len(cancelled["movements"]) == 2
        assert all(m["product"]["name"] == "Flour" for m in cancelled["movements"])

    async def test_update_records_acting_user(self, client: AsyncClient, catalog: dict, user_headers: dict):
        draft = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })
        assert draft["updated_by"] is None

        response = await client.put(
            f"/api/v1/documents/{draft['id']}", json={"notes": "Spoiled"}, headers=user_headers
        )
        assert response.status_code == status.HTTP_200_OK, response.text
        assert response.json()["data"]["updated_by"] == 7

        response = await client.post(
            f"/api/v1/documents/{draft['id']}/items",
            json={"product_id": catalog["milk"], "quantity": "1"},
            headers={"X-User-Id": "9"}
        )
        assert response.json()["data"]["updated_by"] == 9


@pytest.mark.asyncio
class TestCancellationRoundTrips:
    async def test_delete_draft_removes_its_items(
        self, client: AsyncClient, catalog: dict, db_session: AsyncSession
    ):
        draft = await create_document(client, {
            "type": "RECEIPT",
            "supplier_id": catalog["supplier"],
            "warehouse_to_id": catalog["main"],
            "items": [
                {"product_id": catalog["flour"], "quantity": "1", "price": "1"},
                {"product_id": catalog["milk"], "quantity": "2", "price": "1"},
            ],
        })

        response = await client.delete(f"/api/v1/documents/{draft['id']}")
        assert response.status_code == status.HTTP_200_OK, response.text

        remaining = await db_session.scalar(
            select(func.count(DocumentItem.id)).where(DocumentItem.document_id == draft["id"])
        )
        assert remaining == 0

    async def test_cancelled_transfer_restores_both_warehouses(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["flour"], "10", "5")
        transfer = await create_document(client, {
            "type": "TRANSFER",
            "warehouse_from_id": catalog["main"],
            "warehouse_to_id": catalog["kitchen"],
            "items": [{"product_id": catalog["flour"], "quantity": "4"}],
        })
        await client.post(f"/api/v1/documents/{transfer['id']}/approve")

        response = await client.post(f"/api/v1/documents/{transfer['id']}/cancel")
        assert response.status_code == status.HTTP_200_OK, response.text

        source = await balance_of(client, catalog["main"], catalog["flour"])
        target = await balance_of(client, catalog["kitchen"], catalog["flour"])
        assert Decimal(source["quantity"]) == Decimal("10")
        assert Decimal(source["avg_price"]) == Decimal("5")
        assert Decimal(target["quantity"]) == Decimal("0")

        for warehouse_id in (catalog["main"], catalog["kitchen"]):
            verify = await client.get(f"/api/v1/stock-balances/{warehouse_id}/{catalog['flour']}/verify")
            assert verify.json()["data"]["consistent"] is True

    async def test_cancelled_writeoff_returns_goods_at_their_cost(self, client: AsyncClient, catalog: dict):
        await receive(client, catalog, catalog["milk"], "10", "6")
        writeoff = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
            "items": [{"product_id": catalog["milk"], "quantity": "4"}],
        })
        await client.post(f"/api/v1/documents/{writeoff['id']}/approve")

        response = await client.post(f"/api/v1/documents/{writeoff['id']}/cancel")
        assert response.status_code == status.HTTP_200_OK, response.text

        balance = await balance_of(client, catalog["main"], catalog["milk"])
        assert Decimal(balance["quantity"]) == Decimal("10")
        assert Decimal(balance["avg_price"]) == Decimal("6")
        assert Decimal(balance["total_value"]) == Decimal("60")

    async def test_cannot_cancel_receipt_whose_goods_were_used(self, client: AsyncClient, catalog: dict):
        receipt = await receive(client, catalog, catalog["flour"], "5", "2")
        writeoff = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
            "items": [{"product_id": catalog["flour"], "quantity": "4"}],
        })
        await client.post(f"/api/v1/documents/{writeoff['id']}/approve")

        response = await client.post(f"/api/v1/documents/{receipt['id']}/cancel")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        document = (await client.get(f"/api/v1/documents/{receipt['id']}")).json()["data"]
        assert document["status"] == "APPROVED"
        assert len(document["movements"]) == 1

        balance = await balance_of(client, catalog["main"], catalog["flour"])
        assert Decimal(balance["quantity"]) == Decimal("1")

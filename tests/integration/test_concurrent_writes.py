import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select
from backoffice.core.exceptions import ConflictError
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.services.document.document_service import DocumentService
from backoffice.services.inventory.inventory_count_service import InventoryCountService
from backoffice.services.warehouse.stock_movement_service import StockMovementService
from tests.integration.helpers import create_document, receive


class _NoRow:
    """Result of a SELECT that ran before another transaction inserted the row"""

    def scalar_one_or_none(self):
        return None


@pytest.mark.asyncio
class TestConcurrentInserts:
    """Unique-key races surface as 409 instead of a server error"""

    async def test_balance_created_by_another_transaction(self, session_maker, catalog: dict):
        async with session_maker() as first:
            first.add(StockBalance(
                warehouse_id=catalog["main"], product_id=catalog["flour"],
                quantity=0, avg_price=0, total_value=0
            ))
            await first.commit()

        async with session_maker() as second:
            async def stale_execute(*args, **kwargs):
                return _NoRow()

            second.execute = stale_execute
            with pytest.raises(ConflictError) as error:
                await StockMovementService(second)._get_balance_for_update(catalog["main"], catalog["flour"])
            assert "created concurrently" in error.value.detail
            await second.rollback()

        async with session_maker() as check:
            rows = (await check.execute(
                select(StockBalance).where(
                    StockBalance.warehouse_id == catalog["main"],
                    StockBalance.product_id == catalog["flour"]
                )
            )).scalars().all()
            assert len(rows) == 1

    async def test_document_number_taken_concurrently(self, client: AsyncClient, catalog: dict, monkeypatch):
        existing = await create_document(client, {
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })

        async def taken_number(self, document_type):
            return existing["number"]

        monkeypatch.setattr(DocumentService, "_generate_document_number", taken_number)
        response = await client.post("/api/v1/documents/", json={
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })
        assert response.status_code == status.HTTP_409_CONFLICT
        assert "retry" in response.json()["message"]

        monkeypatch.undo()
        response = await client.post("/api/v1/documents/", json={
            "type": "WRITEOFF",
            "warehouse_from_id": catalog["main"],
        })
        assert response.status_code == status.HTTP_201_CREATED

    async def test_count_number_taken_concurrently(self, client: AsyncClient, catalog: dict, monkeypatch):
        await receive(client, catalog, catalog["flour"], "1", "1")
        response = await client.post("/api/v1/inventory-counts/", json={"warehouse_id": catalog["main"]})
        assert response.status_code == status.HTTP_201_CREATED, response.text
        existing = response.json()["data"]["number"]

        async def taken_number(self):
            return existing

        monkeypatch.setattr(InventoryCountService, "_generate_count_number", taken_number)
        response = await client.post("/api/v1/inventory-counts/", json={"warehouse_id": catalog["main"]})
        assert response.status_code == status.HTTP_409_CONFLICT

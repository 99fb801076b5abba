from httpx import AsyncClient
from fastapi import status


async def create_document(client: AsyncClient, payload: dict, headers: dict = None) -> dict:
    response = await client.post("/api/v1/documents/", json=payload, headers=headers or {})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["data"]


async def receive(client: AsyncClient, catalog: dict, product_id: int, quantity: str, price: str) -> dict:
    """Approved receipt into the main warehouse"""
    document = await create_document(client, {
        "type": "RECEIPT",
        "supplier_id": catalog["supplier"],
        "warehouse_to_id": catalog["main"],
        "items": [{"product_id": product_id, "quantity": quantity, "price": price}],
    })
    response = await client.post(f"/api/v1/documents/{document['id']}/approve")
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()["data"]


async def balance_of(client: AsyncClient, warehouse_id: int, product_id: int) -> dict:
    response = await client.get(f"/api/v1/stock-balances/{warehouse_id}")
    assert response.status_code == status.HTTP_200_OK
    for balance in response.json()["data"]:
        if balance["product_id"] == product_id:
            return balance
    return {"quantity": "0", "avg_price": "0", "total_value": "0"}

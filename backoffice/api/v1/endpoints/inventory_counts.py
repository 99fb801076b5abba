from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from backoffice.api.dependencies import get_current_user_id
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import InventoryCountStatus
from backoffice.services.inventory.inventory_count_service import InventoryCountService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.document.document import DocumentResponse
from backoffice.schemas.inventory.inventory_count import (
    AdjustmentDocuments, InventoryCountCreate, InventoryCountItemResponse, InventoryCountItemUpdate,
    InventoryCountResponse, VarianceAnalysis
)

router = APIRouter()

@router.post("/", response_model=ApiResponse[InventoryCountResponse], status_code=status.HTTP_201_CREATED)
async def create_inventory_count(
    count_data: InventoryCountCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Create a count sheet from the warehouse's current balances"""
    service = InventoryCountService(db)
    inventory_count = await service.create_inventory_count(count_data, current_user_id)
    return ApiResponse(data=InventoryCountResponse.model_validate(inventory_count), message="Inventory count created")

@router.get("/", response_model=ApiResponse[PaginatedData[InventoryCountResponse]])
async def get_inventory_counts(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    warehouse_id: Optional[int] = Query(None),
    status: Optional[InventoryCountStatus] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    service = InventoryCountService(db)
    result = await service.get_inventory_counts(page_index, page_size, warehouse_id, status)
    return ApiResponse(data=to_page(result, InventoryCountResponse))

@router.put("/items/{item_id}", response_model=ApiResponse[InventoryCountItemResponse])
async def update_inventory_count_item(
    item_id: int,
    item_data: InventoryCountItemUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    """Record the counted quantity of an item"""
    service = InventoryCountService(db)
    item = await service.update_item(item_id, item_data)
    return ApiResponse(data=InventoryCountItemResponse.model_validate(item), message="Item updated")

@router.get("/{count_id}", response_model=ApiResponse[InventoryCountResponse])
async def get_inventory_count(count_id: int, db: AsyncSession = Depends(get_async_session)):
    service = InventoryCountService(db)
    inventory_count = await service.get_inventory_count(count_id)
    return ApiResponse(data=InventoryCountResponse.model_validate(inventory_count))

@router.get("/{count_id}/variances", response_model=ApiResponse[VarianceAnalysis])
async def get_variances(count_id: int, db: AsyncSession = Depends(get_async_session)):
    """Quantity and value variances of the counted items"""
    service = InventoryCountService(db)
    analysis = await service.get_variances(count_id)
    return ApiResponse(data=VarianceAnalysis.model_validate(analysis))

@router.post("/{count_id}/adjustments", response_model=ApiResponse[AdjustmentDocuments], status_code=status.HTTP_201_CREATED)
async def create_adjustment_documents(
    count_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Create DRAFT adjustment documents for the variances"""
    service = InventoryCountService(db)
    documents = await service.create_adjustment_documents(count_id, current_user_id)
    return ApiResponse(
        data=AdjustmentDocuments(**{
            kind: DocumentResponse.model_validate(document) if document else None
            for kind, document in documents.items()
        }),
        message="Adjustment documents created"
    )

@router.post("/{count_id}/complete", response_model=ApiResponse[InventoryCountResponse])
async def complete_inventory_count(count_id: int, db: AsyncSession = Depends(get_async_session)):
    service = InventoryCountService(db)
    inventory_count = await service.complete_inventory_count(count_id)
    return ApiResponse(data=InventoryCountResponse.model_validate(inventory_count), message="Inventory count completed")

from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import MovementType
from backoffice.services.warehouse.stock_movement_service import StockMovementService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.warehouse.stock_movement import StockMovementResponse

router = APIRouter()

@router.get("/", response_model=ApiResponse[PaginatedData[StockMovementResponse]])
async def get_stock_movements(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    warehouse_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    type: Optional[MovementType] = Query(None),
    document_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Movement history, newest first"""
    service = StockMovementService(db)
    result = await service.get_movements(
        page_index=page_index,
        page_size=page_size,
        warehouse_id=warehouse_id,
        product_id=product_id,
        movement_type=type,
        document_id=document_id,
        date_from=date_from,
        date_to=date_to
    )
    return ApiResponse(data=to_page(result, StockMovementResponse))

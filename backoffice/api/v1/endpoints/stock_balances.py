from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.core.database import get_async_session
from backoffice.services.warehouse.stock_balance_service import StockBalanceService
from backoffice.services.warehouse.stock_movement_service import StockMovementService
from backoffice.services.system.system_setting_service import LOW_STOCK_THRESHOLD_KEY, SystemSettingService
from backoffice.schemas.common.response import ApiResponse
from backoffice.schemas.warehouse.stock_balance import (
    BalanceRebuildResult, BalanceVerification, LowStockItem, StockBalanceResponse
)
from backoffice.utils.decimals import to_decimal

router = APIRouter()

@router.get("/low-stock", response_model=ApiResponse[List[LowStockItem]])
async def get_low_stock(
    threshold: Optional[Decimal] = Query(None, ge=0),
    warehouse_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Balances at or below the low stock threshold"""
    if threshold is None:
        threshold = to_decimal(await SystemSettingService(db).get_value(LOW_STOCK_THRESHOLD_KEY))
    service = StockBalanceService(db)
    items = await service.get_low_stock(threshold, warehouse_id)
    return ApiResponse(data=[LowStockItem.model_validate(item) for item in items])

@router.post("/rebuild", response_model=ApiResponse[BalanceRebuildResult])
async def rebuild_balances(
    warehouse_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Rewrite stored balances from the movement history"""
    service = StockMovementService(db)
    result = await service.rebuild_balances(warehouse_id)
    return ApiResponse(data=BalanceRebuildResult.model_validate(result), message="Balances rebuilt")

@router.get("/{warehouse_id}", response_model=ApiResponse[List[StockBalanceResponse]])
async def get_warehouse_balances(
    warehouse_id: int,
    only_positive: bool = Query(False),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get the stock balances of a warehouse"""
    service = StockBalanceService(db)
    balances = await service.get_warehouse_balances(warehouse_id, only_positive, search)
    return ApiResponse(data=[StockBalanceResponse.model_validate(b) for b in balances])

@router.get("/{warehouse_id}/{product_id}/verify", response_model=ApiResponse[BalanceVerification])
async def verify_balance(
    warehouse_id: int,
    product_id: int,
    db: AsyncSession = Depends(get_async_session)
):
    """Compare a stored balance with the fold of its movement history"""
    service = StockMovementService(db)
    result = await service.verify_balance(warehouse_id, product_id)
    return ApiResponse(data=BalanceVerification.model_validate(result))

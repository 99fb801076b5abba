from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import WarehouseType
from backoffice.services.warehouse.warehouse_service import WarehouseService
from backoffice.schemas.common.response import ApiResponse
from backoffice.schemas.warehouse.warehouse import WarehouseCreate, WarehouseResponse, WarehouseUpdate

router = APIRouter()

@router.post("/", response_model=ApiResponse[WarehouseResponse], status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    warehouse_data: WarehouseCreate,
    db: AsyncSession = Depends(get_async_session)
):
    service = WarehouseService(db)
    warehouse = await service.create_warehouse(warehouse_data)
    return ApiResponse(data=WarehouseResponse.model_validate(warehouse), message="Warehouse created")

@router.get("/", response_model=ApiResponse[List[WarehouseResponse]])
async def get_warehouses(
    include_inactive: bool = Query(False),
    type: Optional[WarehouseType] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    service = WarehouseService(db)
    warehouses = await service.get_warehouses(include_inactive, type)
    return ApiResponse(data=[WarehouseResponse.model_validate(w) for w in warehouses])

@router.get("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
async def get_warehouse(warehouse_id: int, db: AsyncSession = Depends(get_async_session)):
    service = WarehouseService(db)
    warehouse = await service.get_warehouse(warehouse_id)
    return ApiResponse(data=WarehouseResponse.model_validate(warehouse))

@router.put("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
async def update_warehouse(
    warehouse_id: int,
    warehouse_data: WarehouseUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = WarehouseService(db)
    warehouse = await service.update_warehouse(warehouse_id, warehouse_data)
    return ApiResponse(data=WarehouseResponse.model_validate(warehouse), message="Warehouse updated")

@router.delete("/{warehouse_id}", response_model=ApiResponse[None])
async def delete_warehouse(warehouse_id: int, db: AsyncSession = Depends(get_async_session)):
    """Deactivate an empty warehouse"""
    service = WarehouseService(db)
    await service.delete_warehouse(warehouse_id)
    return ApiResponse(message="Warehouse deleted")

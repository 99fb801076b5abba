from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import UnitType
from backoffice.services.nomenclature.unit_service import UnitService
from backoffice.schemas.common.response import ApiResponse
from backoffice.schemas.nomenclature.unit import (
    UnitConvertRequest, UnitConvertResponse, UnitCreate, UnitDetailResponse, UnitResponse, UnitUpdate
)

router = APIRouter()

@router.post("/", response_model=ApiResponse[UnitDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_unit(
    unit_data: UnitCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """Create a new unit of measure"""
    service = UnitService(db)
    unit = await service.create_unit(unit_data)
    return ApiResponse(data=UnitDetailResponse.model_validate(unit), message="Unit created")

@router.get("/", response_model=ApiResponse[List[UnitResponse]])
async def get_units(
    type: Optional[UnitType] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get all units, optionally of one type"""
    service = UnitService(db)
    units = await service.get_units(type)
    return ApiResponse(data=[UnitResponse.model_validate(u) for u in units])

@router.get("/base", response_model=ApiResponse[List[UnitResponse]])
async def get_base_units(db: AsyncSession = Depends(get_async_session)):
    """Get units without a base unit"""
    service = UnitService(db)
    units = await service.get_base_units()
    return ApiResponse(data=[UnitResponse.model_validate(u) for u in units])

@router.post("/convert", response_model=ApiResponse[UnitConvertResponse])
async def convert_quantity(
    request: UnitConvertRequest,
    db: AsyncSession = Depends(get_async_session)
):
    """Convert a quantity between two units of the same type"""
    service = UnitService(db)
    converted = await service.convert(request.quantity, request.from_unit_id, request.to_unit_id)
    return ApiResponse(data=UnitConvertResponse(
        from_unit_id=request.from_unit_id,
        to_unit_id=request.to_unit_id,
        quantity=request.quantity,
        converted_quantity=converted
    ))

@router.get("/{unit_id}", response_model=ApiResponse[UnitDetailResponse])
async def get_unit(unit_id: int, db: AsyncSession = Depends(get_async_session)):
    service = UnitService(db)
    unit = await service.get_unit(unit_id)
    return ApiResponse(data=UnitDetailResponse.model_validate(unit))

@router.get("/{unit_id}/chain", response_model=ApiResponse[List[UnitResponse]])
async def get_conversion_chain(unit_id: int, db: AsyncSession = Depends(get_async_session)):
    """Base-unit chain from the root unit down to this one"""
    service = UnitService(db)
    chain = await service.get_conversion_chain(unit_id)
    return ApiResponse(data=[UnitResponse.model_validate(u) for u in chain])

@router.put("/{unit_id}", response_model=ApiResponse[UnitDetailResponse])
async def update_unit(
    unit_id: int,
    unit_data: UnitUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = UnitService(db)
    unit = await service.update_unit(unit_id, unit_data)
    return ApiResponse(data=UnitDetailResponse.model_validate(unit), message="Unit updated")

@router.delete("/{unit_id}", response_model=ApiResponse[None])
async def delete_unit(unit_id: int, db: AsyncSession = Depends(get_async_session)):
    service = UnitService(db)
    await service.delete_unit(unit_id)
    return ApiResponse(message="Unit deleted")

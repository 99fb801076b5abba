from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.api.dependencies import get_current_user_id
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import SettingCategory
from backoffice.services.system.system_setting_service import SystemSettingService
from backoffice.schemas.common.response import ApiResponse
from backoffice.schemas.system.system_setting import (
    CategoryInfo, SettingExportItem, SettingResponse, SettingsImport, SettingsImportResult, SettingUpsert
)

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[SettingResponse]])
async def get_settings(
    include_private: bool = Query(False),
    category: Optional[SettingCategory] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get settings, public ones only unless asked otherwise"""
    service = SystemSettingService(db)
    if category:
        settings = await service.get_settings_by_category(category, include_private)
    else:
        settings = await service.get_settings(include_private)
    return ApiResponse(data=[SettingResponse.model_validate(s) for s in settings])

@router.get("/categories", response_model=ApiResponse[List[CategoryInfo]])
async def get_categories(db: AsyncSession = Depends(get_async_session)):
    service = SystemSettingService(db)
    categories = await service.get_categories()
    return ApiResponse(data=[CategoryInfo.model_validate(c) for c in categories])

@router.get("/export", response_model=ApiResponse[List[SettingExportItem]])
async def export_settings(db: AsyncSession = Depends(get_async_session)):
    service = SystemSettingService(db)
    return ApiResponse(data=await service.export_settings())

@router.post("/import", response_model=ApiResponse[SettingsImportResult])
async def import_settings(
    import_data: SettingsImport,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    service = SystemSettingService(db)
    result = await service.import_settings(import_data, current_user_id)
    return ApiResponse(data=SettingsImportResult.model_validate(result), message="Settings imported")

@router.post("/reset", response_model=ApiResponse[int])
async def reset_settings(
    category: Optional[SettingCategory] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Restore registered settings to their default values"""
    service = SystemSettingService(db)
    reset = await service.reset_to_defaults(category)
    return ApiResponse(data=reset, message=f"{reset} settings reset")

@router.get("/{key}", response_model=ApiResponse[SettingResponse])
async def get_setting(key: str, db: AsyncSession = Depends(get_async_session)):
    service = SystemSettingService(db)
    setting = await service.get_setting(key)
    return ApiResponse(data=SettingResponse.model_validate(setting))

@router.put("/{key}", response_model=ApiResponse[SettingResponse])
async def upsert_setting(
    key: str,
    setting_data: SettingUpsert,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Create or update a setting"""
    service = SystemSettingService(db)
    setting = await service.upsert_setting(key, setting_data, current_user_id)
    return ApiResponse(data=SettingResponse.model_validate(setting), message="Setting saved")

@router.delete("/{key}", response_model=ApiResponse[None])
async def delete_setting(key: str, db: AsyncSession = Depends(get_async_session)):
    service = SystemSettingService(db)
    await service.delete_setting(key)
    return ApiResponse(message="Setting deleted")

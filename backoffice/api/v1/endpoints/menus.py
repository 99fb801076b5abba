from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.api.dependencies import get_current_user_id
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.services.menu.menu_service import MenuService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.menu.menu import (
    AvailableMenuCategory, MenuCategoryCreate, MenuCategoryResponse, MenuCategoryUpdate,
    MenuCreate, MenuDetailResponse, MenuItemAvailability, MenuItemCreate, MenuItemResponse,
    MenuItemUpdate, MenuResponse, MenuUpdate, WarehouseMenuCreate, WarehouseMenuResponse,
    WarehouseMenuUpdate
)

router = APIRouter()

# Categories

@router.post("/categories", response_model=ApiResponse[MenuCategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(category_data: MenuCategoryCreate, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    category = await service.create_category(category_data)
    return ApiResponse(data=MenuCategoryResponse.model_validate(category), message="Menu category created")

@router.get("/categories", response_model=ApiResponse[PaginatedData[MenuCategoryResponse]])
async def get_categories(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    result = await service.get_categories(page_index, page_size, search, is_active)
    return ApiResponse(data=to_page(result, MenuCategoryResponse))

@router.get("/categories/{category_id}", response_model=ApiResponse[MenuCategoryResponse])
async def get_category(category_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    category = await service.get_category(category_id)
    return ApiResponse(data=MenuCategoryResponse.model_validate(category))

@router.put("/categories/{category_id}", response_model=ApiResponse[MenuCategoryResponse])
async def update_category(
    category_id: int,
    category_data: MenuCategoryUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    category = await service.update_category(category_id, category_data)
    return ApiResponse(data=MenuCategoryResponse.model_validate(category), message="Menu category updated")

@router.delete("/categories/{category_id}", response_model=ApiResponse[None])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    await service.delete_category(category_id)
    return ApiResponse(message="Menu category deleted")

# Items

@router.post("/items", response_model=ApiResponse[MenuItemResponse], status_code=status.HTTP_201_CREATED)
async def create_item(item_data: MenuItemCreate, db: AsyncSession = Depends(get_async_session)):
    """Create a menu item; without a cost price it takes the recipe's"""
    service = MenuService(db)
    item = await service.create_item(item_data)
    return ApiResponse(data=MenuItemResponse.model_validate(item), message="Menu item created")

@router.get("/items", response_model=ApiResponse[PaginatedData[MenuItemResponse]])
async def get_items(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    menu_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    recipe_id: Optional[int] = Query(None),
    is_available: Optional[bool] = Query(None),
    is_active: Optional[bool] = Query(None),
    price_min: Optional[Decimal] = Query(None, ge=0),
    price_max: Optional[Decimal] = Query(None, ge=0),
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    result = await service.get_items(
        page_index, page_size, search, menu_id, category_id, recipe_id,
        is_available, is_active, price_min, price_max
    )
    return ApiResponse(data=to_page(result, MenuItemResponse))

@router.get("/items/{item_id}", response_model=ApiResponse[MenuItemResponse])
async def get_item(item_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    item = await service.get_item(item_id)
    return ApiResponse(data=MenuItemResponse.model_validate(item))

@router.put("/items/{item_id}", response_model=ApiResponse[MenuItemResponse])
async def update_item(item_id: int, item_data: MenuItemUpdate, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    item = await service.update_item(item_id, item_data)
    return ApiResponse(data=MenuItemResponse.model_validate(item), message="Menu item updated")

@router.delete("/items/{item_id}", response_model=ApiResponse[None])
async def delete_item(item_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    await service.delete_item(item_id)
    return ApiResponse(message="Menu item deleted")

@router.get("/items/{item_id}/availability", response_model=ApiResponse[MenuItemAvailability])
async def check_item_availability(
    item_id: int,
    warehouse_id: int = Query(...),
    quantity: Decimal = Query(Decimal("1"), gt=0),
    db: AsyncSession = Depends(get_async_session)
):
    """Whether a warehouse holds the ingredients for ``quantity`` portions of the item"""
    service = MenuService(db)
    availability = await service.check_item_availability(item_id, warehouse_id, quantity)
    return ApiResponse(data=MenuItemAvailability.model_validate(availability))

# Warehouse menus

@router.get("/warehouses/{warehouse_id}", response_model=ApiResponse[List[WarehouseMenuResponse]])
async def get_warehouse_menus(warehouse_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    links = await service.get_warehouse_menus(warehouse_id)
    return ApiResponse(data=[WarehouseMenuResponse.model_validate(link) for link in links])

@router.post(
    "/warehouses/{warehouse_id}",
    response_model=ApiResponse[WarehouseMenuResponse],
    status_code=status.HTTP_201_CREATED
)
async def add_warehouse_menu(
    warehouse_id: int,
    link_data: WarehouseMenuCreate,
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    link = await service.add_warehouse_menu(warehouse_id, link_data)
    return ApiResponse(data=WarehouseMenuResponse.model_validate(link), message="Menu linked to warehouse")

@router.get("/warehouses/{warehouse_id}/available", response_model=ApiResponse[List[AvailableMenuCategory]])
async def get_available_menu(
    warehouse_id: int,
    on_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Categories and items the warehouse serves, today unless ``on_date`` is given"""
    service = MenuService(db)
    categories = await service.get_available_menu(warehouse_id, on_date)
    return ApiResponse(data=[
        AvailableMenuCategory(
            id=category["id"],
            name=category["name"],
            sort_order=category["sort_order"],
            items=[MenuItemResponse.model_validate(item) for item in category["items"]]
        )
        for category in categories
    ])

@router.put("/warehouses/{warehouse_id}/{menu_id}", response_model=ApiResponse[WarehouseMenuResponse])
async def update_warehouse_menu(
    warehouse_id: int,
    menu_id: int,
    link_data: WarehouseMenuUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    link = await service.update_warehouse_menu(warehouse_id, menu_id, link_data)
    return ApiResponse(data=WarehouseMenuResponse.model_validate(link), message="Warehouse menu updated")

@router.delete("/warehouses/{warehouse_id}/{menu_id}", response_model=ApiResponse[None])
async def remove_warehouse_menu(warehouse_id: int, menu_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    await service.remove_warehouse_menu(warehouse_id, menu_id)
    return ApiResponse(message="Menu unlinked from warehouse")

# Menus

@router.post("/", response_model=ApiResponse[MenuDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_menu(
    menu_data: MenuCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    service = MenuService(db)
    menu = await service.create_menu(menu_data, current_user_id)
    return ApiResponse(data=MenuDetailResponse.model_validate(menu), message="Menu created")

@router.get("/", response_model=ApiResponse[PaginatedData[MenuResponse]])
async def get_menus(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    service = MenuService(db)
    result = await service.get_menus(page_index, page_size, search, is_active, date_from, date_to)
    return ApiResponse(data=to_page(result, MenuResponse))

@router.get("/{menu_id}", response_model=ApiResponse[MenuDetailResponse])
async def get_menu(menu_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    menu = await service.get_menu(menu_id)
    return ApiResponse(data=MenuDetailResponse.model_validate(menu))

@router.put("/{menu_id}", response_model=ApiResponse[MenuDetailResponse])
async def update_menu(menu_id: int, menu_data: MenuUpdate, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    menu = await service.update_menu(menu_id, menu_data)
    return ApiResponse(data=MenuDetailResponse.model_validate(menu), message="Menu updated")

@router.delete("/{menu_id}", response_model=ApiResponse[None])
async def delete_menu(menu_id: int, db: AsyncSession = Depends(get_async_session)):
    service = MenuService(db)
    await service.delete_menu(menu_id)
    return ApiResponse(message="Menu deleted")

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.services.nomenclature.product_service import ProductService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.nomenclature.product import ProductCreate, ProductResponse, ProductUpdate

router = APIRouter()

@router.post("/", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """Create a new product"""
    service = ProductService(db)
    product = await service.create_product(product_data)
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product created")

@router.get("/", response_model=ApiResponse[PaginatedData[ProductResponse]])
async def get_products(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get products with pagination and filters"""
    service = ProductService(db)
    result = await service.get_products(
        page_index=page_index,
        page_size=page_size,
        search=search,
        category_id=category_id,
        is_active=is_active
    )
    return ApiResponse(data=to_page(result, ProductResponse))

@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(product_id: int, db: AsyncSession = Depends(get_async_session)):
    service = ProductService(db)
    product = await service.get_product(product_id)
    return ApiResponse(data=ProductResponse.model_validate(product))

@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = ProductService(db)
    product = await service.update_product(product_id, product_data)
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product updated")

@router.delete("/{product_id}", response_model=ApiResponse[ProductResponse])
async def deactivate_product(product_id: int, db: AsyncSession = Depends(get_async_session)):
    """Deactivate a product; its stock history is kept"""
    service = ProductService(db)
    product = await service.deactivate_product(product_id)
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product deactivated")

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.services.purchase.supplier_service import SupplierService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.document.document import DocumentResponse
from backoffice.schemas.purchase.supplier import SupplierCreate, SupplierResponse, SupplierUpdate

router = APIRouter()

@router.post("/", response_model=ApiResponse[SupplierResponse], status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """Create a new supplier"""
    service = SupplierService(db)
    supplier = await service.create_supplier(supplier_data)
    return ApiResponse(data=SupplierResponse.model_validate(supplier), message="Supplier created")

@router.get("/", response_model=ApiResponse[PaginatedData[SupplierResponse]])
async def get_suppliers(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get suppliers with pagination and filters"""
    service = SupplierService(db)
    result = await service.get_suppliers(
        page_index=page_index,
        page_size=page_size,
        search=search,
        is_active=is_active
    )
    return ApiResponse(data=to_page(result, SupplierResponse))

@router.get("/{supplier_id}", response_model=ApiResponse[SupplierResponse])
async def get_supplier(supplier_id: int, db: AsyncSession = Depends(get_async_session)):
    """Get supplier by ID"""
    service = SupplierService(db)
    supplier = await service.get_supplier(supplier_id)
    return ApiResponse(data=SupplierResponse.model_validate(supplier))

@router.get("/{supplier_id}/documents", response_model=ApiResponse[PaginatedData[DocumentResponse]])
async def get_supplier_documents(
    supplier_id: int,
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_async_session)
):
    """Get the documents of a supplier"""
    service = SupplierService(db)
    result = await service.get_supplier_documents(supplier_id, page_index, page_size)
    return ApiResponse(data=to_page(result, DocumentResponse))

@router.put("/{supplier_id}", response_model=ApiResponse[SupplierResponse])
async def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    """Update supplier"""
    service = SupplierService(db)
    supplier = await service.update_supplier(supplier_id, supplier_data)
    return ApiResponse(data=SupplierResponse.model_validate(supplier), message="Supplier updated")

@router.delete("/{supplier_id}", response_model=ApiResponse[None])
async def delete_supplier(supplier_id: int, db: AsyncSession = Depends(get_async_session)):
    """Delete a supplier without documents"""
    service = SupplierService(db)
    await service.delete_supplier(supplier_id)
    return ApiResponse(message="Supplier deleted")

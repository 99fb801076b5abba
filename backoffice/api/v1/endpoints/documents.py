from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from backoffice.api.dependencies import get_current_user_id
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.models.shared.enums import DocumentStatus, DocumentType
from backoffice.services.document.document_service import DocumentService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.document.document import (
    DocumentCreate, DocumentDetailResponse, DocumentItemCreate, DocumentResponse, DocumentUpdate
)

router = APIRouter()

@router.post("/", response_model=ApiResponse[DocumentDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Create a DRAFT document"""
    service = DocumentService(db)
    document = await service.create_document(document_data, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Document created")

@router.get("/", response_model=ApiResponse[PaginatedData[DocumentResponse]])
async def get_documents(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    type: Optional[DocumentType] = Query(None),
    status: Optional[DocumentStatus] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    """Get documents with pagination and filters"""
    service = DocumentService(db)
    result = await service.get_documents(
        page_index=page_index,
        page_size=page_size,
        document_type=type,
        status=status,
        warehouse_id=warehouse_id,
        supplier_id=supplier_id,
        date_from=date_from,
        date_to=date_to
    )
    return ApiResponse(data=to_page(result, DocumentResponse))

@router.get("/{document_id}", response_model=ApiResponse[DocumentDetailResponse])
async def get_document(document_id: int, db: AsyncSession = Depends(get_async_session)):
    """Get a document with its items and movements"""
    service = DocumentService(db)
    document = await service.get_document(document_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document))

@router.put("/{document_id}", response_model=ApiResponse[DocumentDetailResponse])
async def update_document(
    document_id: int,
    document_data: DocumentUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Update the header of a DRAFT document"""
    service = DocumentService(db)
    document = await service.update_document(document_id, document_data, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Document updated")

@router.delete("/{document_id}", response_model=ApiResponse[None])
async def delete_document(document_id: int, db: AsyncSession = Depends(get_async_session)):
    """Delete a DRAFT document with its items"""
    service = DocumentService(db)
    await service.delete_document(document_id)
    return ApiResponse(message="Document deleted")

@router.post("/{document_id}/items", response_model=ApiResponse[DocumentDetailResponse], status_code=status.HTTP_201_CREATED)
async def add_document_item(
    document_id: int,
    item_data: DocumentItemCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    service = DocumentService(db)
    document = await service.add_item(document_id, item_data, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Item added")

@router.delete("/{document_id}/items/{item_id}", response_model=ApiResponse[DocumentDetailResponse])
async def remove_document_item(
    document_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    service = DocumentService(db)
    document = await service.remove_item(document_id, item_id, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Item removed")

@router.post("/{document_id}/approve", response_model=ApiResponse[DocumentDetailResponse])
async def approve_document(
    document_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Approve a DRAFT document and post its stock movements"""
    service = DocumentService(db)
    document = await service.approve_document(document_id, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Document approved")

@router.post("/{document_id}/cancel", response_model=ApiResponse[DocumentDetailResponse])
async def cancel_document(
    document_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Cancel an APPROVED document by posting compensating movements"""
    service = DocumentService(db)
    document = await service.cancel_document(document_id, current_user_id)
    return ApiResponse(data=DocumentDetailResponse.model_validate(document), message="Document cancelled")

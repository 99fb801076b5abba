from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from backoffice.core.database import get_async_session
from backoffice.services.nomenclature.category_service import CategoryService
from backoffice.schemas.common.response import ApiResponse
from backoffice.schemas.nomenclature.category import (
    CategoryCreate, CategoryMove, CategoryResponse, CategoryTreeNode, CategoryUpdate
)

router = APIRouter()

@router.post("/", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    db: AsyncSession = Depends(get_async_session)
):
    """Create a new category"""
    service = CategoryService(db)
    category = await service.create_category(category_data)
    return ApiResponse(data=CategoryResponse.model_validate(category), message="Category created")

@router.get("/", response_model=ApiResponse[List[CategoryResponse]])
async def get_categories(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_async_session)
):
    service = CategoryService(db)
    categories = await service.get_categories(include_inactive)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in categories])

@router.get("/tree", response_model=ApiResponse[List[CategoryTreeNode]])
async def get_category_tree(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_async_session)
):
    """Get categories as a nested tree"""
    service = CategoryService(db)
    tree = await service.get_category_tree(include_inactive)
    return ApiResponse(data=[CategoryTreeNode.model_validate(node) for node in tree])

@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def get_category(category_id: int, db: AsyncSession = Depends(get_async_session)):
    service = CategoryService(db)
    category = await service.get_category(category_id)
    return ApiResponse(data=CategoryResponse.model_validate(category))

@router.get("/{category_id}/path", response_model=ApiResponse[List[CategoryResponse]])
async def get_category_path(category_id: int, db: AsyncSession = Depends(get_async_session)):
    """Get the categories from the root down to this one"""
    service = CategoryService(db)
    path = await service.get_category_path(category_id)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in path])

@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = CategoryService(db)
    category = await service.update_category(category_id, category_data)
    return ApiResponse(data=CategoryResponse.model_validate(category), message="Category updated")

@router.put("/{category_id}/move", response_model=ApiResponse[CategoryResponse])
async def move_category(
    category_id: int,
    move_data: CategoryMove,
    db: AsyncSession = Depends(get_async_session)
):
    """Move a category under another parent, or to the top level"""
    service = CategoryService(db)
    category = await service.move_category(category_id, move_data.parent_id)
    return ApiResponse(data=CategoryResponse.model_validate(category), message="Category moved")

@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_async_session)):
    service = CategoryService(db)
    await service.delete_category(category_id)
    return ApiResponse(message="Category deleted")

from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from backoffice.api.dependencies import get_current_user_id
from backoffice.core.config import settings
from backoffice.core.database import get_async_session
from backoffice.services.recipe.recipe_service import RecipeService
from backoffice.schemas.common.response import ApiResponse, PaginatedData, to_page
from backoffice.schemas.warehouse.stock_movement import StockMovementResponse
from backoffice.schemas.recipe.recipe import (
    CostCalculationRequest, ProductionRequest, ProductionResult, RecipeAvailability,
    RecipeCostCalculation, RecipeCreate, RecipeProfitability, RecipeResponse, RecipeUpdate
)

router = APIRouter()

@router.post("/", response_model=ApiResponse[RecipeResponse], status_code=status.HTTP_201_CREATED)
async def create_recipe(
    recipe_data: RecipeCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Create a recipe; its cost price is calculated from the ingredients"""
    service = RecipeService(db)
    recipe = await service.create_recipe(recipe_data, current_user_id)
    return ApiResponse(data=RecipeResponse.model_validate(recipe), message="Recipe created")

@router.get("/", response_model=ApiResponse[PaginatedData[RecipeResponse]])
async def get_recipes(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_async_session)
):
    service = RecipeService(db)
    result = await service.get_recipes(page_index, page_size, search, is_active)
    return ApiResponse(data=to_page(result, RecipeResponse))

@router.post("/calculate-cost", response_model=ApiResponse[RecipeCostCalculation])
async def calculate_cost(
    request: CostCalculationRequest,
    db: AsyncSession = Depends(get_async_session)
):
    """Cost of a set of ingredients without saving a recipe"""
    service = RecipeService(db)
    calculation = await service.calculate_cost_with_default_margin(
        request.ingredients, request.portion_size, request.margin_percent
    )
    return ApiResponse(data=RecipeCostCalculation.model_validate(calculation))

@router.get("/profitability", response_model=ApiResponse[List[RecipeProfitability]])
async def get_profitability(db: AsyncSession = Depends(get_async_session)):
    """Profit per portion of active recipes with a selling price"""
    service = RecipeService(db)
    report = await service.get_profitability()
    return ApiResponse(data=[RecipeProfitability.model_validate(row) for row in report])

@router.get("/{recipe_id}", response_model=ApiResponse[RecipeResponse])
async def get_recipe(recipe_id: int, db: AsyncSession = Depends(get_async_session)):
    service = RecipeService(db)
    recipe = await service.get_recipe(recipe_id)
    return ApiResponse(data=RecipeResponse.model_validate(recipe))

@router.put("/{recipe_id}", response_model=ApiResponse[RecipeResponse])
async def update_recipe(
    recipe_id: int,
    recipe_data: RecipeUpdate,
    db: AsyncSession = Depends(get_async_session)
):
    service = RecipeService(db)
    recipe = await service.update_recipe(recipe_id, recipe_data)
    return ApiResponse(data=RecipeResponse.model_validate(recipe), message="Recipe updated")

@router.delete("/{recipe_id}", response_model=ApiResponse[None])
async def delete_recipe(recipe_id: int, db: AsyncSession = Depends(get_async_session)):
    service = RecipeService(db)
    await service.delete_recipe(recipe_id)
    return ApiResponse(message="Recipe deleted")

@router.get("/{recipe_id}/scale", response_model=ApiResponse[RecipeCostCalculation])
async def scale_recipe(
    recipe_id: int,
    factor: Decimal = Query(..., gt=0),
    db: AsyncSession = Depends(get_async_session)
):
    """Ingredients and cost of the recipe scaled by ``factor``"""
    service = RecipeService(db)
    calculation = await service.scale_recipe(recipe_id, factor)
    return ApiResponse(data=RecipeCostCalculation.model_validate(calculation))

@router.get("/{recipe_id}/availability", response_model=ApiResponse[RecipeAvailability])
async def check_availability(
    recipe_id: int,
    warehouse_id: int = Query(...),
    portions: Decimal = Query(Decimal("1"), gt=0),
    db: AsyncSession = Depends(get_async_session)
):
    """Whether a warehouse holds enough ingredients for ``portions`` portions"""
    service = RecipeService(db)
    availability = await service.check_availability(recipe_id, warehouse_id, portions)
    return ApiResponse(data=RecipeAvailability.model_validate(availability))

@router.post("/{recipe_id}/produce", response_model=ApiResponse[ProductionResult])
async def produce(
    recipe_id: int,
    request: ProductionRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user_id: Optional[int] = Depends(get_current_user_id)
):
    """Consume the recipe's ingredients from a warehouse"""
    service = RecipeService(db)
    result = await service.produce(recipe_id, request.warehouse_id, request.portions, current_user_id)
    result["movements"] = [StockMovementResponse.model_validate(m) for m in result["movements"]]
    return ApiResponse(data=ProductionResult.model_validate(result), message="Production recorded")

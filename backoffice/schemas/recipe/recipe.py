from pydantic import BaseModel, ConfigDict, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from backoffice.schemas.nomenclature.product import ProductRef
from backoffice.schemas.nomenclature.unit import UnitRef
from backoffice.schemas.warehouse.stock_movement import StockMovementResponse

class RecipeIngredientBase(BaseModel):
    product_id: int
    quantity: Decimal
    unit_id: int
    cost_per_unit: Optional[Decimal] = None
    is_main: bool = False
    sort_order: Optional[int] = None

    @validator('quantity')
    def validate_positive_quantity(cls, v):
        if v <= 0:
            raise ValueError('Ingredient quantity must be positive')
        return v

class RecipeIngredientCreate(RecipeIngredientBase):
    pass

class RecipeIngredientResponse(RecipeIngredientBase):
    id: int
    recipe_id: int
    product: Optional[ProductRef] = None
    unit: Optional[UnitRef] = None

    model_config = ConfigDict(from_attributes=True)

class RecipeBase(BaseModel):
    name: str
    description: Optional[str] = None
    portion_size: Decimal = Decimal("1")
    cooking_time: Optional[int] = None
    difficulty_level: Optional[int] = None
    instructions: Optional[str] = None
    margin_percent: Decimal = Decimal("0")

    @validator('name')
    def validate_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError('Recipe name must be at least 2 characters')
        return v.strip()

    @validator('portion_size')
    def validate_portion_size(cls, v):
        if v <= 0:
            raise ValueError('Portion size must be positive')
        return v

    @validator('difficulty_level')
    def validate_difficulty(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError('Difficulty level must be between 1 and 5')
        return v

class RecipeCreate(RecipeBase):
    ingredients: List[RecipeIngredientCreate]

    @validator('ingredients')
    def validate_ingredients_not_empty(cls, v):
        if not v:
            raise ValueError('At least one ingredient is required')
        return v

class RecipeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    portion_size: Optional[Decimal] = None
    cooking_time: Optional[int] = None
    difficulty_level: Optional[int] = None
    instructions: Optional[str] = None
    margin_percent: Optional[Decimal] = None
    is_active: Optional[bool] = None
    ingredients: Optional[List[RecipeIngredientCreate]] = None

class RecipeResponse(RecipeBase):
    id: int
    cost_price: Decimal
    selling_price: Optional[Decimal] = None
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ingredients: List[RecipeIngredientResponse] = []

    model_config = ConfigDict(from_attributes=True)

class CostCalculationRequest(BaseModel):
    ingredients: List[RecipeIngredientCreate]
    portion_size: Decimal = Decimal("1")
    margin_percent: Optional[Decimal] = None

class IngredientCost(BaseModel):
    product_id: int
    product_name: str
    quantity: Decimal
    unit_name: str
    costing_quantity: Decimal  # quantity in the product's own unit
    cost_per_unit: Decimal
    total_cost: Decimal

class RecipeCostCalculation(BaseModel):
    total_cost: Decimal
    cost_per_portion: Decimal
    selling_price: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    ingredients: List[IngredientCost]

class IngredientAvailability(BaseModel):
    product_id: int
    product_name: str
    required_quantity: Decimal
    available_quantity: Decimal
    is_available: bool
    shortage: Decimal

class RecipeAvailability(BaseModel):
    recipe_id: int
    warehouse_id: int
    portions: Decimal
    can_produce: bool
    ingredients: List[IngredientAvailability]

class ProductionRequest(BaseModel):
    warehouse_id: int
    portions: Decimal

    @validator('portions')
    def validate_portions(cls, v):
        if v <= 0:
            raise ValueError('Portions must be positive')
        return v

class ProductionResult(BaseModel):
    recipe_id: int
    warehouse_id: int
    portions: Decimal
    total_cost: Decimal
    movements: List[StockMovementResponse]

class RecipeProfitability(BaseModel):
    recipe_id: int
    recipe_name: str
    cost_price: Decimal
    selling_price: Decimal
    profit: Decimal
    profit_margin: Decimal

class RecipeRef(BaseModel):
    id: int
    name: str
    cost_price: Decimal

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel, ConfigDict, validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from backoffice.schemas.recipe.recipe import IngredientAvailability, RecipeRef
from backoffice.schemas.warehouse.warehouse import WarehouseRef

def _name(v, label):
    if not v or len(v.strip()) < 2:
        raise ValueError(f'{label} name must be at least 2 characters')
    return v.strip()

# Menu categories

class MenuCategoryBase(BaseModel):
    name: str
    description: Optional[str] = None
    sort_order: int = 0

    @validator('name')
    def validate_name(cls, v):
        return _name(v, 'Menu category')

class MenuCategoryCreate(MenuCategoryBase):
    pass

class MenuCategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @validator('name', 'sort_order', 'is_active')
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError('Value must not be null')
        return v

    @validator('name')
    def validate_name(cls, v):
        return v if v is None else _name(v, 'Menu category')

class MenuCategoryRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

class MenuCategoryResponse(MenuCategoryBase):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# Menu items

class MenuItemBase(BaseModel):
    menu_id: Optional[int] = None
    category_id: int
    recipe_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    price: Decimal
    cost_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    is_available: bool = True
    sort_order: int = 0

    @validator('name')
    def validate_name(cls, v):
        return _name(v, 'Menu item')

    @validator('price')
    def validate_price(cls, v):
        if v <= 0:
            raise ValueError('Price must be positive')
        return v

    @validator('cost_price')
    def validate_cost_price(cls, v):
        if v is not None and v < 0:
            raise ValueError('Cost price cannot be negative')
        return v

class MenuItemCreate(MenuItemBase):
    pass

class MenuItemUpdate(BaseModel):
    menu_id: Optional[int] = None
    category_id: Optional[int] = None
    recipe_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    @validator('category_id', 'name', 'price', 'is_available', 'is_active', 'sort_order')
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError('Value must not be null')
        return v

    @validator('name')
    def validate_name(cls, v):
        return v if v is None else _name(v, 'Menu item')

    @validator('price')
    def validate_price(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Price must be positive')
        return v

class MenuItemResponse(MenuItemBase):
    id: int
    is_active: bool = True
    category: Optional[MenuCategoryRef] = None
    recipe: Optional[RecipeRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class MenuItemAvailability(BaseModel):
    menu_item_id: int
    menu_item_name: str
    warehouse_id: int
    quantity: Decimal
    is_available: bool
    missing_ingredients: List[IngredientAvailability] = []

# Menus

class MenuBase(BaseModel):
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @validator('name')
    def validate_name(cls, v):
        return _name(v, 'Menu')

    @validator('end_date')
    def validate_period(cls, v, values):
        start_date = values.get('start_date')
        if v and start_date and v < start_date:
            raise ValueError('End date cannot be before start date')
        return v

class MenuCreate(MenuBase):
    pass

class MenuUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None

    @validator('name', 'is_active')
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError('Value must not be null')
        return v

    @validator('name')
    def validate_name(cls, v):
        return v if v is None else _name(v, 'Menu')

class MenuResponse(MenuBase):
    id: int
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class MenuDetailResponse(MenuResponse):
    items: List[MenuItemResponse] = []

class MenuRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

# Warehouse menus

class WarehouseMenuCreate(BaseModel):
    menu_id: int
    is_active: bool = True

class WarehouseMenuUpdate(BaseModel):
    is_active: bool

class WarehouseMenuResponse(BaseModel):
    id: int
    warehouse_id: int
    menu_id: int
    is_active: bool = True
    warehouse: Optional[WarehouseRef] = None
    menu: Optional[MenuRef] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AvailableMenuCategory(BaseModel):
    """A menu category with the items a warehouse currently serves"""
    id: int
    name: str
    sort_order: int = 0
    items: List[MenuItemResponse] = []

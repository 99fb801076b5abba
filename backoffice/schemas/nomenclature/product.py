from pydantic import BaseModel, ConfigDict, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from backoffice.schemas.nomenclature.unit import UnitRef

class ProductBase(BaseModel):
    name: str
    article: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    unit_id: int
    shelf_life_days: Optional[int] = None
    storage_conditions: Optional[str] = None
    min_stock: Decimal = Decimal("0")

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Product name is required')
        return v.strip()

    @validator('shelf_life_days')
    def validate_shelf_life(cls, v):
        if v is not None and v < 0:
            raise ValueError('Shelf life cannot be negative')
        return v

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    article: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    unit_id: Optional[int] = None
    shelf_life_days: Optional[int] = None
    storage_conditions: Optional[str] = None
    min_stock: Optional[Decimal] = None
    is_active: Optional[bool] = None

class ProductRef(BaseModel):
    id: int
    name: str
    article: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class ProductResponse(ProductBase):
    id: int
    is_active: bool = True
    unit: Optional[UnitRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel, ConfigDict, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from backoffice.models.shared.enums import UnitType

class UnitBase(BaseModel):
    name: str
    short_name: str
    type: UnitType
    base_unit_id: Optional[int] = None
    conversion_factor: Decimal = Decimal("1")

    @validator('name', 'short_name')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Value must not be blank')
        return v.strip()

    @validator('conversion_factor')
    def validate_positive_factor(cls, v):
        if v <= 0:
            raise ValueError('Conversion factor must be positive')
        return v

class UnitCreate(UnitBase):
    pass

class UnitUpdate(BaseModel):
    name: Optional[str] = None
    short_name: Optional[str] = None
    type: Optional[UnitType] = None
    base_unit_id: Optional[int] = None
    conversion_factor: Optional[Decimal] = None

    @validator('name', 'short_name', 'type', 'conversion_factor')
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError('Value must not be null')
        return v

    @validator('name', 'short_name')
    def validate_not_blank(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError('Value must not be blank')
        return v.strip()

    @validator('conversion_factor')
    def validate_positive_factor(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Conversion factor must be positive')
        return v

class UnitRef(BaseModel):
    id: int
    name: str
    short_name: str

    model_config = ConfigDict(from_attributes=True)

class UnitResponse(UnitBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UnitDetailResponse(UnitResponse):
    base_unit: Optional[UnitRef] = None
    derived_units: List[UnitRef] = []

class UnitConvertRequest(BaseModel):
    from_unit_id: int
    to_unit_id: int
    quantity: Decimal

class UnitConvertResponse(BaseModel):
    from_unit_id: int
    to_unit_id: int
    quantity: Decimal
    converted_quantity: Decimal

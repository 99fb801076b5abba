from pydantic import BaseModel, ConfigDict, validator
from typing import Optional
from datetime import datetime
from backoffice.models.shared.enums import WarehouseType

class WarehouseBase(BaseModel):
    name: str
    type: WarehouseType = WarehouseType.MAIN
    address: Optional[str] = None
    description: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError('Warehouse name must be at least 2 characters')
        return v.strip()

class WarehouseCreate(WarehouseBase):
    pass

class WarehouseUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[WarehouseType] = None
    address: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

class WarehouseRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

class WarehouseResponse(WarehouseBase):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

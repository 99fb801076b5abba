from pydantic import BaseModel, ConfigDict, EmailStr, validator
from typing import Optional
from datetime import datetime

class SupplierBase(BaseModel):
    name: str
    inn: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError('Supplier name must be at least 2 characters')
        return v.strip()

    @validator('inn')
    def validate_inn(cls, v):
        if v is None or v == "":
            return None
        v = v.strip()
        if not v.isdigit() or len(v) not in (10, 12):
            raise ValueError('INN must contain 10 or 12 digits')
        return v

class SupplierCreate(SupplierBase):
    pass

class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    inn: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @validator('inn')
    def validate_inn(cls, v):
        if v is None or v == "":
            return None
        v = v.strip()
        if not v.isdigit() or len(v) not in (10, 12):
            raise ValueError('INN must contain 10 or 12 digits')
        return v

class SupplierRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

class SupplierResponse(SupplierBase):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

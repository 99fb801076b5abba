from pydantic import BaseModel, ConfigDict, validator
from typing import List, Optional
import datetime as dt
from decimal import Decimal
from backoffice.models.shared.enums import DocumentType, DocumentStatus
from backoffice.schemas.nomenclature.product import ProductRef
from backoffice.schemas.purchase.supplier import SupplierRef
from backoffice.schemas.warehouse.warehouse import WarehouseRef
from backoffice.schemas.warehouse.stock_movement import DocumentMovementResponse

class DocumentItemBase(BaseModel):
    product_id: int
    quantity: Decimal
    price: Decimal = Decimal("0")
    batch_number: Optional[str] = None
    expiry_date: Optional[dt.date] = None

    @validator('quantity')
    def validate_positive_quantity(cls, v):
        if v <= 0:
            raise ValueError('Quantity must be positive')
        return v

    @validator('price')
    def validate_price(cls, v):
        if v < 0:
            raise ValueError('Price cannot be negative')
        return v

class DocumentItemCreate(DocumentItemBase):
    pass

class DocumentItemResponse(DocumentItemBase):
    id: int
    document_id: int
    total: Decimal
    product: Optional[ProductRef] = None

    model_config = ConfigDict(from_attributes=True)

class DocumentBase(BaseModel):
    type: DocumentType
    date: Optional[dt.date] = None
    supplier_id: Optional[int] = None
    warehouse_from_id: Optional[int] = None
    warehouse_to_id: Optional[int] = None
    notes: Optional[str] = None

    @validator('notes')
    def validate_notes(cls, v):
        if v is not None and len(v) > 1000:
            raise ValueError('Notes must not exceed 1000 characters')
        return v

class DocumentCreate(DocumentBase):
    items: List[DocumentItemCreate] = []

class DocumentUpdate(BaseModel):
    date: Optional[dt.date] = None
    supplier_id: Optional[int] = None
    warehouse_from_id: Optional[int] = None
    warehouse_to_id: Optional[int] = None
    notes: Optional[str] = None

class DocumentResponse(DocumentBase):
    id: int
    number: str
    status: DocumentStatus
    date: dt.date
    total_amount: Decimal
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[dt.datetime] = None
    cancelled_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    supplier: Optional[SupplierRef] = None
    warehouse_from: Optional[WarehouseRef] = None
    warehouse_to: Optional[WarehouseRef] = None

    model_config = ConfigDict(from_attributes=True)

class DocumentDetailResponse(DocumentResponse):
    items: List[DocumentItemResponse] = []
    movements: List[DocumentMovementResponse] = []

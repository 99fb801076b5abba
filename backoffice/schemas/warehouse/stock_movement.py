from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from backoffice.models.shared.enums import MovementType, DocumentType
from backoffice.schemas.nomenclature.product import ProductRef
from backoffice.schemas.warehouse.warehouse import WarehouseRef

class MovementCreate(BaseModel):
    """Internal request to the movement recorder"""
    warehouse_id: int
    product_id: int
    type: MovementType
    quantity: Decimal  # signed
    price: Decimal = Decimal("0")
    document_id: Optional[int] = None
    reverses_id: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None

class DocumentRef(BaseModel):
    id: int
    number: str
    type: DocumentType

    model_config = ConfigDict(from_attributes=True)

class DocumentMovementResponse(BaseModel):
    """Movement as listed under its own document"""
    id: int
    warehouse_id: int
    product_id: int
    type: MovementType
    quantity: Decimal
    price: Decimal
    document_id: Optional[int] = None
    reverses_id: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    warehouse: Optional[WarehouseRef] = None
    product: Optional[ProductRef] = None

    model_config = ConfigDict(from_attributes=True)

class StockMovementResponse(DocumentMovementResponse):
    document: Optional[DocumentRef] = None

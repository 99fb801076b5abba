from pydantic import BaseModel, ConfigDict, Field, validator
from typing import List, Optional
import datetime as dt
from decimal import Decimal
from backoffice.models.shared.enums import InventoryCountStatus
from backoffice.schemas.nomenclature.product import ProductRef
from backoffice.schemas.warehouse.warehouse import WarehouseRef
from backoffice.schemas.document.document import DocumentResponse

class InventoryCountCreate(BaseModel):
    warehouse_id: int
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    # Restrict the sheet to these products; all balances of the warehouse otherwise
    product_ids: Optional[List[int]] = None

class InventoryCountItemUpdate(BaseModel):
    actual_quantity: Decimal
    notes: Optional[str] = None

    @validator('actual_quantity')
    def validate_actual_quantity(cls, v):
        if v < 0:
            raise ValueError('Actual quantity cannot be negative')
        return v

class InventoryCountItemResponse(BaseModel):
    id: int
    inventory_count_id: int
    product_id: int
    system_quantity: Decimal
    actual_quantity: Optional[Decimal] = None
    price: Decimal
    notes: Optional[str] = None
    product: Optional[ProductRef] = None

    model_config = ConfigDict(from_attributes=True)

class InventoryCountResponse(BaseModel):
    id: int
    number: str
    warehouse_id: int
    date: dt.date
    status: InventoryCountStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    completed_at: Optional[dt.datetime] = None
    surplus_document_id: Optional[int] = None
    shortage_document_id: Optional[int] = None
    created_at: Optional[dt.datetime] = None
    warehouse: Optional[WarehouseRef] = None
    items: List[InventoryCountItemResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class ItemVariance(BaseModel):
    item_id: int
    product_id: int
    product_name: str
    system_quantity: Decimal
    actual_quantity: Decimal
    quantity_variance: Decimal
    price: Decimal
    value_variance: Decimal

class VarianceAnalysis(BaseModel):
    inventory_count_id: int
    items_counted: int
    items_with_variance: int
    surplus_value: Decimal
    shortage_value: Decimal
    net_value_variance: Decimal
    items: List[ItemVariance]

class AdjustmentDocuments(BaseModel):
    surplus: Optional[DocumentResponse] = None
    shortage: Optional[DocumentResponse] = None

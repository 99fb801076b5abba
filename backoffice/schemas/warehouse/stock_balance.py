from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal
from backoffice.schemas.nomenclature.product import ProductRef
from backoffice.schemas.nomenclature.unit import UnitRef
from backoffice.schemas.warehouse.warehouse import WarehouseRef

class BalanceSnapshot(BaseModel):
    """Immutable value of one (warehouse, product) balance"""
    quantity: Decimal = Decimal("0")
    avg_price: Decimal = Decimal("0")
    total_value: Decimal = Decimal("0")
    last_movement_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

class LedgerEntry(BaseModel):
    """The part of a stock movement the ledger folds"""
    id: Optional[int] = None
    quantity: Decimal
    price: Decimal = Decimal("0")
    reverses_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def is_reversal(self) -> bool:
        return self.reverses_id is not None

class StockBalanceResponse(BaseModel):
    id: int
    warehouse_id: int
    product_id: int
    quantity: Decimal
    avg_price: Decimal
    total_value: Decimal
    last_movement_date: Optional[datetime] = None
    product: Optional[ProductRef] = None
    warehouse: Optional[WarehouseRef] = None

    model_config = ConfigDict(from_attributes=True)

class LowStockItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_article: Optional[str] = None
    warehouse_id: int
    warehouse_name: str
    quantity: Decimal
    unit: Optional[UnitRef] = None
    threshold: Decimal

class BalanceVerification(BaseModel):
    warehouse_id: int
    product_id: int
    stored: BalanceSnapshot
    computed: BalanceSnapshot
    movements_count: int
    consistent: bool

class BalanceRebuildResult(BaseModel):
    balances_checked: int
    balances_corrected: int

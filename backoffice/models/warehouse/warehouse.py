from sqlalchemy import Column, String, Boolean, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel
from backoffice.models.shared.enums import WarehouseType

class Warehouse(BaseModel):
    __tablename__ = 'warehouses'

    name = Column(String(100), nullable=False, unique=True)
    type = Column(SQLEnum(WarehouseType), nullable=False, default=WarehouseType.MAIN)
    address = Column(Text)
    description = Column(Text)
    is_active = Column(Boolean, default=True)

    # Relationships
    stock_balances = relationship("StockBalance", back_populates="warehouse")
    stock_movements = relationship("StockMovement", back_populates="warehouse")

from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel
from backoffice.models.shared.enums import MovementType

class StockMovement(BaseModel):
    """Append-only ledger entry. Rows are never updated or deleted."""
    __tablename__ = 'stock_movements'

    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    type = Column(SQLEnum(MovementType), nullable=False)
    quantity = Column(Numeric(14, 3), nullable=False)  # signed
    price = Column(Numeric(14, 4), nullable=False, default=0)
    document_id = Column(Integer, ForeignKey('documents.id'), nullable=True, index=True)
    reverses_id = Column(Integer, ForeignKey('stock_movements.id'), nullable=True)
    batch_number = Column(String(50))
    expiry_date = Column(Date)
    notes = Column(Text)

    # Relationships
    warehouse = relationship("Warehouse", back_populates="stock_movements")
    product = relationship("Product", back_populates="stock_movements")
    document = relationship("Document", back_populates="movements")
    reverses = relationship("StockMovement", remote_side="StockMovement.id")

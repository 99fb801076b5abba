from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel
from backoffice.models.shared.enums import DocumentType, DocumentStatus

class Document(BaseModel):
    __tablename__ = 'documents'

    number = Column(String(50), unique=True, nullable=False)
    type = Column(SQLEnum(DocumentType), nullable=False)
    status = Column(SQLEnum(DocumentStatus), nullable=False, default=DocumentStatus.DRAFT)
    date = Column(Date, nullable=False)
    supplier_id = Column(Integer, ForeignKey('suppliers.id'), nullable=True)
    warehouse_from_id = Column(Integer, ForeignKey('warehouses.id'), nullable=True)
    warehouse_to_id = Column(Integer, ForeignKey('warehouses.id'), nullable=True)
    total_amount = Column(Numeric(16, 2), nullable=False, default=0)
    notes = Column(Text)
    created_by = Column(Integer)  # User ID
    updated_by = Column(Integer)  # User ID
    approved_by = Column(Integer)  # User ID
    approved_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))

    # Relationships
    supplier = relationship("Supplier", back_populates="documents")
    warehouse_from = relationship("Warehouse", foreign_keys=[warehouse_from_id])
    warehouse_to = relationship("Warehouse", foreign_keys=[warehouse_to_id])
    items = relationship(
        "DocumentItem",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentItem.id"
    )
    movements = relationship("StockMovement", back_populates="document", order_by="StockMovement.id")

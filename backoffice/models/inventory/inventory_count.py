from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel
from backoffice.models.shared.enums import InventoryCountStatus

class InventoryCount(BaseModel):
    __tablename__ = 'inventory_counts'

    number = Column(String(50), unique=True, nullable=False)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(SQLEnum(InventoryCountStatus), nullable=False, default=InventoryCountStatus.DRAFT)
    notes = Column(Text)
    created_by = Column(Integer)  # User ID
    completed_at = Column(DateTime(timezone=True))
    # Adjustment documents generated from this count
    surplus_document_id = Column(Integer, ForeignKey('documents.id', ondelete='SET NULL'))
    shortage_document_id = Column(Integer, ForeignKey('documents.id', ondelete='SET NULL'))

    # Relationships
    warehouse = relationship("Warehouse")
    surplus_document = relationship("Document", foreign_keys=[surplus_document_id])
    shortage_document = relationship("Document", foreign_keys=[shortage_document_id])
    items = relationship(
        "InventoryCountItem",
        back_populates="inventory_count",
        cascade="all, delete-orphan",
        order_by="InventoryCountItem.id"
    )

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Date
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class DocumentItem(BaseModel):
    __tablename__ = 'document_items'

    document_id = Column(Integer, ForeignKey('documents.id', ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    quantity = Column(Numeric(14, 3), nullable=False)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(16, 2), nullable=False, default=0)
    batch_number = Column(String(50))
    expiry_date = Column(Date)

    # Relationships
    document = relationship("Document", back_populates="items")
    product = relationship("Product")

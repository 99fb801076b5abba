from sqlalchemy import Column, String, Boolean, Text
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class Supplier(BaseModel):
    __tablename__ = 'suppliers'

    name = Column(String(200), nullable=False)
    inn = Column(String(20), unique=True, nullable=True)  # Tax number
    contact_person = Column(String(100))
    phone = Column(String(20))
    email = Column(String(100))
    address = Column(Text)
    notes = Column(Text)
    is_active = Column(Boolean, default=True)

    # Relationships
    documents = relationship("Document", back_populates="supplier")

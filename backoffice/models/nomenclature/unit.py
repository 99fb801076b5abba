from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel
from backoffice.models.shared.enums import UnitType

class Unit(BaseModel):
    __tablename__ = 'units'

    name = Column(String(50), nullable=False, unique=True)
    short_name = Column(String(20), nullable=False, unique=True)
    type = Column(SQLEnum(UnitType), nullable=False)
    base_unit_id = Column(Integer, ForeignKey('units.id'), nullable=True)
    # 1 unit = conversion_factor * base unit
    conversion_factor = Column(Numeric(18, 6), nullable=False, default=1)

    # Relationships
    base_unit = relationship(
        "Unit",
        remote_side="Unit.id",
        back_populates="derived_units"
    )
    derived_units = relationship("Unit", back_populates="base_unit")
    products = relationship("Product", back_populates="unit")

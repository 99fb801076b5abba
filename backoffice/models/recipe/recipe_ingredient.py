from sqlalchemy import Column, Integer, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class RecipeIngredient(BaseModel):
    __tablename__ = 'recipe_ingredients'

    recipe_id = Column(Integer, ForeignKey('recipes.id', ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_id = Column(Integer, ForeignKey('units.id'), nullable=False)
    cost_per_unit = Column(Numeric(14, 4))
    is_main = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)

    # Relationships
    recipe = relationship("Recipe", back_populates="ingredients")
    product = relationship("Product")
    unit = relationship("Unit")

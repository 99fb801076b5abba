import logging
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from backoffice.models.nomenclature.product import Product
from backoffice.models.nomenclature.category import Category
from backoffice.models.nomenclature.unit import Unit
from backoffice.schemas.nomenclature.product import ProductCreate, ProductUpdate
from backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_product(self, product_data: ProductCreate) -> Product:
        if product_data.article:
            await self._ensure_unique_article(product_data.article)
        await self._validate_references(product_data.unit_id, product_data.category_id)

        product = Product(**product_data.model_dump())
        self.db.add(product)
        await self.db.commit()

        logger.info(f"Product created: {product.name} ({product.id})")
        return await self.get_product(product.id)

    async def get_product(self, product_id: int) -> Product:
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.unit), selectinload(Product.category))
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def get_products(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        query = select(Product).options(selectinload(Product.unit))

        if search:
            query = query.where(or_(
                Product.name.ilike(f"%{search}%"),
                Product.article.ilike(f"%{search}%"),
                Product.barcode.ilike(f"%{search}%")
            ))
        if category_id:
            query = query.where(Product.category_id == category_id)
        if is_active is not None:
            query = query.where(Product.is_active == is_active)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(query.order_by(Product.name).offset(skip).limit(page_size))

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def update_product(self, product_id: int, product_data: ProductUpdate) -> Product:
        product = await self.get_product(product_id)
        update_data = product_data.model_dump(exclude_unset=True)

        if update_data.get("article") and update_data["article"] != product.article:
            await self._ensure_unique_article(update_data["article"], exclude_id=product_id)
        if "unit_id" in update_data or "category_id" in update_data:
            await self._validate_references(
                update_data.get("unit_id", product.unit_id),
                update_data.get("category_id", product.category_id)
            )

        for field, value in update_data.items():
            setattr(product, field, value)

        await self.db.commit()
        return await self.get_product(product_id)

    async def deactivate_product(self, product_id: int) -> Product:
        """Products are referenced by the ledger, so they are deactivated instead of deleted"""
        product = await self.get_product(product_id)
        product.is_active = False
        await self.db.commit()
        logger.info(f"Product deactivated: {product_id}")
        return await self.get_product(product_id)

    async def _validate_references(self, unit_id: Optional[int], category_id: Optional[int]) -> None:
        if unit_id is None or not await self.db.get(Unit, unit_id):
            raise ValidationError("Unit not found")
        if category_id is not None and not await self.db.get(Category, category_id):
            raise ValidationError("Category not found")

    async def _ensure_unique_article(self, article: str, exclude_id: Optional[int] = None) -> None:
        query = select(Product).where(Product.article == article)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalar_one_or_none():
            raise ConflictError(f"Product with article {article} already exists")

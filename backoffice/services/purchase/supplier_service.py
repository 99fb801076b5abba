import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from backoffice.models.purchase.supplier import Supplier
from backoffice.models.document.document import Document
from backoffice.schemas.purchase.supplier import SupplierCreate, SupplierUpdate
from backoffice.core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

class SupplierService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_supplier(self, supplier_data: SupplierCreate) -> Supplier:
        """Create a new supplier"""
        if supplier_data.inn:
            await self._ensure_unique_inn(supplier_data.inn)

        supplier = Supplier(**supplier_data.model_dump())
        self.db.add(supplier)
        await self.db.commit()
        await self.db.refresh(supplier)

        logger.info(f"Supplier created: {supplier.id}")
        return supplier

    async def get_supplier(self, supplier_id: int) -> Supplier:
        supplier = await self.db.get(Supplier, supplier_id)
        if not supplier:
            raise NotFoundError("Supplier not found")
        return supplier

    async def get_suppliers(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Get suppliers with pagination and filters"""
        query = select(Supplier)

        if search:
            query = query.where(or_(
                Supplier.name.ilike(f"%{search}%"),
                Supplier.inn.ilike(f"%{search}%"),
                Supplier.contact_person.ilike(f"%{search}%")
            ))
        if is_active is not None:
            query = query.where(Supplier.is_active == is_active)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(query.order_by(Supplier.name).offset(skip).limit(page_size))

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def update_supplier(self, supplier_id: int, supplier_data: SupplierUpdate) -> Supplier:
        """Update supplier"""
        supplier = await self.get_supplier(supplier_id)
        update_data = supplier_data.model_dump(exclude_unset=True)

        if update_data.get("inn") and update_data["inn"] != supplier.inn:
            await self._ensure_unique_inn(update_data["inn"], exclude_id=supplier_id)

        for field, value in update_data.items():
            setattr(supplier, field, value)

        await self.db.commit()
        await self.db.refresh(supplier)
        return supplier

    async def delete_supplier(self, supplier_id: int) -> None:
        supplier = await self.get_supplier(supplier_id)

        documents_count = await self.db.scalar(
            select(func.count(Document.id)).where(Document.supplier_id == supplier_id)
        )
        if documents_count:
            raise ConflictError("Cannot delete a supplier referenced by documents")

        await self.db.delete(supplier)
        await self.db.commit()
        logger.info(f"Supplier deleted: {supplier_id}")

    async def get_supplier_documents(self, supplier_id: int, page_index: int = 1, page_size: int = 100) -> Dict[str, Any]:
        await self.get_supplier(supplier_id)

        query = select(Document).where(Document.supplier_id == supplier_id)
        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(
                selectinload(Document.supplier),
                selectinload(Document.warehouse_from),
                selectinload(Document.warehouse_to)
            )
            .order_by(Document.date.desc(), Document.id.desc())
            .offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def _ensure_unique_inn(self, inn: str, exclude_id: Optional[int] = None) -> None:
        query = select(Supplier).where(Supplier.inn == inn)
        if exclude_id is not None:
            query = query.where(Supplier.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalar_one_or_none():
            raise ConflictError("Supplier with this INN already exists")

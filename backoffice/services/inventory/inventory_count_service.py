import logging
from datetime import date
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from backoffice.db.base import utcnow
from backoffice.models.document.document import Document
from backoffice.models.inventory.inventory_count import InventoryCount
from backoffice.models.inventory.inventory_count_item import InventoryCountItem
from backoffice.models.nomenclature.product import Product
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.shared.enums import DocumentType, InventoryCountStatus
from backoffice.schemas.inventory.inventory_count import InventoryCountCreate, InventoryCountItemUpdate
from backoffice.schemas.document.document import DocumentCreate, DocumentItemCreate
from backoffice.services.document.document_service import DocumentService
from backoffice.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from backoffice.utils.decimals import ZERO, money, quantity as round_quantity, to_decimal

logger = logging.getLogger(__name__)

class InventoryCountService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_inventory_count(self, count_data: InventoryCountCreate, current_user_id: Optional[int] = None) -> InventoryCount:
        """Create a count sheet pre-filled with the warehouse's current balances"""
        if not await self.db.get(Warehouse, count_data.warehouse_id):
            raise ValidationError("Warehouse not found")

        query = (
            select(StockBalance)
            .join(Product, Product.id == StockBalance.product_id)
            .where(StockBalance.warehouse_id == count_data.warehouse_id, Product.is_active == True)
            .order_by(Product.name)
        )
        if count_data.product_ids:
            query = query.where(StockBalance.product_id.in_(count_data.product_ids))
        balances = (await self.db.execute(query)).scalars().all()

        number = await self._generate_count_number()
        inventory_count = InventoryCount(
            number=number,
            warehouse_id=count_data.warehouse_id,
            date=count_data.date or date.today(),
            status=InventoryCountStatus.DRAFT,
            notes=count_data.notes,
            created_by=current_user_id
        )
        inventory_count.items = [
            InventoryCountItem(
                product_id=balance.product_id,
                system_quantity=balance.quantity,
                price=balance.avg_price
            )
            for balance in balances
        ]
        self.db.add(inventory_count)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                f"Inventory count number {number} was taken concurrently, retry the operation"
            ) from e

        logger.info(
            f"Inventory count {inventory_count.number} created for warehouse "
            f"{count_data.warehouse_id} with {len(balances)} items"
        )
        return await self.get_inventory_count(inventory_count.id)

    async def get_inventory_count(self, count_id: int) -> InventoryCount:
        result = await self.db.execute(
            select(InventoryCount)
            .options(
                selectinload(InventoryCount.warehouse),
                selectinload(InventoryCount.items).selectinload(InventoryCountItem.product)
            )
            .where(InventoryCount.id == count_id)
            .execution_options(populate_existing=True)
        )
        inventory_count = result.scalar_one_or_none()
        if not inventory_count:
            raise NotFoundError("Inventory count not found")
        return inventory_count

    async def get_inventory_counts(
        self,
        page_index: int = 1,
        page_size: int = 100,
        warehouse_id: Optional[int] = None,
        status: Optional[InventoryCountStatus] = None
    ) -> Dict[str, Any]:
        query = select(InventoryCount)
        if warehouse_id:
            query = query.where(InventoryCount.warehouse_id == warehouse_id)
        if status:
            query = query.where(InventoryCount.status == status)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(
                selectinload(InventoryCount.warehouse),
                selectinload(InventoryCount.items).selectinload(InventoryCountItem.product)
            )
            .order_by(InventoryCount.date.desc(), InventoryCount.id.desc())
            .offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def update_item(self, item_id: int, item_data: InventoryCountItemUpdate) -> InventoryCountItem:
        item = await self._get_item(item_id)
        if item.inventory_count.status != InventoryCountStatus.DRAFT:
            raise InvalidStateError("Cannot change items of a completed inventory count")

        item.actual_quantity = round_quantity(item_data.actual_quantity)
        if item_data.notes is not None:
            item.notes = item_data.notes

        await self.db.commit()
        return await self._get_item(item_id)

    async def get_variances(self, count_id: int) -> Dict[str, Any]:
        """Quantity and value variance of every counted item"""
        inventory_count = await self.get_inventory_count(count_id)

        items = []
        surplus_value = shortage_value = ZERO
        counted = 0
        for item in inventory_count.items:
            if item.actual_quantity is None:
                continue
            counted += 1
            quantity_variance = round_quantity(to_decimal(item.actual_quantity) - to_decimal(item.system_quantity))
            if quantity_variance == 0:
                continue
            value_variance = money(quantity_variance * to_decimal(item.price))
            if value_variance > 0:
                surplus_value += value_variance
            else:
                shortage_value += -value_variance
            items.append({
                "item_id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name,
                "system_quantity": item.system_quantity,
                "actual_quantity": item.actual_quantity,
                "quantity_variance": quantity_variance,
                "price": item.price,
                "value_variance": value_variance,
            })

        return {
            "inventory_count_id": inventory_count.id,
            "items_counted": counted,
            "items_with_variance": len(items),
            "surplus_value": money(surplus_value),
            "shortage_value": money(shortage_value),
            "net_value_variance": money(surplus_value - shortage_value),
            "items": items,
        }

    async def create_adjustment_documents(self, count_id: int, current_user_id: Optional[int] = None) -> Dict[str, Any]:
        """Draft INVENTORY_ADJUSTMENT documents: surplus into the warehouse, shortage out of it.

        Both documents are created in one transaction and linked to the count, so a count
        yields at most one set of adjustments.
        """
        inventory_count = await self.get_inventory_count(count_id)
        if inventory_count.status != InventoryCountStatus.DRAFT:
            raise InvalidStateError("Inventory count is already completed")
        if await self._has_adjustments(inventory_count):
            raise InvalidStateError(
                f"Adjustment documents were already created for inventory count {inventory_count.number}"
            )

        analysis = await self.get_variances(count_id)
        surplus = [v for v in analysis["items"] if v["quantity_variance"] > 0]
        shortage = [v for v in analysis["items"] if v["quantity_variance"] < 0]
        if not surplus and not shortage:
            raise ValidationError("The inventory count has no variances to adjust")

        documents = DocumentService(self.db)
        notes = f"Inventory count {inventory_count.number}"
        try:
            surplus_document = shortage_document = None
            if surplus:
                surplus_document = await documents.build_document(
                    DocumentCreate(
                        type=DocumentType.INVENTORY_ADJUSTMENT,
                        date=inventory_count.date,
                        warehouse_to_id=inventory_count.warehouse_id,
                        notes=f"{notes}: surplus",
                        items=[
                            DocumentItemCreate(product_id=v["product_id"], quantity=v["quantity_variance"], price=money(v["price"]))
                            for v in surplus
                        ]
                    ),
                    current_user_id
                )
            if shortage:
                shortage_document = await documents.build_document(
                    DocumentCreate(
                        type=DocumentType.INVENTORY_ADJUSTMENT,
                        date=inventory_count.date,
                        warehouse_from_id=inventory_count.warehouse_id,
                        notes=f"{notes}: shortage",
                        items=[
                            DocumentItemCreate(product_id=v["product_id"], quantity=-v["quantity_variance"], price=money(v["price"]))
                            for v in shortage
                        ]
                    ),
                    current_user_id
                )

            inventory_count.surplus_document_id = surplus_document.id if surplus_document else None
            inventory_count.shortage_document_id = shortage_document.id if shortage_document else None
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Adjustment documents for inventory count {count_id} failed: {e}")
            raise

        logger.info(f"Adjustment documents created for inventory count {inventory_count.number}")
        return {
            "surplus": await documents.get_document(surplus_document.id) if surplus_document else None,
            "shortage": await documents.get_document(shortage_document.id) if shortage_document else None,
        }

    async def complete_inventory_count(self, count_id: int) -> InventoryCount:
        inventory_count = await self.get_inventory_count(count_id)
        if inventory_count.status != InventoryCountStatus.DRAFT:
            raise InvalidStateError("Inventory count is already completed")
        if any(item.actual_quantity is None for item in inventory_count.items):
            raise ValidationError("All items must be counted before completing the inventory count")

        inventory_count.status = InventoryCountStatus.COMPLETED
        inventory_count.completed_at = utcnow()
        await self.db.commit()

        logger.info(f"Inventory count {inventory_count.number} completed")
        return await self.get_inventory_count(count_id)

    async def _get_item(self, item_id: int) -> InventoryCountItem:
        result = await self.db.execute(
            select(InventoryCountItem)
            .options(selectinload(InventoryCountItem.inventory_count), selectinload(InventoryCountItem.product))
            .where(InventoryCountItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Inventory count item not found")
        return item

    async def _generate_count_number(self) -> str:
        """Generate unique count number"""
        prefix = f"INV-{date.today().strftime('%Y%m')}"

        last_number = await self.db.scalar(
            select(func.max(InventoryCount.number)).where(InventoryCount.number.like(f"{prefix}%"))
        )
        sequence = int(last_number[len(prefix):]) + 1 if last_number else 1
        return f"{prefix}{sequence:04d}"

    async def _has_adjustments(self, inventory_count: InventoryCount) -> bool:
        # A DRAFT adjustment may have been deleted since; only live documents block a new set
        for document_id in (inventory_count.surplus_document_id, inventory_count.shortage_document_id):
            if document_id and await self.db.get(Document, document_id):
                return True
        return False

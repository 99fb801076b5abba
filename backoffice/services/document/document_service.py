import logging
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from backoffice.db.base import utcnow
from backoffice.models.document.document import Document
from backoffice.models.document.document_item import DocumentItem
from backoffice.models.nomenclature.product import Product
from backoffice.models.purchase.supplier import Supplier
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.warehouse.stock_movement import StockMovement
from backoffice.models.shared.enums import DocumentStatus, DocumentType, MovementType
from backoffice.schemas.document.document import DocumentCreate, DocumentItemCreate, DocumentUpdate
from backoffice.schemas.warehouse.stock_movement import MovementCreate
from backoffice.services.warehouse.stock_movement_service import StockMovementService
from backoffice.core.exceptions import (
    AlreadyCancelledError, ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from backoffice.utils.decimals import ZERO, money, quantity as round_quantity

logger = logging.getLogger(__name__)

NUMBER_PREFIXES = {
    DocumentType.RECEIPT: "RCP",
    DocumentType.TRANSFER: "TRF",
    DocumentType.WRITEOFF: "WOF",
    DocumentType.INVENTORY_ADJUSTMENT: "ADJ",
}


def validate_parties(
    document_type: DocumentType,
    supplier_id: Optional[int],
    warehouse_from_id: Optional[int],
    warehouse_to_id: Optional[int]
) -> None:
    """Check the header fields each document type requires"""
    if document_type == DocumentType.RECEIPT:
        if not supplier_id:
            raise ValidationError("A receipt requires a supplier")
        if not warehouse_to_id:
            raise ValidationError("A receipt requires a destination warehouse")
    elif document_type == DocumentType.TRANSFER:
        if not warehouse_from_id or not warehouse_to_id:
            raise ValidationError("A transfer requires source and destination warehouses")
        if warehouse_from_id == warehouse_to_id:
            raise ValidationError("Source and destination warehouses must differ")
    elif document_type == DocumentType.WRITEOFF:
        if not warehouse_from_id:
            raise ValidationError("A writeoff requires a source warehouse")
    elif document_type == DocumentType.INVENTORY_ADJUSTMENT:
        if bool(warehouse_from_id) == bool(warehouse_to_id):
            raise ValidationError(
                "An inventory adjustment requires exactly one warehouse: "
                "destination for a surplus or source for a shortage"
            )


class DocumentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.movements = StockMovementService(db)

    async def create_document(self, document_data: DocumentCreate, current_user_id: Optional[int] = None) -> Document:
        try:
            document = await self.build_document(document_data, current_user_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Document {document.number} ({document.type.value}) created by user {current_user_id}")
        return await self.get_document(document.id)

    async def build_document(self, document_data: DocumentCreate, current_user_id: Optional[int] = None) -> Document:
        """Stage a DRAFT document with its items in the current transaction; the caller commits"""
        validate_parties(
            document_data.type,
            document_data.supplier_id,
            document_data.warehouse_from_id,
            document_data.warehouse_to_id
        )
        await self._validate_references(
            document_data.supplier_id,
            document_data.warehouse_from_id,
            document_data.warehouse_to_id
        )

        document = Document(
            number=await self._generate_document_number(document_data.type),
            type=document_data.type,
            status=DocumentStatus.DRAFT,
            date=document_data.date or date.today(),
            supplier_id=document_data.supplier_id,
            warehouse_from_id=document_data.warehouse_from_id,
            warehouse_to_id=document_data.warehouse_to_id,
            notes=document_data.notes,
            total_amount=ZERO,
            created_by=current_user_id
        )
        self.db.add(document)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(f"Document number {document.number} was taken concurrently, retry the operation") from e

        for item_data in document_data.items:
            await self._add_item(document.id, item_data)
        await self._recalculate_total(document)
        return document

    async def get_document(self, document_id: int) -> Document:
        result = await self.db.execute(
            select(Document)
            .options(
                selectinload(Document.supplier),
                selectinload(Document.warehouse_from),
                selectinload(Document.warehouse_to),
                selectinload(Document.items).selectinload(DocumentItem.product),
                selectinload(Document.movements).selectinload(StockMovement.warehouse),
                selectinload(Document.movements).selectinload(StockMovement.product)
            )
            .where(Document.id == document_id)
            .execution_options(populate_existing=True)
        )
        document = result.scalar_one_or_none()
        if not document:
            raise NotFoundError("Document not found")
        return document

    async def get_documents(
        self,
        page_index: int = 1,
        page_size: int = 100,
        document_type: Optional[DocumentType] = None,
        status: Optional[DocumentStatus] = None,
        warehouse_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Dict[str, Any]:
        query = select(Document)

        if document_type:
            query = query.where(Document.type == document_type)
        if status:
            query = query.where(Document.status == status)
        if warehouse_id:
            query = query.where(or_(
                Document.warehouse_from_id == warehouse_id,
                Document.warehouse_to_id == warehouse_id
            ))
        if supplier_id:
            query = query.where(Document.supplier_id == supplier_id)
        if date_from:
            query = query.where(Document.date >= date_from)
        if date_to:
            query = query.where(Document.date <= date_to)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(
                selectinload(Document.supplier),
                selectinload(Document.warehouse_from),
                selectinload(Document.warehouse_to)
            )
            .order_by(Document.created_at.desc(), Document.id.desc())
            .offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def update_document(
        self, document_id: int, document_data: DocumentUpdate, current_user_id: Optional[int] = None
    ) -> Document:
        document = await self.get_document(document_id)
        self._ensure_draft(document, "edited")

        update_data = document_data.model_dump(exclude_unset=True)
        merged = {
            "supplier_id": update_data.get("supplier_id", document.supplier_id),
            "warehouse_from_id": update_data.get("warehouse_from_id", document.warehouse_from_id),
            "warehouse_to_id": update_data.get("warehouse_to_id", document.warehouse_to_id),
        }
        validate_parties(document.type, **merged)
        await self._validate_references(**merged)

        for field, value in update_data.items():
            if field == "date" and value is None:
                continue
            setattr(document, field, value)
        document.updated_by = current_user_id

        await self.db.commit()
        return await self.get_document(document_id)

    async def delete_document(self, document_id: int) -> None:
        document = await self.get_document(document_id)
        self._ensure_draft(document, "deleted")

        await self.db.delete(document)
        await self.db.commit()
        logger.info(f"Draft document {document.number} deleted")

    async def add_item(
        self, document_id: int, item_data: DocumentItemCreate, current_user_id: Optional[int] = None
    ) -> Document:
        document = await self.get_document(document_id)
        self._ensure_draft(document, "edited")

        try:
            await self._add_item(document.id, item_data)
            await self._recalculate_total(document)
            document.updated_by = current_user_id
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self.get_document(document_id)

    async def remove_item(self, document_id: int, item_id: int, current_user_id: Optional[int] = None) -> Document:
        document = await self.get_document(document_id)
        self._ensure_draft(document, "edited")

        item = next((i for i in document.items if i.id == item_id), None)
        if not item:
            raise NotFoundError("Document item not found")

        document.items.remove(item)
        await self.db.flush()
        await self._recalculate_total(document)
        document.updated_by = current_user_id
        await self.db.commit()
        return await self.get_document(document_id)

    async def approve_document(self, document_id: int, current_user_id: Optional[int] = None) -> Document:
        """Post the document's movements and mark it APPROVED, all in one transaction"""
        try:
            document = await self._get_for_update(document_id)
            if document.status != DocumentStatus.DRAFT:
                raise InvalidStateError(
                    f"Document {document.number} is {document.status.value}; only drafts can be approved"
                )
            if not document.items:
                raise ValidationError("Cannot approve a document without items")

            locked = await self.movements.lock_balances(self._balance_keys(document))
            for item in document.items:
                await self._post_item(document, item, locked)

            document.status = DocumentStatus.APPROVED
            document.approved_by = current_user_id
            document.approved_at = utcnow()
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Approval of document {document_id} failed: {e}")
            raise

        logger.info(f"Document {document.number} approved by user {current_user_id}")
        return await self.get_document(document_id)

    async def cancel_document(self, document_id: int, current_user_id: Optional[int] = None) -> Document:
        """Post compensating movements for an APPROVED document and mark it CANCELLED"""
        try:
            document = await self._get_for_update(document_id)
            if document.status != DocumentStatus.APPROVED:
                raise AlreadyCancelledError(
                    f"Document {document.number} is {document.status.value}; only approved documents can be cancelled"
                )

            originals = [m for m in document.movements if m.reverses_id is None]
            locked = await self.movements.lock_balances((m.warehouse_id, m.product_id) for m in originals)
            # Newest first, so each compensating entry undoes the latest movement still in effect
            for original in sorted(originals, key=lambda m: m.id, reverse=True):
                await self.movements.record(
                    MovementCreate(
                        warehouse_id=original.warehouse_id,
                        product_id=original.product_id,
                        type=original.type,
                        quantity=-original.quantity,
                        price=original.price,
                        document_id=document.id,
                        reverses_id=original.id,
                        notes=f"Cancellation of {document.number}"
                    ),
                    locked[(original.warehouse_id, original.product_id)]
                )

            document.status = DocumentStatus.CANCELLED
            document.cancelled_at = utcnow()
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Cancellation of document {document_id} failed: {e}")
            raise

        logger.info(f"Document {document.number} cancelled by user {current_user_id}")
        return await self.get_document(document_id)

    async def _post_item(self, document: Document, item: DocumentItem, locked) -> None:
        def movement(warehouse_id, movement_type, qty, price=ZERO):
            return MovementCreate(
                warehouse_id=warehouse_id,
                product_id=item.product_id,
                type=movement_type,
                quantity=qty,
                price=price,
                document_id=document.id,
                batch_number=item.batch_number,
                expiry_date=item.expiry_date
            )

        qty = round_quantity(item.quantity)
        source_key = (document.warehouse_from_id, item.product_id)
        target_key = (document.warehouse_to_id, item.product_id)

        if document.type == DocumentType.RECEIPT:
            await self.movements.record(
                movement(document.warehouse_to_id, MovementType.IN, qty, item.price), locked[target_key]
            )
        elif document.type == DocumentType.TRANSFER:
            outgoing = await self.movements.record(
                movement(document.warehouse_from_id, MovementType.TRANSFER_OUT, -qty), locked[source_key]
            )
            # The destination receives the goods at the source's average cost
            await self.movements.record(
                movement(document.warehouse_to_id, MovementType.TRANSFER_IN, qty, outgoing.price), locked[target_key]
            )
        elif document.type == DocumentType.WRITEOFF:
            await self.movements.record(
                movement(document.warehouse_from_id, MovementType.WRITEOFF, -qty), locked[source_key]
            )
        elif document.warehouse_to_id:
            await self.movements.record(
                movement(document.warehouse_to_id, MovementType.IN, qty, item.price), locked[target_key]
            )
        else:
            await self.movements.record(
                movement(document.warehouse_from_id, MovementType.OUT, -qty), locked[source_key]
            )

    @staticmethod
    def _balance_keys(document: Document) -> List[tuple]:
        keys = []
        for item in document.items:
            if document.warehouse_from_id:
                keys.append((document.warehouse_from_id, item.product_id))
            if document.warehouse_to_id:
                keys.append((document.warehouse_to_id, item.product_id))
        return keys

    @staticmethod
    def _ensure_draft(document: Document, action: str) -> None:
        if document.status != DocumentStatus.DRAFT:
            raise InvalidStateError(
                f"Document {document.number} is {document.status.value}; only drafts can be {action}"
            )

    async def _get_for_update(self, document_id: int) -> Document:
        result = await self.db.execute(
            select(Document)
            .options(selectinload(Document.items), selectinload(Document.movements))
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        document = result.scalar_one_or_none()
        if not document:
            raise NotFoundError("Document not found")
        return document

    async def _add_item(self, document_id: int, item_data: DocumentItemCreate) -> DocumentItem:
        product = await self.db.get(Product, item_data.product_id)
        if not product:
            raise ValidationError(f"Product {item_data.product_id} not found")

        qty = round_quantity(item_data.quantity)
        price = money(item_data.price)
        item = DocumentItem(
            document_id=document_id,
            product_id=item_data.product_id,
            quantity=qty,
            price=price,
            total=money(qty * price),
            batch_number=item_data.batch_number,
            expiry_date=item_data.expiry_date
        )
        self.db.add(item)
        await self.db.flush()
        return item

    async def _recalculate_total(self, document: Document) -> None:
        total = await self.db.scalar(
            select(func.coalesce(func.sum(DocumentItem.total), 0)).where(DocumentItem.document_id == document.id)
        )
        document.total_amount = money(total)

    async def _validate_references(
        self,
        supplier_id: Optional[int],
        warehouse_from_id: Optional[int],
        warehouse_to_id: Optional[int]
    ) -> None:
        if supplier_id and not await self.db.get(Supplier, supplier_id):
            raise ValidationError("Supplier not found")
        for warehouse_id in (warehouse_from_id, warehouse_to_id):
            if warehouse_id and not await self.db.get(Warehouse, warehouse_id):
                raise ValidationError(f"Warehouse {warehouse_id} not found")

    async def _generate_document_number(self, document_type: DocumentType) -> str:
        """Next number of the month: PREFIX-YYYYMM####"""
        today = date.today()
        stem = f"{NUMBER_PREFIXES[document_type]}-{today.strftime('%Y%m')}"

        last_number = await self.db.scalar(
            select(func.max(Document.number)).where(Document.number.like(f"{stem}%"))
        )
        sequence = int(last_number[len(stem):]) + 1 if last_number else 1
        return f"{stem}{sequence:04d}"

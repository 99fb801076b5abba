import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from backoffice.db.base import utcnow
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.warehouse.stock_movement import StockMovement
from backoffice.models.nomenclature.product import Product
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.shared.enums import MovementType
from backoffice.schemas.warehouse.stock_balance import BalanceSnapshot, LedgerEntry
from backoffice.schemas.warehouse.stock_movement import MovementCreate
from backoffice.services.warehouse.stock_balance_service import apply_movement, fold, same_balance
from backoffice.core.exceptions import ConflictError, InsufficientStockError, NotFoundError
from backoffice.utils.decimals import cost, quantity as round_quantity

logger = logging.getLogger(__name__)

BalanceKey = Tuple[int, int]  # (warehouse_id, product_id)


class StockMovementService:
    """Append-only movement recorder.

    Every movement is folded into its (warehouse, product) balance row while
    that row is locked. The recorder never commits: the caller owns the
    transaction, so a failure anywhere rolls back all movements of an
    operation together with their balance updates.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_balances(self, keys: Iterable[BalanceKey]) -> Dict[BalanceKey, StockBalance]:
        """Lock (creating where missing) balance rows in a stable order"""
        locked = {}
        for warehouse_id, product_id in sorted(set(keys)):
            locked[(warehouse_id, product_id)] = await self._get_balance_for_update(warehouse_id, product_id)
        return locked

    async def record(self, data: MovementCreate, balance: Optional[StockBalance] = None) -> StockMovement:
        if balance is None:
            balance = await self._get_balance_for_update(data.warehouse_id, data.product_id)

        qty = round_quantity(data.quantity)
        price = data.price
        if qty < 0 and data.reverses_id is None:
            # Goods leave at the current average cost
            price = balance.avg_price

        now = utcnow()
        movement = StockMovement(
            warehouse_id=data.warehouse_id,
            product_id=data.product_id,
            type=data.type,
            quantity=qty,
            price=cost(price),
            document_id=data.document_id,
            reverses_id=data.reverses_id,
            batch_number=data.batch_number,
            expiry_date=data.expiry_date,
            notes=data.notes,
            created_at=now,
            updated_at=now
        )
        self.db.add(movement)
        await self.db.flush()

        entry = LedgerEntry.model_validate(movement)
        try:
            if entry.is_reversal:
                # Compensating entries may restore an earlier snapshot, which needs the history
                history = await self._ledger_entries(data.warehouse_id, data.product_id)
                snapshot = fold(history)
            else:
                snapshot = apply_movement(BalanceSnapshot.model_validate(balance), entry)
        except InsufficientStockError as e:
            product = await self.db.get(Product, data.product_id)
            warehouse = await self.db.get(Warehouse, data.warehouse_id)
            raise InsufficientStockError(
                f"Insufficient stock of '{product.name}' in '{warehouse.name}': "
                f"available {round_quantity(balance.quantity)}, requested {abs(qty)}"
            ) from e

        self._store(balance, snapshot)
        logger.debug(
            f"Movement {movement.id} {movement.type.value} {qty} of product {data.product_id} "
            f"in warehouse {data.warehouse_id}, balance now {snapshot.quantity} @ {snapshot.avg_price}"
        )
        return movement

    async def fold_balance(self, warehouse_id: int, product_id: int) -> Tuple[BalanceSnapshot, int]:
        """Balance recomputed from the movement history, with the number of movements folded"""
        history = await self._ledger_entries(warehouse_id, product_id)
        return fold(history), len(history)

    async def verify_balance(self, warehouse_id: int, product_id: int) -> Dict[str, Any]:
        result = await self.db.execute(
            select(StockBalance).where(
                StockBalance.warehouse_id == warehouse_id,
                StockBalance.product_id == product_id
            )
        )
        balance = result.scalar_one_or_none()
        computed, movements_count = await self.fold_balance(warehouse_id, product_id)

        if balance is None and movements_count == 0:
            raise NotFoundError("No stock balance for this warehouse and product")

        stored = BalanceSnapshot.model_validate(balance) if balance else BalanceSnapshot()
        return {
            "warehouse_id": warehouse_id,
            "product_id": product_id,
            "stored": stored,
            "computed": computed,
            "movements_count": movements_count,
            "consistent": same_balance(stored, computed),
        }

    async def rebuild_balances(self, warehouse_id: Optional[int] = None) -> Dict[str, int]:
        """Rewrite stored balances that disagree with their movement history"""
        keys_query = select(StockMovement.warehouse_id, StockMovement.product_id).distinct()
        if warehouse_id:
            keys_query = keys_query.where(StockMovement.warehouse_id == warehouse_id)
        keys = (await self.db.execute(keys_query)).all()

        checked = corrected = 0
        try:
            locked = await self.lock_balances((w, p) for w, p in keys)
            for (w, p), balance in locked.items():
                checked += 1
                computed, _ = await self.fold_balance(w, p)
                if not same_balance(BalanceSnapshot.model_validate(balance), computed):
                    logger.warning(
                        f"Balance of product {p} in warehouse {w} differs from its history: "
                        f"stored {balance.quantity} @ {balance.avg_price}, "
                        f"computed {computed.quantity} @ {computed.avg_price}"
                    )
                    self._store(balance, computed)
                    corrected += 1
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Balances rebuilt: {checked} checked, {corrected} corrected")
        return {"balances_checked": checked, "balances_corrected": corrected}

    async def get_movements(
        self,
        page_index: int = 1,
        page_size: int = 100,
        warehouse_id: Optional[int] = None,
        product_id: Optional[int] = None,
        movement_type: Optional[MovementType] = None,
        document_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Dict[str, Any]:
        query = select(StockMovement)

        if warehouse_id:
            query = query.where(StockMovement.warehouse_id == warehouse_id)
        if product_id:
            query = query.where(StockMovement.product_id == product_id)
        if movement_type:
            query = query.where(StockMovement.type == movement_type)
        if document_id:
            query = query.where(StockMovement.document_id == document_id)
        if date_from:
            query = query.where(StockMovement.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))
        if date_to:
            query = query.where(StockMovement.created_at <= datetime.combine(date_to, time.max, tzinfo=timezone.utc))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(
                selectinload(StockMovement.warehouse),
                selectinload(StockMovement.product),
                selectinload(StockMovement.document)
            )
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def _get_balance_for_update(self, warehouse_id: int, product_id: int) -> StockBalance:
        result = await self.db.execute(
            select(StockBalance)
            .where(
                StockBalance.warehouse_id == warehouse_id,
                StockBalance.product_id == product_id
            )
            .with_for_update()
        )
        balance = result.scalar_one_or_none()
        if balance is None:
            balance = StockBalance(
                warehouse_id=warehouse_id,
                product_id=product_id,
                quantity=0,
                avg_price=0,
                total_value=0
            )
            self.db.add(balance)
            try:
                await self.db.flush()
            except IntegrityError as e:
                # Another transaction created the row first; nothing was locked for this one
                raise ConflictError(
                    f"Stock balance of product {product_id} in warehouse {warehouse_id} "
                    f"was created concurrently, retry the operation"
                ) from e
        return balance

    async def _ledger_entries(self, warehouse_id: int, product_id: int) -> List[LedgerEntry]:
        result = await self.db.execute(
            select(StockMovement)
            .where(
                StockMovement.warehouse_id == warehouse_id,
                StockMovement.product_id == product_id
            )
            .order_by(StockMovement.id)
        )
        return [LedgerEntry.model_validate(m) for m in result.scalars().all()]

    @staticmethod
    def _store(balance: StockBalance, snapshot: BalanceSnapshot) -> None:
        balance.quantity = snapshot.quantity
        balance.avg_price = snapshot.avg_price
        balance.total_value = snapshot.total_value
        balance.last_movement_date = snapshot.last_movement_date

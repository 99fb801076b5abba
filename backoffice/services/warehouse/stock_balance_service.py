from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload

from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.nomenclature.product import Product
from backoffice.schemas.warehouse.stock_balance import BalanceSnapshot, LedgerEntry
from backoffice.schemas.nomenclature.unit import UnitRef
from backoffice.core.exceptions import InsufficientStockError, NotFoundError
from backoffice.utils.decimals import ZERO, cost, money, quantity as round_quantity, to_decimal


def apply_movement(balance: BalanceSnapshot, entry: LedgerEntry) -> BalanceSnapshot:
    """Fold one movement into a balance.

    Incoming movements move the average price towards the movement price,
    outgoing movements leave it unchanged. A compensating outgoing movement
    takes the cost of the incoming movement it cancels back out of the average.
    """
    old_qty = to_decimal(balance.quantity)
    old_avg = to_decimal(balance.avg_price)
    qty = round_quantity(entry.quantity)
    price = to_decimal(entry.price)

    new_qty = round_quantity(old_qty + qty)
    if new_qty < 0:
        raise InsufficientStockError(
            f"Insufficient stock: available {old_qty}, requested {abs(qty)}"
        )

    if qty > 0:
        new_avg = cost((old_qty * old_avg + qty * price) / new_qty)
    elif qty < 0 and entry.is_reversal:
        if new_qty == 0:
            new_avg = ZERO
        else:
            new_avg = max(ZERO, cost((old_qty * old_avg - abs(qty) * price) / new_qty))
    else:
        new_avg = cost(old_avg)

    return BalanceSnapshot(
        quantity=new_qty,
        avg_price=new_avg,
        total_value=money(new_qty * new_avg),
        last_movement_date=entry.created_at or balance.last_movement_date,
    )


def fold(entries: Iterable[LedgerEntry], start: Optional[BalanceSnapshot] = None) -> BalanceSnapshot:
    """Recompute a balance from its movement history (ordered by id).

    A compensating entry whose original is the most recent movement still in
    effect restores the balance exactly as it was before that original, so
    approve-then-cancel is a round trip despite average price rounding.
    """
    balance = start or BalanceSnapshot()
    before = {}
    in_effect = []
    for entry in entries:
        if entry.is_reversal and in_effect and in_effect[-1] == entry.reverses_id:
            in_effect.pop()
            restored = before.pop(entry.reverses_id)
            balance = restored.model_copy(
                update={"last_movement_date": entry.created_at or balance.last_movement_date}
            )
            continue

        next_balance = apply_movement(balance, entry)
        if entry.is_reversal:
            # Older snapshots now include an effect that has been undone
            in_effect.clear()
            before.clear()
        elif entry.id is not None:
            before[entry.id] = balance
            in_effect.append(entry.id)
        balance = next_balance
    return balance


def same_balance(stored: BalanceSnapshot, computed: BalanceSnapshot) -> bool:
    return (
        round_quantity(stored.quantity) == round_quantity(computed.quantity)
        and cost(stored.avg_price) == cost(computed.avg_price)
        and money(stored.total_value) == money(computed.total_value)
    )


class StockBalanceService:
    """Read side of the ledger; balances are written only by the movement recorder"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, warehouse_id: int, product_id: int) -> Optional[StockBalance]:
        result = await self.db.execute(
            select(StockBalance).where(
                StockBalance.warehouse_id == warehouse_id,
                StockBalance.product_id == product_id
            )
        )
        return result.scalar_one_or_none()

    async def get_available_quantity(self, warehouse_id: int, product_id: int) -> Decimal:
        balance = await self.get_balance(warehouse_id, product_id)
        return to_decimal(balance.quantity) if balance else ZERO

    async def get_warehouse_balances(
        self,
        warehouse_id: int,
        only_positive: bool = False,
        search: Optional[str] = None
    ) -> List[StockBalance]:
        warehouse = await self.db.get(Warehouse, warehouse_id)
        if not warehouse:
            raise NotFoundError("Warehouse not found")

        query = (
            select(StockBalance)
            .join(Product, Product.id == StockBalance.product_id)
            .options(selectinload(StockBalance.product), selectinload(StockBalance.warehouse))
            .where(StockBalance.warehouse_id == warehouse_id)
        )
        if only_positive:
            query = query.where(StockBalance.quantity > 0)
        if search:
            query = query.where(or_(
                Product.name.ilike(f"%{search}%"),
                Product.article.ilike(f"%{search}%")
            ))

        result = await self.db.execute(query.order_by(Product.name))
        return result.scalars().all()

    async def get_low_stock(self, threshold: Decimal, warehouse_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Non-empty balances of active products at or below ``threshold``"""
        query = (
            select(StockBalance)
            .join(Product, Product.id == StockBalance.product_id)
            .options(
                selectinload(StockBalance.product).selectinload(Product.unit),
                selectinload(StockBalance.warehouse)
            )
            .where(
                Product.is_active == True,
                StockBalance.quantity > 0,
                StockBalance.quantity <= threshold
            )
        )
        if warehouse_id:
            query = query.where(StockBalance.warehouse_id == warehouse_id)

        result = await self.db.execute(query.order_by(StockBalance.quantity, Product.name))
        return [
            {
                "id": balance.id,
                "product_id": balance.product_id,
                "product_name": balance.product.name,
                "product_article": balance.product.article,
                "warehouse_id": balance.warehouse_id,
                "warehouse_name": balance.warehouse.name,
                "quantity": balance.quantity,
                "unit": UnitRef.model_validate(balance.product.unit) if balance.product.unit else None,
                "threshold": threshold,
            }
            for balance in result.scalars().all()
        ]

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from backoffice.core.exceptions import InsufficientStockError
from backoffice.schemas.warehouse.stock_balance import BalanceSnapshot, LedgerEntry
from backoffice.services.warehouse.stock_balance_service import apply_movement, fold, same_balance


def entry(entry_id, quantity, price="0", reverses_id=None):
    return LedgerEntry(
        id=entry_id,
        quantity=Decimal(quantity),
        price=Decimal(price),
        reverses_id=reverses_id,
        created_at=datetime(2026, 1, 1, 12, entry_id, tzinfo=timezone.utc),
    )


class TestApplyMovement:
    def test_incoming_sets_weighted_average(self):
        balance = apply_movement(BalanceSnapshot(), entry(1, "10", "5"))
        balance = apply_movement(balance, entry(2, "10", "7"))

        assert balance.quantity == Decimal("20")
        assert balance.avg_price == Decimal("6")
        assert balance.total_value == Decimal("120")

    def test_outgoing_keeps_average(self):
        balance = BalanceSnapshot(quantity=Decimal("20"), avg_price=Decimal("6"), total_value=Decimal("120"))
        balance = apply_movement(balance, entry(3, "-5", "6"))

        assert balance.quantity == Decimal("15")
        assert balance.avg_price == Decimal("6")
        assert balance.total_value == Decimal("90")

    def test_outgoing_beyond_stock_raises(self):
        balance = BalanceSnapshot(quantity=Decimal("2"), avg_price=Decimal("4"), total_value=Decimal("8"))
        with pytest.raises(InsufficientStockError):
            apply_movement(balance, entry(1, "-3"))

    def test_emptying_keeps_average(self):
        balance = BalanceSnapshot(quantity=Decimal("2"), avg_price=Decimal("4"), total_value=Decimal("8"))
        balance = apply_movement(balance, entry(1, "-2", "4"))

        assert balance.quantity == Decimal("0")
        assert balance.total_value == Decimal("0")

    def test_reversal_removes_incoming_cost(self):
        balance = BalanceSnapshot(quantity=Decimal("20"), avg_price=Decimal("6"), total_value=Decimal("120"))
        balance = apply_movement(balance, entry(3, "-10", "7", reverses_id=2))

        assert balance.quantity == Decimal("10")
        assert balance.avg_price == Decimal("5")

    def test_reversal_to_zero_resets_average(self):
        balance = BalanceSnapshot(quantity=Decimal("10"), avg_price=Decimal("5"), total_value=Decimal("50"))
        balance = apply_movement(balance, entry(2, "-10", "5", reverses_id=1))

        assert balance.quantity == Decimal("0")
        assert balance.avg_price == Decimal("0")

    def test_last_movement_date_follows_entry(self):
        balance = apply_movement(BalanceSnapshot(), entry(4, "1", "1"))
        assert balance.last_movement_date == datetime(2026, 1, 1, 12, 4, tzinfo=timezone.utc)


class TestFold:
    def test_empty_history(self):
        assert fold([]) == BalanceSnapshot()

    def test_receipts_and_writeoff(self):
        balance = fold([entry(1, "10", "5"), entry(2, "10", "7"), entry(3, "-5", "6")])

        assert balance.quantity == Decimal("15")
        assert balance.avg_price == Decimal("6")

    def test_cancel_restores_previous_balance_exactly(self):
        history = [entry(1, "3", "1.1111"), entry(2, "7", "2.3333")]
        before = fold(history[:1])
        after_cancel = fold(history + [entry(3, "-7", "2.3333", reverses_id=2)])

        assert same_balance(after_cancel, before)
        assert after_cancel.avg_price == before.avg_price

    def test_nested_cancels_unwind_in_order(self):
        history = [
            entry(1, "4", "3"),
            entry(2, "6", "8"),
            entry(3, "-6", "8", reverses_id=2),
            entry(4, "-4", "3", reverses_id=1),
        ]
        assert same_balance(fold(history), BalanceSnapshot())

    def test_cancel_of_older_movement_uses_average_formula(self):
        history = [entry(1, "10", "5"), entry(2, "10", "7"), entry(3, "-10", "5", reverses_id=1)]
        balance = fold(history)

        assert balance.quantity == Decimal("10")
        assert balance.avg_price == Decimal("7")

    def test_starting_balance(self):
        start = BalanceSnapshot(quantity=Decimal("5"), avg_price=Decimal("2"), total_value=Decimal("10"))
        balance = fold([entry(1, "5", "4")], start)

        assert balance.quantity == Decimal("10")
        assert balance.avg_price == Decimal("3")

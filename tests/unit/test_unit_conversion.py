import pytest
from decimal import Decimal
from types import SimpleNamespace
from backoffice.core.exceptions import IncompatibleUnitsError, ValidationError
from backoffice.models.shared.enums import UnitType
from backoffice.services.nomenclature.unit_service import convert_quantity, resolve_factor


def make_unit(unit_id, short_name, unit_type, factor="1", base_unit_id=None):
    return SimpleNamespace(
        id=unit_id,
        short_name=short_name,
        type=unit_type,
        conversion_factor=Decimal(factor),
        base_unit_id=base_unit_id,
    )


@pytest.fixture
def units():
    kg = make_unit(1, "kg", UnitType.WEIGHT)
    g = make_unit(2, "g", UnitType.WEIGHT, "0.001", base_unit_id=1)
    mg = make_unit(3, "mg", UnitType.WEIGHT, "0.001", base_unit_id=2)
    l = make_unit(4, "l", UnitType.VOLUME)
    return {u.id: u for u in (kg, g, mg, l)}


class TestResolveFactor:
    def test_root_unit(self, units):
        assert resolve_factor(units[1], units) == Decimal("1")

    def test_factor_is_product_of_chain(self, units):
        assert resolve_factor(units[3], units) == Decimal("0.000001")

    def test_cycle_is_rejected(self):
        a = make_unit(1, "a", UnitType.PIECE, "2", base_unit_id=2)
        b = make_unit(2, "b", UnitType.PIECE, "3", base_unit_id=1)
        with pytest.raises(ValidationError):
            resolve_factor(a, {1: a, 2: b})


class TestConvertQuantity:
    def test_same_unit_is_identity(self, units):
        assert convert_quantity(Decimal("1.2345"), units[2], units[2], units) == Decimal("1.2345")

    def test_grams_to_kilograms(self, units):
        assert convert_quantity(Decimal("500"), units[2], units[1], units) == Decimal("0.5")

    def test_kilograms_to_milligrams(self, units):
        assert convert_quantity(Decimal("2"), units[1], units[3], units) == Decimal("2000000")

    def test_round_trip(self, units):
        there = convert_quantity(Decimal("250"), units[2], units[1], units)
        assert convert_quantity(there, units[1], units[2], units) == Decimal("250")

    def test_different_types_are_incompatible(self, units):
        with pytest.raises(IncompatibleUnitsError) as exc_info:
            convert_quantity(Decimal("1"), units[1], units[4], units)
        assert exc_info.value.status_code == 400

import pytest
from decimal import Decimal
from backoffice.core.exceptions import ValidationError
from backoffice.models.shared.enums import DocumentType
from backoffice.services.document.document_service import validate_parties
from backoffice.services.recipe.recipe_service import selling_price_for


@pytest.mark.parametrize(
    "document_type, supplier_id, warehouse_from_id, warehouse_to_id",
    [
        (DocumentType.RECEIPT, 1, None, 2),
        (DocumentType.TRANSFER, None, 1, 2),
        (DocumentType.WRITEOFF, None, 1, None),
        (DocumentType.INVENTORY_ADJUSTMENT, None, None, 2),
        (DocumentType.INVENTORY_ADJUSTMENT, None, 1, None),
    ],
)
def test_valid_parties(document_type, supplier_id, warehouse_from_id, warehouse_to_id):
    validate_parties(document_type, supplier_id, warehouse_from_id, warehouse_to_id)


@pytest.mark.parametrize(
    "document_type, supplier_id, warehouse_from_id, warehouse_to_id",
    [
        (DocumentType.RECEIPT, None, None, 2),
        (DocumentType.RECEIPT, 1, None, None),
        (DocumentType.TRANSFER, None, 1, 1),
        (DocumentType.TRANSFER, None, None, 2),
        (DocumentType.WRITEOFF, None, None, 2),
        (DocumentType.INVENTORY_ADJUSTMENT, None, 1, 2),
        (DocumentType.INVENTORY_ADJUSTMENT, None, None, None),
    ],
)
def test_invalid_parties(document_type, supplier_id, warehouse_from_id, warehouse_to_id):
    with pytest.raises(ValidationError):
        validate_parties(document_type, supplier_id, warehouse_from_id, warehouse_to_id)


def test_selling_price_applies_margin():
    assert selling_price_for(Decimal("100"), Decimal("30")) == Decimal("130.00")


def test_no_selling_price_without_margin():
    assert selling_price_for(Decimal("100"), Decimal("0")) is None

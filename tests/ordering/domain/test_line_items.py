import pytest
from ordering.order.line_items import normalize_line_item, positive_integer
from payments.gateway.port import GatewayLineItem


def _line(**overrides):
    values = {
        "id": "li_1",
        "description": "Classic Tee",
        "quantity": 2,
        "unit_amount": 1500,
        "amount_subtotal": 3000,
        "price_product_id": "p1",
    }
    values.update(overrides)
    return GatewayLineItem(**values)


class TestPositiveInteger:
    @pytest.mark.parametrize(
        "value, expected",
        [(3, 3), (2.7, 2), (0, 1), (-4, 1), (None, 1), ("3", 1), (True, 1), (float("nan"), 1)],
    )
    def test_values(self, value, expected):
        assert positive_integer(value) == expected

    def test_custom_fallback(self):
        assert positive_integer(0, 0) == 0


class TestNormalizeLineItem:
    def test_uses_price_and_subtotal(self):
        snapshot = normalize_line_item(_line())

        assert snapshot.product_id == "p1"
        assert snapshot.product_name == "Classic Tee"
        assert snapshot.quantity == 2
        assert snapshot.unit_amount_in_cents == 1500
        assert snapshot.line_total_in_cents == 3000

    def test_unit_amount_derived_from_subtotal_rounding_half_up(self):
        snapshot = normalize_line_item(_line(unit_amount=None, quantity=2, amount_subtotal=1001))

        assert snapshot.unit_amount_in_cents == 501

    def test_line_total_falls_back_to_unit_times_quantity(self):
        snapshot = normalize_line_item(_line(amount_subtotal=None, quantity=3))

        assert snapshot.line_total_in_cents == 4500

    def test_missing_amounts_default_to_zero(self):
        snapshot = normalize_line_item(_line(unit_amount=None, amount_subtotal=None))

        assert snapshot.unit_amount_in_cents == 0
        assert snapshot.line_total_in_cents == 0

    def test_missing_quantity_and_name(self):
        snapshot = normalize_line_item(_line(quantity=None, description=None))

        assert snapshot.quantity == 1
        assert snapshot.product_name == "Item"

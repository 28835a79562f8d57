import pytest
from catalogue.product.product import Product, ProductStatus
from ordering.cart.cart import Cart, CartItem
from ordering.cart.items import add_item, remove_item, set_quantity
from ordering.cart.management import get_snapshot
from ordering.cart.snapshot import AdjustmentCode
from shared.database import get_database
from shared.exceptions import CartItemNotFoundError, ValidationError

USER_ID = "user-1"


def _stored_quantities(user_id=USER_ID):
    with get_database().unit_of_work() as session:
        cart = session.query(Cart).filter_by(user_id=user_id).one_or_none()
        if cart is None:
            return {}
        return {item.product_id: item.quantity for item in cart.items}


class TestGetSnapshot:
    def test_creates_empty_cart_lazily(self):
        snapshot = get_snapshot(USER_ID)

        assert snapshot.is_empty
        with get_database().unit_of_work() as session:
            assert session.query(Cart).filter_by(user_id=USER_ID).count() == 1

    def test_second_read_does_not_create_another_cart(self):
        get_snapshot(USER_ID)
        get_snapshot(USER_ID)

        with get_database().unit_of_work() as session:
            assert session.query(Cart).count() == 1

    def test_uses_live_price(self, make_product):
        product = make_product(price_in_cents=2500)
        add_item(USER_ID, product.id, 2)

        with get_database().unit_of_work() as session:
            session.get(Product, product.id).price_in_cents = 3000

        snapshot = get_snapshot(USER_ID)
        assert snapshot.items[0].price_in_cents == 3000
        assert snapshot.subtotal_in_cents == 6000


class TestAddItem:
    def test_adds_line(self, make_product):
        product = make_product(stock_quantity=5, price_in_cents=1200)

        snapshot = add_item(USER_ID, product.id, 2)

        assert snapshot.adjustments == []
        assert snapshot.item_count == 2
        assert snapshot.subtotal_in_cents == 2400
        item = snapshot.items[0]
        assert item.product_id == product.id
        assert item.max_allowed_quantity == 5
        assert item.line_total_in_cents == 2400

    def test_adds_on_top_of_existing_quantity(self, make_product):
        product = make_product(stock_quantity=5)

        add_item(USER_ID, product.id, 1)
        snapshot = add_item(USER_ID, product.id, 2)

        assert snapshot.items[0].quantity == 3
        assert _stored_quantities() == {product.id: 3}

    def test_clamps_to_stock(self, make_product):
        product = make_product(name="Classic Tee", stock_quantity=3)

        snapshot = add_item(USER_ID, product.id, 5)

        assert snapshot.items[0].quantity == 3
        assert len(snapshot.adjustments) == 1
        adjustment = snapshot.adjustments[0]
        assert adjustment.code == AdjustmentCode.CLAMPED_TO_STOCK
        assert adjustment.requested_quantity == 5
        assert adjustment.adjusted_quantity == 3
        assert adjustment.message == "Classic Tee was adjusted to 3 because of available stock."

        # Reading again produces no new adjustment.
        assert get_snapshot(USER_ID).adjustments == []

    def test_out_of_stock_product_is_not_added(self, make_product):
        product = make_product(stock_quantity=0)

        snapshot = add_item(USER_ID, product.id, 1)

        assert snapshot.is_empty
        assert snapshot.adjustments[0].code == AdjustmentCode.REMOVED_UNAVAILABLE
        assert _stored_quantities() == {}

    def test_unpublished_product_is_not_added(self, make_product):
        product = make_product(status=ProductStatus.DRAFT)

        snapshot = add_item(USER_ID, product.id, 1)

        assert snapshot.is_empty
        assert snapshot.adjustments[0].code == AdjustmentCode.REMOVED_UNAVAILABLE

    def test_unknown_product(self):
        snapshot = add_item(USER_ID, "missing", 1)

        assert snapshot.adjustments[0].product_name == "Item"

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", None, True])
    def test_rejects_invalid_quantity(self, make_product, quantity):
        product = make_product()

        with pytest.raises(ValidationError):
            add_item(USER_ID, product.id, quantity)

    def test_carts_are_per_user(self, make_product):
        product = make_product()

        add_item("user-a", product.id, 1)

        assert get_snapshot("user-b").is_empty


class TestSetQuantity:
    def test_sets_absolute_quantity(self, make_product):
        product = make_product(stock_quantity=5)
        item_id = add_item(USER_ID, product.id, 1).items[0].id

        snapshot = set_quantity(USER_ID, item_id, 4)

        assert snapshot.items[0].quantity == 4
        assert snapshot.adjustments == []

    def test_clamps_to_stock(self, make_product):
        product = make_product(stock_quantity=3)
        item_id = add_item(USER_ID, product.id, 1).items[0].id

        snapshot = set_quantity(USER_ID, item_id, 10)

        assert snapshot.items[0].quantity == 3
        assert snapshot.adjustments[0].code == AdjustmentCode.CLAMPED_TO_STOCK

    def test_zero_removes_without_adjustment(self, make_product):
        product = make_product()
        item_id = add_item(USER_ID, product.id, 2).items[0].id

        snapshot = set_quantity(USER_ID, item_id, 0)

        assert snapshot.is_empty
        assert snapshot.adjustments == []

    def test_unpublished_product_is_removed(self, make_product):
        product = make_product()
        item_id = add_item(USER_ID, product.id, 2).items[0].id
        with get_database().unit_of_work() as session:
            session.get(Product, product.id).status = ProductStatus.DRAFT

        snapshot = set_quantity(USER_ID, item_id, 1)

        assert snapshot.is_empty
        assert snapshot.adjustments[0].code == AdjustmentCode.REMOVED_UNAVAILABLE

    def test_item_of_another_cart_is_not_found(self, make_product):
        product = make_product()
        item_id = add_item("someone-else", product.id, 1).items[0].id

        with pytest.raises(CartItemNotFoundError):
            set_quantity(USER_ID, item_id, 2)

    def test_negative_quantity(self, make_product):
        product = make_product()
        item_id = add_item(USER_ID, product.id, 1).items[0].id

        with pytest.raises(ValidationError):
            set_quantity(USER_ID, item_id, -1)


class TestRemoveItem:
    def test_removes_line(self, make_product):
        first = make_product(name="First")
        second = make_product(name="Second")
        item_id = add_item(USER_ID, first.id, 1).items[0].id
        add_item(USER_ID, second.id, 1)

        snapshot = remove_item(USER_ID, item_id)

        assert [item.product_id for item in snapshot.items] == [second.id]
        assert snapshot.adjustments == []

    def test_missing_item(self):
        with pytest.raises(CartItemNotFoundError):
            remove_item(USER_ID, "missing")


class TestNormalization:
    def test_stock_drop_clamps_and_persists(self, make_product, set_stock):
        product = make_product(stock_quantity=5)
        add_item(USER_ID, product.id, 4)
        set_stock(product.id, 2)

        snapshot = get_snapshot(USER_ID)

        assert snapshot.items[0].quantity == 2
        assert snapshot.adjustments[0].code == AdjustmentCode.CLAMPED_TO_STOCK
        assert _stored_quantities() == {product.id: 2}
        assert get_snapshot(USER_ID).adjustments == []

    def test_deleted_product_is_pruned(self, make_product):
        product = make_product(name="Gone Tee")
        add_item(USER_ID, product.id, 1)
        with get_database().unit_of_work() as session:
            session.delete(session.get(Product, product.id))

        snapshot = get_snapshot(USER_ID)

        assert snapshot.is_empty
        assert snapshot.adjustments[0].code == AdjustmentCode.REMOVED_UNAVAILABLE
        assert snapshot.adjustments[0].product_name == "Item"
        with get_database().unit_of_work() as session:
            assert session.query(CartItem).count() == 0

    def test_sold_out_product_is_pruned(self, make_product, set_stock):
        product = make_product(name="Classic Tee")
        add_item(USER_ID, product.id, 1)
        set_stock(product.id, 0)

        snapshot = get_snapshot(USER_ID)

        assert snapshot.is_empty
        assert snapshot.adjustments[0].message == (
            "Classic Tee is no longer available and was removed from your cart."
        )

    def test_items_keep_insertion_order(self, make_product):
        products = [make_product(name=f"Product {n}") for n in range(3)]
        for product in reversed(products):
            add_item(USER_ID, product.id, 1)

        snapshot = get_snapshot(USER_ID)

        assert [item.product_id for item in snapshot.items] == [p.id for p in reversed(products)]

from types import SimpleNamespace

import pytest

from urbanpos.pos.cart import Cart
from urbanpos.pos.errors import InvalidQuantity, OutOfStock, StockLimitReached


def product(pid, stock, name="Item"):
    return SimpleNamespace(id=pid, name=name, stock_quantity=stock)


class TestAdd:
    def test_new_product_gets_a_line(self):
        cart = Cart().add(product(1, 5), 2)
        assert [(l.product_id, l.quantity) for l in cart] == [(1, 2)]

    def test_same_product_merges(self):
        p = product(1, 5)
        cart = Cart().add(p).add(p, 2)
        assert len(cart) == 1
        assert cart.line_for(1).quantity == 3

    def test_insertion_order_is_kept(self):
        cart = Cart().add(product(2, 5)).add(product(1, 5)).add(product(2, 5))
        assert cart.product_ids == [2, 1]

    def test_out_of_stock(self):
        with pytest.raises(OutOfStock):
            Cart().add(product(1, 0))

    def test_cannot_exceed_stock(self):
        p = product(1, 3)
        cart = Cart().add(p, 3)
        with pytest.raises(StockLimitReached) as exc:
            cart.add(p)
        assert exc.value.data["available"] == 3
        # original cart untouched
        assert cart.line_for(1).quantity == 3

    @pytest.mark.parametrize("qty", [0, -1, 1.5, "two", True])
    def test_rejects_bad_quantities(self, qty):
        with pytest.raises(InvalidQuantity):
            Cart().add(product(1, 5), qty)

    def test_numeric_string_quantity(self):
        assert Cart().add(product(1, 5), "2").item_count == 2


class TestSetQuantity:
    def test_zero_removes_line(self):
        p = product(1, 5)
        cart = Cart().add(p, 2).set_quantity(p, 0)
        assert cart.is_empty

    def test_replaces_quantity(self):
        p = product(1, 5)
        cart = Cart().add(p, 2).set_quantity(p, 4)
        assert cart.line_for(1).quantity == 4

    def test_above_stock(self):
        p = product(1, 5)
        with pytest.raises(StockLimitReached):
            Cart().add(p).set_quantity(p, 6)


def test_remove_and_clear():
    cart = Cart().add(product(1, 5)).add(product(2, 5))
    assert cart.remove(1).product_ids == [2]
    assert cart.clear().is_empty
    assert cart.item_count == 2

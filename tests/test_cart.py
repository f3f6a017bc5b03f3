import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import json
import logging
import pytest
from storefront.cart import CartManager, CART_KEY, decode_cart, encode_cart
from storefront.domain import CartLineItem
from storefront.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cart(store):
    return CartManager(store)


def test_missing_record_is_empty_cart(cart):
    assert cart.get_cart() == ()


@pytest.mark.parametrize("raw", ["not json", '{"productId": "m1"}', "42"])
def test_corrupt_record_is_empty_cart(store, cart, raw, caplog):
    store.set(CART_KEY, raw)
    with caplog.at_level(logging.WARNING):
        assert cart.get_cart() == ()
    assert "повреждена" in caplog.text


@pytest.mark.parametrize(
    "bad_line",
    [
        '{"productId": 1, "quantity": 1, "options": {}}',
        '{"productId": "bad", "quantity": "2", "options": {}}',
        '{"productId": "bad", "quantity": true, "options": {}}',
        '{"productId": "bad", "quantity": NaN, "options": {}}',
        '{"productId": "bad", "quantity": 1, "options": {"colour": 3}}',
        '"m1"',
    ],
)
def test_bad_line_skipped_valid_lines_kept(store, cart, bad_line, caplog):
    store.set(
        CART_KEY,
        '[{"productId": "m1", "quantity": 2, "options": {}}, ' + bad_line + "]",
    )
    with caplog.at_level(logging.WARNING):
        assert cart.get_cart() == (CartLineItem("m1", 2, {}),)
    assert "пропущена" in caplog.text


def test_fractional_quantity_written_by_cart_is_read_back(cart):
    cart.add_to_cart("m1", 2)
    cart.add_to_cart("acc1", 1.5)
    assert cart.get_cart() == (CartLineItem("m1", 2, {}), CartLineItem("acc1", 1.5, {}))
    assert cart.cart_count() == 3.5


def test_non_string_option_values_written_as_strings(cart):
    cart.add_to_cart("foot1", 1, {"size": 42})
    assert cart.get_cart() == (CartLineItem("foot1", 1, {"size": "42"}),)


def test_get_cart_is_idempotent(cart):
    cart.add_to_cart("m1", 2, {"colour": "черный"})
    cart.add_to_cart("acc1")
    assert cart.get_cart() == cart.get_cart()


def test_merge_same_product_and_options(cart):
    cart.add_to_cart("m1", 1, {"colour": "black"})
    cart.add_to_cart("m1", 2, {"colour": "black"})
    assert cart.get_cart() == (CartLineItem("m1", 3, {"colour": "black"}),)

    cart.add_to_cart("m1", 1, {"colour": "red"})
    items = cart.get_cart()
    assert len(items) == 2
    assert items[1] == CartLineItem("m1", 1, {"colour": "red"})


def test_options_compared_structurally(cart):
    cart.add_to_cart("m1", 1, {"colour": "black", "size": "M"})
    cart.add_to_cart("m1", 1, {"size": "M", "colour": "black"})
    assert len(cart.get_cart()) == 1
    assert cart.get_cart()[0].quantity == 2


def test_default_quantity_and_options(cart):
    cart.add_to_cart("acc2")
    assert cart.get_cart() == (CartLineItem("acc2", 1, {}),)


def test_add_persists_immediately(store, cart):
    cart.add_to_cart("m1", 2, {"size": "L"})
    assert json.loads(store.get(CART_KEY)) == [
        {"productId": "m1", "quantity": 2, "options": {"size": "L"}}
    ]
    # новый менеджер над тем же хранилищем видит ту же корзину
    assert CartManager(store).get_cart() == cart.get_cart()


def test_update_sets_quantity(cart):
    cart.add_to_cart("m1")
    cart.add_to_cart("acc1")
    cart.update_cart_item(1, 5)
    assert cart.get_cart()[1].quantity == 5


@pytest.mark.parametrize("qty", [0, -1])
def test_update_to_non_positive_removes_item(cart, qty):
    cart.add_to_cart("m1")
    cart.add_to_cart("acc1")
    cart.update_cart_item(0, qty)
    assert [i.product_id for i in cart.get_cart()] == ["acc1"]


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_update_out_of_range_is_noop(store, cart, index):
    cart.add_to_cart("m1")
    cart.add_to_cart("acc1")
    before = store.get(CART_KEY)
    cart.update_cart_item(index, 7)
    assert store.get(CART_KEY) == before


def test_remove_item(cart):
    cart.add_to_cart("m1")
    cart.add_to_cart("acc1")
    cart.remove_cart_item(0)
    assert [i.product_id for i in cart.get_cart()] == ["acc1"]


@pytest.mark.parametrize("index", [-1, 2])
def test_remove_out_of_range_is_noop(cart, index):
    cart.add_to_cart("m1")
    cart.add_to_cart("acc1")
    before = cart.get_cart()
    cart.remove_cart_item(index)
    assert cart.get_cart() == before


def test_remove_on_empty_cart_does_not_write(store, cart):
    cart.remove_cart_item(0)
    assert store.get(CART_KEY) is None


def test_clear_and_count(cart):
    cart.add_to_cart("m1", 2)
    cart.add_to_cart("acc1", 3)
    assert cart.cart_count() == 5
    cart.clear_cart()
    assert cart.get_cart() == ()
    assert cart.cart_count() == 0


def test_encode_decode_keeps_order():
    items = (CartLineItem("m1", 1, {"colour": "черный"}), CartLineItem("acc1", 2, {}))
    assert decode_cart(encode_cart(items)).get_or_else(None) == items
    assert decode_cart(None).get_or_else(None) == ()
    assert decode_cart("{}").is_left


def test_non_string_option_values_merge_after_reload(cart):
    cart.add_to_cart("foot1", 1, {"size": 42})
    cart.add_to_cart("foot1", 1, {"size": 42})
    assert cart.get_cart() == (CartLineItem("foot1", 2, {"size": "42"}),)

import json
import logging
import random
from decimal import Decimal

import pytest

from storefront.core.config import settings
from storefront.core.exceptions import InvalidQuantityException
from storefront.schemas.product import Product
from storefront.services.cart_store import CartStore
from storefront.services.storage import MemoryStorage


@pytest.fixture
def store(storage, inert_store):
    cart_store = CartStore(storage, record_store=inert_store)
    cart_store.load()
    return cart_store


def test_add_then_zero_quantity_empties_cart(store):
    cart = store.add_item({"id": "T1", "name": "Darjeeling 100g", "price": 499}, 2)

    assert len(cart.lines) == 1
    line = cart.lines[0]
    assert line.product_id == "T1"
    assert line.quantity == 2
    assert line.unit_price_snapshot == Decimal("499")

    cart = store.set_quantity("T1", 0)
    assert cart.lines == ()


def test_adding_same_product_merges_lines(store, darjeeling):
    store.add_item(darjeeling, 1)
    cart = store.add_item(darjeeling, 3)

    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 4


def test_quantity_is_clamped(store, darjeeling):
    store.add_item(darjeeling, 60)
    cart = store.add_item(darjeeling, 60)
    assert cart.lines[0].quantity == settings.CART_MAX_LINE_QUANTITY

    cart = store.set_quantity("T1", 500)
    assert cart.lines[0].quantity == settings.CART_MAX_LINE_QUANTITY


def test_lines_keep_insertion_order(store, darjeeling, assam):
    store.add_item(assam, 1)
    store.add_item(darjeeling, 1)
    cart = store.add_item(assam, 1)

    assert cart.product_ids == ["T2", "T1"]


def test_price_snapshot_is_not_refreshed_on_add(store, darjeeling):
    store.add_item(darjeeling, 1)
    repriced = Product(id="T1", name="Darjeeling 100g", price=Decimal("549"))
    cart = store.add_item(repriced, 1)

    assert cart.lines[0].unit_price_snapshot == Decimal("499")


@pytest.mark.parametrize("quantity", [1.5, "2", None, True, 0, -1])
def test_add_item_rejects_bad_quantity(store, darjeeling, quantity):
    with pytest.raises(InvalidQuantityException):
        store.add_item(darjeeling, quantity)
    assert store.cart.is_empty


@pytest.mark.parametrize("quantity", [2.0, "3", None])
def test_set_quantity_rejects_non_integers(store, darjeeling, quantity):
    store.add_item(darjeeling, 1)
    with pytest.raises(InvalidQuantityException) as exc:
        store.set_quantity("T1", quantity)
    assert exc.value.error_code == "INVALID_QUANTITY"
    assert store.cart.lines[0].quantity == 1


def test_negative_quantity_removes_line(store, darjeeling):
    store.add_item(darjeeling, 2)
    assert store.set_quantity("T1", -3).is_empty


def test_remove_missing_item_is_noop(store, darjeeling):
    cart = store.add_item(darjeeling, 1)
    assert store.remove_item("nope") is cart


def test_set_quantity_for_missing_item_is_noop(store):
    before = store.cart
    assert store.set_quantity("nope", 3) is before


def test_random_mutations_never_leave_empty_lines(storage, inert_store):
    rng = random.Random(1234)
    products = [Product(id=f"P{i}", name=f"Tea {i}", price=Decimal(100 + i)) for i in range(4)]
    store = CartStore(storage, record_store=inert_store)
    store.load()

    for _ in range(500):
        product = rng.choice(products)
        op = rng.randrange(3)
        if op == 0:
            cart = store.add_item(product, rng.randint(1, 40))
        elif op == 1:
            cart = store.remove_item(product.id)
        else:
            cart = store.set_quantity(product.id, rng.randint(-5, 120))

        assert all(1 <= line.quantity <= settings.CART_MAX_LINE_QUANTITY for line in cart.lines)
        assert len(set(cart.product_ids)) == len(cart.lines)


def test_reload_matches_last_state(storage, inert_store, darjeeling, assam):
    store = CartStore(storage, record_store=inert_store)
    store.load()
    store.add_item(darjeeling, 2)
    store.add_item(assam, 1)
    store.set_quantity("T1", 5)
    last = store.cart

    reloaded = CartStore(storage, record_store=inert_store).load()
    assert reloaded.lines == last.lines


def test_snapshot_format(storage, store, darjeeling):
    store.add_item(darjeeling, 2)

    raw = json.loads(storage.get_item(settings.CART_STORAGE_KEY))
    assert raw["version"] == settings.CART_SNAPSHOT_VERSION
    assert raw["lines"][0]["productId"] == "T1"
    assert raw["lines"][0]["quantity"] == 2
    assert Decimal(raw["lines"][0]["unitPriceSnapshot"]) == Decimal("499")


def test_emptying_cart_removes_snapshot(storage, store, darjeeling):
    store.add_item(darjeeling, 1)
    store.remove_item("T1")
    assert storage.get_item(settings.CART_STORAGE_KEY) is None


@pytest.mark.parametrize("raw", [
    "{not json",
    "[]",
    json.dumps({"version": 99, "lines": []}),
    json.dumps({"version": 1, "lines": [{"productId": "T1", "quantity": 0, "unitPriceSnapshot": 10}]}),
    json.dumps({"version": 1, "lines": [{"productId": "T1", "quantity": 1}]}),
    json.dumps({"version": 1, "lines": [
        {"productId": "T1", "quantity": 1, "unitPriceSnapshot": 10},
        {"productId": "T1", "quantity": 2, "unitPriceSnapshot": 10},
    ]}),
])
def test_corrupt_snapshot_loads_empty(inert_store, caplog, raw):
    storage = MemoryStorage({settings.CART_STORAGE_KEY: raw})
    store = CartStore(storage, record_store=inert_store)

    with caplog.at_level(logging.WARNING, logger="storefront.services.cart_store"):
        cart = store.load()

    assert cart.is_empty
    assert "Discarding stored cart" in caplog.text
    assert storage.get_item(settings.CART_STORAGE_KEY) is None


def test_snapshot_accepts_numeric_prices(inert_store):
    raw = json.dumps({"version": 1, "lines": [{"productId": "T1", "quantity": 3, "unitPriceSnapshot": 499}]})
    store = CartStore(MemoryStorage({settings.CART_STORAGE_KEY: raw}), record_store=inert_store)

    cart = store.load()
    assert cart.lines[0].quantity == 3
    assert cart.lines[0].unit_price_snapshot == Decimal("499")


class BrokenStorage(MemoryStorage):
    def get_item(self, key):
        raise OSError("storage disabled")

    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_storage_failures_do_not_break_mutations(inert_store, darjeeling):
    store = CartStore(BrokenStorage(), record_store=inert_store)

    assert store.load().is_empty
    cart = store.add_item(darjeeling, 2)
    assert cart.lines[0].quantity == 2


def test_without_storage_cart_lives_in_memory(inert_store, darjeeling):
    store = CartStore(None, record_store=inert_store)
    store.load()
    assert store.add_item(darjeeling, 1).item_count == 1


def test_revision_grows_with_each_mutation(store, darjeeling):
    start = store.cart.revision
    store.add_item(darjeeling, 1)
    store.set_quantity("T1", 2)
    store.remove_item("T1")
    assert store.cart.revision == start + 3


def test_clear(storage, store, darjeeling, assam):
    store.add_item(darjeeling, 1)
    store.add_item(assam, 1)
    assert store.clear().is_empty
    assert storage.get_item(settings.CART_STORAGE_KEY) is None

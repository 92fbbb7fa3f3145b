import asyncio
import json
from decimal import Decimal

from storefront.core.config import settings
from storefront.schemas.store import StoreResult, StoreStatus
from storefront.services.cart_store import CartStore
from storefront.services.storage import MemoryStorage


def loaded_store(storage, record_store, session_id=None):
    store = CartStore(storage, record_store=record_store, session_id=session_id)
    store.load()
    return store


async def test_reconcile_drops_missing_product_once(backend, record_store, storage, darjeeling, assam):
    backend.add_product("T1", "Darjeeling 100g", 499)
    store = loaded_store(storage, record_store)
    store.add_item(darjeeling, 1)
    store.add_item(assam, 2)

    result = await store.reconcile_with_backend()

    assert result.applied
    assert result.cart.product_ids == ["T1"]
    assert [notice.product_id for notice in result.unavailable] == ["T2"]
    assert "Assam Gold 250g" in result.unavailable[0].message

    again = await store.reconcile_with_backend()
    assert again.unavailable == []
    assert again.cart == result.cart


async def test_reconcile_keeps_snapshot_price_unless_repricing(backend, record_store, storage, darjeeling):
    backend.add_product("T1", "Darjeeling 100g", 549)
    store = loaded_store(storage, record_store)
    store.add_item(darjeeling, 1)

    result = await store.reconcile_with_backend()
    assert result.repriced == []
    assert result.cart.lines[0].unit_price_snapshot == Decimal("499")

    result = await store.reconcile_with_backend(reprice=True)
    assert result.repriced == ["T1"]
    assert result.cart.lines[0].unit_price_snapshot == Decimal("549")

    stored = json.loads(storage.get_item(settings.CART_STORAGE_KEY))
    assert Decimal(stored["lines"][0]["unitPriceSnapshot"]) == Decimal("549")


async def test_reconcile_keeps_lines_when_backend_fails(backend, record_store, storage, darjeeling):
    backend.fail = True
    store = loaded_store(storage, record_store)
    store.add_item(darjeeling, 1)

    result = await store.reconcile_with_backend()

    assert not result.applied
    assert result.cart.product_ids == ["T1"]
    assert result.unavailable == []


async def test_stale_reconciliation_is_discarded(storage, darjeeling):
    gate = asyncio.Event()

    class SlowStore:
        configured = True
        writable = False

        async def get_many(self, collection, keys):
            await gate.wait()
            return StoreResult(status=StoreStatus.OK, record={})

    store = loaded_store(storage, SlowStore())
    store.add_item(darjeeling, 1)

    task = asyncio.create_task(store.reconcile_with_backend())
    await asyncio.sleep(0)
    store.add_item(darjeeling, 1)
    gate.set()
    result = await task

    assert not result.applied
    assert store.cart.get("T1").quantity == 2


class GatedStore:
    """Record store whose calls on one collection wait for `gate`"""

    configured = True
    writable = True

    def __init__(self, gated_collection, record=None):
        self.gate = asyncio.Event()
        self.gated_collection = gated_collection
        self.record = record
        self.written = {}

    async def get(self, collection, key):
        if collection == self.gated_collection:
            await self.gate.wait()
        return StoreResult(status=StoreStatus.OK, record=self.record)

    async def put(self, collection, key, record):
        if collection == self.gated_collection:
            await self.gate.wait()
        self.written[(collection, key)] = record
        return StoreResult(status=StoreStatus.OK, record=record)

    async def delete(self, collection, key):
        return StoreResult(status=StoreStatus.OK)


async def test_checkout_keeps_lines_added_while_order_in_flight(storage, darjeeling, assam):
    backend = GatedStore("orders")
    store = loaded_store(storage, backend)
    store.add_item(darjeeling, 1)

    task = asyncio.create_task(store.checkout())
    await asyncio.sleep(0)
    store.add_item(assam, 2)
    store.add_item(darjeeling, 1)
    backend.gate.set()
    result = await task

    assert result.success
    order = backend.written[("orders", result.order_id)]
    assert [(item["product_id"], item["quantity"]) for item in order["items"]] == [("T1", 1)]

    assert [(line.product_id, line.quantity) for line in store.cart.lines] == [("T1", 1), ("T2", 2)]
    stored = json.loads(storage.get_item(settings.CART_STORAGE_KEY))
    assert [line["productId"] for line in stored["lines"]] == ["T1", "T2"]


async def test_checkout_drops_ordered_lines_removed_meanwhile(storage, darjeeling, assam):
    backend = GatedStore("orders")
    store = loaded_store(storage, backend)
    store.add_item(darjeeling, 2)

    task = asyncio.create_task(store.checkout())
    await asyncio.sleep(0)
    store.set_quantity("T1", 1)
    store.add_item(assam, 1)
    backend.gate.set()
    assert (await task).success

    assert store.cart.product_ids == ["T2"]


async def test_hydrate_ignores_mirror_when_cart_changed_during_fetch(storage, darjeeling):
    mirror = {
        "session_id": "sess-9",
        "snapshot": {"version": 1, "lines": [{"productId": "T9", "quantity": 5, "unitPriceSnapshot": "10"}]},
    }
    backend = GatedStore("carts", record=mirror)
    backend.writable = False
    store = CartStore(storage, record_store=backend, session_id="sess-9")

    task = asyncio.create_task(store.hydrate())
    await asyncio.sleep(0)
    store.add_item(darjeeling, 1)
    backend.gate.set()
    cart = await task

    assert cart.product_ids == ["T1"]
    assert store.cart.product_ids == ["T1"]
    stored = json.loads(storage.get_item(settings.CART_STORAGE_KEY))
    assert [line["productId"] for line in stored["lines"]] == ["T1"]


async def test_mutations_are_mirrored_to_backend(backend, record_store, storage, darjeeling):
    store = loaded_store(storage, record_store, session_id="sess-1")
    store.add_item(darjeeling, 2)
    await store.wait_for_sync()

    mirror = backend.tables["carts"]["sess-1"]
    assert mirror["snapshot"]["lines"][0]["productId"] == "T1"
    assert mirror["snapshot"]["lines"][0]["quantity"] == 2

    store.remove_item("T1")
    await store.wait_for_sync()
    assert "sess-1" not in backend.tables["carts"]


async def test_hydrate_restores_mirror_into_empty_cart(backend, record_store, darjeeling):
    backend.tables["carts"]["sess-9"] = {
        "session_id": "sess-9",
        "snapshot": {"version": 1, "lines": [
            {"productId": "T1", "quantity": 3, "unitPriceSnapshot": "499", "name": "Darjeeling 100g"},
        ]},
    }
    storage = MemoryStorage()
    store = CartStore(storage, record_store=record_store, session_id="sess-9")

    cart = await store.hydrate()

    assert cart.lines[0].quantity == 3
    assert storage.get_item(settings.CART_STORAGE_KEY) is not None


async def test_hydrate_prefers_local_cart(backend, record_store, storage, darjeeling):
    backend.tables["carts"]["sess-9"] = {
        "session_id": "sess-9",
        "snapshot": {"version": 1, "lines": [{"productId": "T9", "quantity": 1, "unitPriceSnapshot": "10"}]},
    }
    loaded_store(storage, record_store).add_item(darjeeling, 1)

    cart = await CartStore(storage, record_store=record_store, session_id="sess-9").hydrate()
    assert cart.product_ids == ["T1"]


async def test_checkout_success_clears_cart(backend, record_store, storage, darjeeling):
    store = loaded_store(storage, record_store, session_id="sess-1")
    store.add_item(darjeeling, 2)

    result = await store.checkout()

    assert result.success
    assert result.totals.total == Decimal("998")
    order = backend.tables["orders"][result.order_id]
    assert order["items"][0]["product_id"] == "T1"
    assert order["total"] == 998.0
    assert store.cart.is_empty
    assert storage.get_item(settings.CART_STORAGE_KEY) is None


async def test_checkout_failure_keeps_cart(backend, record_store, storage, darjeeling):
    backend.fail = True
    store = loaded_store(storage, record_store)
    store.add_item(darjeeling, 2)

    result = await store.checkout()

    assert not result.success
    assert result.error_code == "ERROR"
    assert store.cart.lines[0].quantity == 2
    assert storage.get_item(settings.CART_STORAGE_KEY) is not None


async def test_checkout_of_empty_cart(record_store, storage):
    result = await loaded_store(storage, record_store).checkout()
    assert not result.success
    assert result.error_code == "EMPTY_CART"


async def test_unconfigured_backend_leaves_cart_working(inert_store, storage, darjeeling):
    assert (await inert_store.get("products", "T1")).status == StoreStatus.UNCONFIGURED
    assert (await inert_store.put("carts", "s", {})).status == StoreStatus.UNCONFIGURED

    store = loaded_store(storage, inert_store, session_id="sess-1")
    store.add_item(darjeeling, 1)
    store.set_quantity("T1", 4)

    result = await store.reconcile_with_backend()
    assert not result.applied
    assert store.cart.lines[0].quantity == 4

    checkout = await store.checkout()
    assert checkout.error_code == "UNCONFIGURED"
    assert store.cart.lines[0].quantity == 4

"""Shared fixtures"""

import json
from decimal import Decimal

import httpx
import pytest

from storefront.core.config import Settings
from storefront.schemas.product import Product
from storefront.services.record_store import RecordStoreClient
from storefront.services.storage import MemoryStorage

STORE_URL = "https://example.supabase.co"

NO_CREDENTIALS = dict(
    SUPABASE_URL=None,
    NEXT_PUBLIC_SUPABASE_URL=None,
    SUPABASE_SERVICE_ROLE_KEY=None,
    NEXT_PUBLIC_SUPABASE_ANON_KEY=None,
)


def make_settings(**overrides) -> Settings:
    values = dict(NO_CREDENTIALS)
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeBackend:
    """In-memory stand-in for the record store's REST surface"""

    def __init__(self):
        self.tables = {"products": {}, "carts": {}, "orders": {}}
        self.requests = []
        self.fail = False
        self.transport = httpx.MockTransport(self.handle)

    def add_product(self, product_id, name, price):
        self.tables["products"][str(product_id)] = {"id": product_id, "name": name, "price": price}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, text="backend down")

        collection = request.url.path.rsplit("/", 1)[-1]
        table = self.tables.setdefault(collection, {})
        field = RecordStoreClient.KEY_FIELDS.get(collection, "id")
        condition = request.url.params.get(field, "")

        if request.method == "GET":
            if condition.startswith("eq."):
                key = condition[3:]
                rows = [table[key]] if key in table else []
            else:
                keys = [k.strip('"') for k in condition[4:-1].split(",")]
                rows = [table[k] for k in keys if k in table]
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            body = json.loads(request.content)
            table[str(body[field])] = body
            return httpx.Response(201)

        if request.method == "DELETE":
            table.pop(condition[3:], None)
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def server_settings():
    return make_settings(SUPABASE_URL=STORE_URL, SUPABASE_SERVICE_ROLE_KEY="service-key")


@pytest.fixture
def record_store(backend, server_settings):
    return RecordStoreClient(server_settings, transport=backend.transport)


@pytest.fixture
def inert_store():
    return RecordStoreClient(make_settings())


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def darjeeling():
    return Product(id="T1", name="Darjeeling 100g", price=Decimal("499"))


@pytest.fixture
def assam():
    return Product(id="T2", name="Assam Gold 250g", price=Decimal("650"))


@pytest.fixture
def pixel_calls():
    return []


@pytest.fixture
def window(pixel_calls):
    def fbq(*args):
        pixel_calls.append(args)
    return {"fbq": fbq}

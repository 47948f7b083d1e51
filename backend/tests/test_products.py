import json

import httpx
import pytest
from fastapi.testclient import TestClient

from cms.config import Settings
from cms.context import Environment
from cms.controllers.products import ProductsController
from cms.controllers.registry import build_registry
from cms.errors import UpstreamError
from cms.main import create_app
from cms.services.bigcommerce import BigCommerceStore
from support import run

STORE_HASH = "abc123"
TOKEN = "bc-token"
PRODUCTS_PATH = f"/stores/{STORE_HASH}/v3/catalog/products"


class FakeStore:
    """In-memory catalog answering like the BigCommerce v3 API"""

    def __init__(self, products=None):
        self.products = list(products or [])
        self.requests = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.headers["X-Auth-Token"] == TOKEN

        if request.url.path == PRODUCTS_PATH:
            if request.method == "GET":
                return self._list(request.url.params)
            if request.method == "POST":
                product = {"id": len(self.products) + 1, **json.loads(request.content)}
                self.products.append(product)
                return httpx.Response(200, json={"data": product})

        product_id = int(request.url.path.rsplit("/", 1)[-1])
        product = next(p for p in self.products if p["id"] == product_id)
        if request.method == "PUT":
            product.update(json.loads(request.content))
            return httpx.Response(200, json={"data": product})
        if request.method == "DELETE":
            self.products.remove(product)
            return httpx.Response(204)
        return httpx.Response(405)

    def _list(self, params) -> httpx.Response:
        found = self.products
        if "name" in params:
            found = [p for p in found if p["name"] == params["name"]]
        if "keyword" in params:
            found = [p for p in found if params["keyword"].lower() in p["name"].lower()]

        limit = int(params.get("limit", 50))
        page = int(params.get("page", 1))
        found = found[(page - 1) * limit:page * limit]
        return httpx.Response(200, json={"data": found, "meta": {"pagination": {"current_page": page}}})


def product(product_id, name):
    return {"id": product_id, "name": name, "price": 10, "date_modified": "2024-05-01T12:00:00+00:00"}


@pytest.fixture
def store():
    return FakeStore([product(1, "Mug"), product(2, "Shirt"), product(3, "Poster")])


@pytest.fixture
def products_client(db, mailer, store):
    settings = Settings(
        _env_file=None,
        ENVIRONMENT="test",
        BIGCOMMERCE_STORE_HASH=STORE_HASH,
        BIGCOMMERCE_TOKEN=TOKEN
    )
    registry = build_registry(settings, bigcommerce_transport=httpx.MockTransport(store.handle))
    environment = Environment(db=db, settings=settings, mailer=mailer, controllers=registry)
    with TestClient(create_app(environment=environment)) as client:
        yield client


def test_products_model_needs_credentials(settings):
    assert "products" not in build_registry(settings)


def test_products_are_served_by_the_store(settings):
    configured = settings.model_copy(update={
        "BIGCOMMERCE_STORE_HASH": STORE_HASH,
        "BIGCOMMERCE_TOKEN": TOKEN
    })
    registry = build_registry(configured)
    assert isinstance(registry.resolve("products"), ProductsController)


def test_list_pages_by_store_page_number(products_client, admin):
    first = products_client.get("/products", params={"limit": 2}, headers=admin)
    assert first.status_code == 200
    assert [row["name"] for row in first.json()] == ["Mug", "Shirt"]
    assert first.json()[0]["modified_at"] == 1714564800
    assert first.headers["x-last"] == "2"

    second = products_client.get("/products", params={"limit": 2, "after": "2"}, headers=admin)
    assert [row["name"] for row in second.json()] == ["Poster"]
    assert "x-last" not in second.headers


def test_list_rejects_bad_page_cursor(products_client, admin):
    assert products_client.get("/products", params={"after": "two"}, headers=admin).status_code == 400


def test_get_product(products_client, admin):
    res = products_client.get("/products", params={"name": "Mug"}, headers=admin)
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Mug"
    assert body["value"]["price"] == 10

    assert products_client.get("/products", params={"name": "Lamp"}, headers=admin).status_code == 404
    assert products_client.head("/products", params={"name": "Lamp"}, headers=admin).status_code == 404


def test_put_existing_product_updates_it(products_client, admin, store):
    res = products_client.put("/products", params={"name": "Mug"}, json={"price": 12}, headers=admin)
    assert res.status_code == 200

    assert store.requests[-1].method == "PUT"
    assert store.requests[-1].url.path == f"{PRODUCTS_PATH}/1"
    assert store.products[0]["price"] == 12


def test_put_new_product_creates_it(products_client, admin, store):
    res = products_client.put("/products", params={"name": "Lamp"}, json={"price": 30}, headers=admin)
    assert res.status_code == 200

    assert store.requests[-1].method == "POST"
    assert store.products[-1]["name"] == "Lamp"


def test_rename_product(products_client, admin, store):
    products_client.put("/products", params={"name": "Mug", "rename": "Cup"}, json={}, headers=admin)
    assert store.products[0]["name"] == "Cup"


def test_delete_product(products_client, admin, store):
    assert products_client.delete("/products", params={"name": "Shirt"}, headers=admin).status_code == 200
    assert [p["name"] for p in store.products] == ["Mug", "Poster"]


def test_products_have_no_folders(products_client, admin):
    assert products_client.get("/products/folders", headers=admin).status_code == 404


def test_store_outage_is_a_server_error(db, mailer, admin):
    settings = Settings(
        _env_file=None,
        ENVIRONMENT="test",
        BIGCOMMERCE_STORE_HASH=STORE_HASH,
        BIGCOMMERCE_TOKEN=TOKEN
    )
    outage = httpx.MockTransport(lambda request: httpx.Response(503))
    environment = Environment(
        db=db,
        settings=settings,
        mailer=mailer,
        controllers=build_registry(settings, bigcommerce_transport=outage)
    )
    with TestClient(create_app(environment=environment)) as client:
        res = client.get("/products", params={"name": "Mug"}, headers=admin)
    assert res.status_code == 500
    assert res.content == b""


def test_fetch_retries_server_errors():
    calls = []

    def flaky(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(502)
        return httpx.Response(200, json={"data": [{"id": 1}]})

    client = BigCommerceStore(STORE_HASH, TOKEN, transport=httpx.MockTransport(flaky))
    assert run(client.get("v3/catalog/products")) == [{"id": 1}]
    assert len(calls) == 3


def test_fetch_gives_up_after_three_attempts():
    calls = []

    def down(request):
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    client = BigCommerceStore(STORE_HASH, TOKEN, transport=httpx.MockTransport(down))
    with pytest.raises(UpstreamError):
        run(client.get("v3/catalog/products"))
    assert len(calls) == 3


def test_fetch_does_not_retry_client_errors():
    calls = []

    def rejected(request):
        calls.append(request)
        return httpx.Response(422, json={"title": "invalid"})

    client = BigCommerceStore(STORE_HASH, TOKEN, transport=httpx.MockTransport(rejected))
    with pytest.raises(UpstreamError):
        run(client.post("v3/catalog/products", body={"name": ""}))
    assert len(calls) == 1


def test_fetch_drops_empty_queries_and_supports_raw():
    seen = []

    def echo(request):
        seen.append(request.url.params)
        return httpx.Response(200, json={"data": [], "meta": {"total": 0}})

    client = BigCommerceStore(STORE_HASH, TOKEN, transport=httpx.MockTransport(echo))
    payload = run(client.get("v3/catalog/products", queries={"keyword": None, "limit": 5}, raw=True))

    assert payload["meta"] == {"total": 0}
    assert "keyword" not in seen[0]
    assert seen[0]["limit"] == "5"

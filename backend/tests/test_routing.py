"""
Route dispatch, error translation and the controller seam
"""

import pytest
from fastapi.testclient import TestClient

from cms.context import Environment
from cms.controllers.base import Controller
from cms.controllers.documents import DocumentsController
from cms.controllers.files import FilesController
from cms.controllers.registry import ControllerRegistry
from cms.errors import OperationNotSupported
from cms.main import create_app
from cms.services.pagination import ListResult
from support import run


class MemoryController(Controller):
    """Minimal controller keeping values in a dict"""

    def __init__(self):
        self.items = {}

    async def list(self, parameters, context):
        names = sorted(self.items)[:parameters.limit]
        return ListResult(results=[{"name": name} for name in names])

    async def exists(self, parameters, context):
        return parameters.name in self.items

    async def get(self, parameters, context):
        if parameters.name not in self.items:
            return None
        return {"name": parameters.name, "value": self.items[parameters.name]}

    async def put(self, parameters, context):
        self.items[parameters.name] = parameters.value
        return True

    async def delete(self, parameters, context):
        return self.items.pop(parameters.name, None) is not None


class BrokenController(MemoryController):

    async def list(self, parameters, context):
        raise RuntimeError("storage exploded")


@pytest.fixture
def memory():
    return MemoryController()


@pytest.fixture
def custom_client(db, settings, mailer, memory):
    registry = ControllerRegistry(
        {"widgets": memory, "broken": BrokenController(), "files": FilesController()},
        default=DocumentsController()
    )
    environment = Environment(db=db, settings=settings, mailer=mailer, controllers=registry)
    with TestClient(create_app(environment=environment)) as client:
        yield client


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


def test_unknown_route_is_a_bare_not_found(client):
    res = client.get("/a/b/c")
    assert res.status_code == 404
    assert res.content == b""


def test_unsupported_method_has_no_body(client, admin):
    res = client.patch("/pages", headers=admin)
    assert res.status_code == 405
    assert res.content == b""


@pytest.mark.parametrize("model", ["session", "verification"])
def test_reserved_names_are_not_models(client, admin, model):
    assert client.put(f"/{model}", params={"name": "x"}, json={}, headers=admin).status_code == 404


def test_verification_is_not_listable(client, admin):
    assert client.get("/verification", headers=admin).status_code == 404


def test_registry_falls_back_to_default_controller(registry):
    assert isinstance(registry.resolve("anything"), DocumentsController)
    with pytest.raises(OperationNotSupported):
        registry.resolve("session")
    with pytest.raises(OperationNotSupported):
        registry.resolve("")


def test_custom_controller_serves_its_model(custom_client, admin, memory, db):
    res = custom_client.put("/widgets", params={"name": "gear"}, json={"teeth": 12}, headers=admin)
    assert res.status_code == 200
    assert memory.items == {"gear": {"teeth": 12}}

    assert custom_client.get("/widgets", params={"name": "gear"}, headers=admin).json() == {
        "name": "gear",
        "value": {"teeth": 12}
    }
    assert custom_client.get("/widgets", headers=admin).json() == [{"name": "gear"}]
    assert custom_client.delete("/widgets", params={"name": "gear"}, headers=admin).status_code == 200
    assert memory.items == {}

    assert run(db.documents.count_documents({})) == 0


def test_controller_without_folders(custom_client, admin):
    assert custom_client.get("/widgets/folders", headers=admin).status_code == 404


def test_unhandled_controller_error_is_an_empty_500(custom_client, admin):
    res = custom_client.get("/broken", headers=admin)
    assert res.status_code == 500
    assert res.content == b""


def test_files_without_storage_fail_cleanly(custom_client, admin):
    res = custom_client.get("/files", params={"name": "a.txt"}, headers=admin)
    assert res.status_code == 500


def test_cors_headers_on_error_responses(client):
    res = client.get("/session", headers={"Origin": "https://editor.example.com"})
    assert res.status_code == 401
    assert "access-control-allow-origin" in res.headers

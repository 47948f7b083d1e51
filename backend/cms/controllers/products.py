"""
Products controller
Serves a model straight from a BigCommerce store instead of MongoDB
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from cms.context import RequestContext
from cms.controllers.base import Controller, DocumentParameters, ListParameters
from cms.errors import InvalidCursor
from cms.services.bigcommerce import BigCommerceStore
from cms.services.pagination import ListResult

logger = logging.getLogger(__name__)

PRODUCTS = "v3/catalog/products"

def _timestamp(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    return round(datetime.fromisoformat(value).timestamp())

class ProductsController(Controller):
    """
    BigCommerce catalog products, addressed by product name

    Pages are numbered by the store, so the cursor is simply the next page.
    """

    def __init__(self, store: BigCommerceStore):
        self.store = store

    async def _find(self, name: str, **queries) -> Optional[Dict[str, Any]]:
        found = await self.store.get(PRODUCTS, queries={"name": name, "limit": 1, **queries})
        return found[0] if found else None

    async def list(self, parameters: ListParameters, context: RequestContext) -> ListResult:
        try:
            page = int(parameters.after) if parameters.after else 1
        except ValueError as e:
            raise InvalidCursor(f"Malformed page cursor: {parameters.after!r}") from e

        results = await self.store.get(PRODUCTS, queries={
            "include_fields": "name,date_modified",
            "limit": parameters.limit,
            "page": page,
            "keyword": parameters.prefix
        })

        return ListResult(
            results=[
                {"name": product["name"], "folder": None, "modified_at": _timestamp(product.get("date_modified"))}
                for product in results
            ],
            last=str(page + 1) if len(results) == parameters.limit else None
        )

    async def exists(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        return await self._find(parameters.name, include_fields="id") is not None

    async def get(self, parameters: DocumentParameters, context: RequestContext) -> Optional[Dict[str, Any]]:
        product = await self._find(parameters.name, include="custom_fields,images")
        if not product:
            return None
        return {
            "model": parameters.model,
            "folder": None,
            "name": product.get("name", parameters.name),
            "value": product,
            "modified_at": _timestamp(product.get("date_modified"))
        }

    async def put(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        existing = await self._find(parameters.name, include_fields="id")
        value = dict(parameters.value or {})
        if parameters.rename:
            value["name"] = parameters.rename

        if existing:
            await self.store.put(f"{PRODUCTS}/{existing['id']}", body=value)
        else:
            value.setdefault("name", parameters.name)
            await self.store.post(PRODUCTS, body=value)
        logger.info(f"Saved product {value.get('name', parameters.name)}")
        return True

    async def delete(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        existing = await self._find(parameters.name, include_fields="id")
        if existing:
            await self.store.delete(f"{PRODUCTS}/{existing['id']}")
        return True

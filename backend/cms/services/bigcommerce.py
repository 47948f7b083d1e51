"""
BigCommerce Store Client
Authenticated REST calls with bounded retry on server errors
"""

import httpx
import logging
from typing import Any, Dict, Optional

from cms.errors import UpstreamError

logger = logging.getLogger(__name__)

API_ROOT = "https://api.bigcommerce.com/stores"
MAX_ATTEMPTS = 3

class BigCommerceStore:
    """Thin client over the BigCommerce v3 API"""

    def __init__(
        self,
        store_hash: str,
        token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.store_hash = store_hash
        self.token = token
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{API_ROOT}/{self.store_hash}/",
            headers={"Accept": "application/json", "X-Auth-Token": self.token},
            timeout=30.0,
            transport=self.transport
        )

    async def fetch(
        self,
        method: str,
        endpoint: str,
        queries: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        raw: bool = False
    ) -> Any:
        """
        Call the store API

        Server errors are retried up to MAX_ATTEMPTS times; client errors
        fail immediately.

        Args:
            method: HTTP method
            endpoint: Path below the store root, e.g. 'v3/catalog/products'
            queries: Query parameters; empty values are dropped
            body: JSON body
            raw: Return the whole payload instead of its `data` member

        Returns:
            Decoded JSON (None for 204)

        Raises:
            UpstreamError: on a client error or when retries run out
        """
        params = {name: value for name, value in (queries or {}).items() if name and value}
        response = None

        async with self._client() as client:
            for attempt in range(1, MAX_ATTEMPTS + 1):
                response = await client.request(method.upper(), endpoint, params=params, json=body)
                logger.info(f"{method.upper()} {response.request.url} - {response.status_code} {response.reason_phrase}")

                if response.is_success:
                    if response.status_code == 204:
                        return None
                    result = response.json()
                    if isinstance(result, dict) and "data" in result and not raw:
                        return result["data"]
                    return result

                if response.status_code < 500:
                    break
                logger.warning(f"BigCommerce attempt {attempt}/{MAX_ATTEMPTS} failed with {response.status_code}")

        raise UpstreamError(
            f"BigCommerce fetch error - {method.upper()} {endpoint} {response.status_code} "
            f"{response.reason_phrase} {response.text}"
        )

    async def get(self, endpoint: str, **kwargs) -> Any:
        return await self.fetch("get", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> Any:
        return await self.fetch("post", endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> Any:
        return await self.fetch("put", endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Any:
        return await self.fetch("delete", endpoint, **kwargs)

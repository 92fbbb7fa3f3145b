"""
Record store client for the managed backend (Supabase REST)
"""

from typing import Any, Dict, Iterable, Optional
from functools import lru_cache
import logging

import httpx

from storefront.core.config import Settings, settings as default_settings
from storefront.schemas.store import StoreResult, StoreStatus

logger = logging.getLogger(__name__)


class RecordStoreClient:
    """
    Thin accessor over the record store's REST surface

    Credentials are resolved once, at construction. Without a URL and a key
    the client is inert: every call returns UNCONFIGURED instead of raising.
    A client holding only the public key can read but not write.
    """

    KEY_FIELDS = {
        "products": "id",
        "carts": "session_id",
        "orders": "id",
    }

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or default_settings
        self.base_url = config.resolved_store_url
        self.api_key = config.resolved_store_key
        self.access = config.store_access_level
        self.timeout = config.RECORD_STORE_TIMEOUT
        self._transport = transport

        if self.access == "none":
            logger.warning(
                "Record store credentials missing; backend calls will return UNCONFIGURED"
            )
        else:
            logger.info(f"Record store client ready ({self.access} access)")

    @property
    def configured(self) -> bool:
        return self.access != "none"

    @property
    def writable(self) -> bool:
        return self.access == "server"

    def key_field(self, collection: str) -> str:
        return self.KEY_FIELDS.get(collection, "id")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    def _unconfigured(self) -> StoreResult:
        return StoreResult(status=StoreStatus.UNCONFIGURED, detail="Record store is not configured")

    async def get(self, collection: str, key: str) -> StoreResult:
        """Fetch one record by key"""
        if not self.configured:
            return self._unconfigured()

        params = {self.key_field(collection): f"eq.{key}", "select": "*"}
        try:
            async with self._client() as client:
                response = await client.get(f"/{collection}", params=params)
            if response.status_code >= 400:
                logger.error(f"Record store get {collection}/{key} failed: {response.status_code}")
                return StoreResult(status=StoreStatus.ERROR, detail=response.text)
            rows = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Record store get {collection}/{key} error: {e}")
            return StoreResult(status=StoreStatus.ERROR, detail=str(e))

        if not isinstance(rows, list):
            logger.error(f"Record store get {collection}/{key}: unexpected response body")
            return StoreResult(status=StoreStatus.ERROR, detail="unexpected response body")

        if not rows:
            return StoreResult(status=StoreStatus.NOT_FOUND)
        return StoreResult(status=StoreStatus.OK, record=rows[0])

    async def get_many(self, collection: str, keys: Iterable[str]) -> StoreResult:
        """
        Fetch several records in one request

        On success `record` maps each found key to its row; missing keys are
        simply absent from the mapping.
        """
        if not self.configured:
            return self._unconfigured()

        keys = list(keys)
        if not keys:
            return StoreResult(status=StoreStatus.OK, record={})

        field = self.key_field(collection)
        quoted = ",".join(f'"{k}"' for k in keys)
        params = {field: f"in.({quoted})", "select": "*"}
        try:
            async with self._client() as client:
                response = await client.get(f"/{collection}", params=params)
            if response.status_code >= 400:
                logger.error(f"Record store get_many {collection} failed: {response.status_code}")
                return StoreResult(status=StoreStatus.ERROR, detail=response.text)
            rows = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Record store get_many {collection} error: {e}")
            return StoreResult(status=StoreStatus.ERROR, detail=str(e))

        if not isinstance(rows, list):
            logger.error(f"Record store get_many {collection}: unexpected response body")
            return StoreResult(status=StoreStatus.ERROR, detail="unexpected response body")

        return StoreResult(
            status=StoreStatus.OK,
            record={str(row[field]): row for row in rows if isinstance(row, dict) and field in row},
        )

    async def put(self, collection: str, key: str, record: Dict[str, Any]) -> StoreResult:
        """Insert or replace one record"""
        if not self.configured:
            return self._unconfigured()
        if not self.writable:
            return StoreResult(status=StoreStatus.ERROR, detail="read-only credentials")

        body = dict(record)
        body[self.key_field(collection)] = key
        headers = {"Prefer": "resolution=merge-duplicates,return=minimal"}
        try:
            async with self._client() as client:
                response = await client.post(f"/{collection}", json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Record store put {collection}/{key} error: {e}")
            return StoreResult(status=StoreStatus.ERROR, detail=str(e))

        if response.status_code >= 400:
            logger.error(f"Record store put {collection}/{key} failed: {response.status_code}")
            return StoreResult(status=StoreStatus.ERROR, detail=response.text)
        return StoreResult(status=StoreStatus.OK, record=body)

    async def delete(self, collection: str, key: str) -> StoreResult:
        """Delete one record; deleting a missing record is not an error"""
        if not self.configured:
            return self._unconfigured()
        if not self.writable:
            return StoreResult(status=StoreStatus.ERROR, detail="read-only credentials")

        params = {self.key_field(collection): f"eq.{key}"}
        try:
            async with self._client() as client:
                response = await client.delete(f"/{collection}", params=params)
        except httpx.HTTPError as e:
            logger.error(f"Record store delete {collection}/{key} error: {e}")
            return StoreResult(status=StoreStatus.ERROR, detail=str(e))

        if response.status_code >= 400:
            logger.error(f"Record store delete {collection}/{key} failed: {response.status_code}")
            return StoreResult(status=StoreStatus.ERROR, detail=response.text)
        return StoreResult(status=StoreStatus.OK)


@lru_cache()
def get_record_store() -> RecordStoreClient:
    """Process-wide client, built once from the environment"""
    return RecordStoreClient()

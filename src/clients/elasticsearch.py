"""Elasticsearch-backed recipe cache (batch existence, batch upsert, ingredient search).

Pure data access over the Elasticsearch REST API: no ranking logic and no
failure policy. Every transport error, non-2xx status, or item-level bulk error
raises CacheStoreError.
"""

import asyncio
import json
from typing import Any, Optional, Sequence

import aiohttp

from src.models.models import CACHE_SOURCE_FIELDS, CacheDocument
from src.utils.errors import CacheStoreError
from src.utils.logger import logger


# Index mapping: ingredients is a keyword field so term queries match whole names
INDEX_MAPPING: dict[str, Any] = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "name": {"type": "text", "fields": {"raw": {"type": "keyword"}}},
            "category": {"type": "keyword"},
            "area": {"type": "keyword"},
            "ingredients": {"type": "keyword"},
            "measures": {"type": "keyword", "index": False},
            "instructions": {"type": "text"},
            "thumbnailUrl": {"type": "keyword", "index": False},
            "sourceUrl": {"type": "keyword", "index": False},
            "youtubeUrl": {"type": "keyword", "index": False},
            "ingredientCount": {"type": "integer"},
            "instructionLength": {"type": "integer"},
            "createdAt": {"type": "date"},
            "lastSeenAt": {"type": "date"},
        }
    }
}


class ElasticsearchCache:
    """Recipe cache stored in one Elasticsearch index, documents keyed by recipe id."""

    def __init__(self, base_url: str, index: str, timeout_seconds: float = 10) -> None:
        """Initialize the cache adapter.

        Args:
            base_url: Elasticsearch root URL, e.g. "http://localhost:9200".
            index: Index holding the recipe documents.
            timeout_seconds: Total timeout per request.
        """
        if not base_url:
            raise ValueError("ES_URL is required")
        if not index:
            raise ValueError("ES_INDEX is required")
        self.base_url = base_url.rstrip("/")
        self.index = index
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[str] = None,
        content_type: str = "application/json",
    ) -> tuple[int, Any]:
        """Send one request and return (status, decoded JSON body or None)."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Content-Type": content_type} if body is not None else None
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, data=body, headers=headers) as response:
                    text = await response.text()
                    payload = json.loads(text) if text else None
                    return response.status, payload
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise CacheStoreError(f"{method} {path} failed: {e}") from e

    async def _request_ok(self, method: str, path: str, body: Optional[str] = None, **kwargs) -> Any:
        status, payload = await self._request(method, path, body, **kwargs)
        if not 200 <= status < 300:
            raise CacheStoreError(f"{method} {path} failed with HTTP {status}: {_error_reason(payload)}")
        return payload

    async def ensure_index(self) -> bool:
        """Create the index with its mapping if it does not exist.

        Returns:
            True if the index was created, False if it already existed.
        """
        status, _ = await self._request("HEAD", self.index)
        if status == 200:
            return False
        if status != 404:
            raise CacheStoreError(f"HEAD {self.index} failed with HTTP {status}")
        await self._request_ok("PUT", self.index, json.dumps(INDEX_MAPPING))
        logger.info(f"Created cache index '{self.index}'")
        return True

    async def exists_batch(self, ids: Sequence[str]) -> dict[str, bool]:
        """Report, per id, whether a document is already cached (one _mget call)."""
        if not ids:
            return {}
        body = json.dumps({"ids": list(ids)})
        payload = await self._request_ok("POST", f"{self.index}/_mget?_source=false", body)
        docs = (payload or {}).get("docs")
        if not isinstance(docs, list):
            raise CacheStoreError("_mget response has no 'docs' array")

        found: dict[str, bool] = {}
        for doc in docs:
            doc_id = doc.get("_id") if isinstance(doc, dict) else None
            if doc_id is None:
                continue
            found[str(doc_id)] = bool(doc.get("found", False))
        return found

    async def upsert_batch(self, documents: Sequence[CacheDocument]) -> int:
        """Index documents under their recipe id in one _bulk call (existing ids are overwritten).

        Returns:
            Number of documents written.
        """
        if not documents:
            return 0

        lines: list[str] = []
        for doc in documents:
            lines.append(json.dumps({"index": {"_index": self.index, "_id": doc.id}}))
            lines.append(json.dumps(doc.to_wire()))
        body = "\n".join(lines) + "\n"

        payload = await self._request_ok(
            "POST", "_bulk?refresh=wait_for", body, content_type="application/x-ndjson"
        )
        if (payload or {}).get("errors"):
            failed = [
                item.get("index", {}).get("_id")
                for item in payload.get("items", [])
                if item.get("index", {}).get("error")
            ]
            raise CacheStoreError(f"_bulk reported errors for ids: {failed}")
        return len(documents)

    async def search_by_ingredients(self, ingredients: Sequence[str], limit: int) -> list[CacheDocument]:
        """Return cached documents containing at least one of the ingredients."""
        terms = list(dict.fromkeys(ingredients))
        if not terms:
            return []

        query = {
            "size": limit,
            "_source": CACHE_SOURCE_FIELDS,
            "query": {
                "bool": {
                    "should": [{"term": {"ingredients": name}} for name in terms],
                    "minimum_should_match": 1,
                }
            },
        }
        payload = await self._request_ok("POST", f"{self.index}/_search", json.dumps(query))
        hits = ((payload or {}).get("hits") or {}).get("hits") or []

        documents: list[CacheDocument] = []
        for hit in hits:
            source = hit.get("_source")
            if not source:
                continue
            try:
                documents.append(CacheDocument.model_validate(source))
            except ValueError as e:
                logger.warning(f"Skipping malformed cached document {hit.get('_id')}: {e}")
        return documents

    async def ping(self) -> bool:
        """Return True if the cluster root answers."""
        try:
            status, _ = await self._request("GET", "")
            return 200 <= status < 300
        except CacheStoreError as e:
            logger.debug(f"Cache ping failed: {e}")
            return False


def _error_reason(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("reason") or error.get("type") or error)
        if error:
            return str(error)
    return "no details"

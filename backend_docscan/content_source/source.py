"""
Content source collaborators.

The file-storing service exposes metadata at GET /files/{id}
({"id", "name", "hash", "location"}) and raw text at
GET /files/content/{location}. A fetch is one metadata call plus one content
call, each bounded by the configured timeout. Ids and locations are
percent-encoded as single path segments. No retries: any failure is
fatal for the analysis and surfaces as ContentFetchError (DocumentNotFoundError
for a 404).
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx

from backend_docscan.core.exceptions import ContentFetchError, DocumentNotFoundError
from backend_docscan.database.models import CorpusDocument
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)


class ContentSource(ABC):
    @abstractmethod
    def fetch(self, doc_id: str) -> CorpusDocument:
        """Return the document's display name and full text, or raise ContentFetchError."""
        ...


class HttpContentSource(ContentSource):
    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_sec = timeout_sec
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout_sec,
            transport=self._transport,
        )

    def _get(self, client: httpx.Client, path: str, doc_id: str) -> httpx.Response:
        try:
            resp = client.get(path)
        except httpx.TimeoutException as e:
            raise ContentFetchError(f"content source timed out for {doc_id}", doc_id=doc_id) from e
        except httpx.HTTPError as e:
            raise ContentFetchError(f"content source unreachable: {e}", doc_id=doc_id) from e
        if resp.status_code == 404:
            raise DocumentNotFoundError(f"document {doc_id} not found", doc_id=doc_id)
        if resp.status_code != 200:
            raise ContentFetchError(
                f"content source returned status {resp.status_code}", doc_id=doc_id
            )
        return resp

    def fetch(self, doc_id: str) -> CorpusDocument:
        with self._client() as client:
            meta_resp = self._get(client, f"/files/{quote(doc_id, safe='')}", doc_id)
            try:
                meta: dict[str, Any] = meta_resp.json()
                location = str(meta["location"]).strip()
            except (ValueError, KeyError, TypeError) as e:
                raise ContentFetchError(f"invalid metadata for {doc_id}", doc_id=doc_id) from e
            if not location:
                raise ContentFetchError(f"metadata for {doc_id} has no location", doc_id=doc_id)
            content_resp = self._get(client, f"/files/content/{quote(location, safe='')}", doc_id)
        logger.debug("content_fetched", doc_id=doc_id, size=len(content_resp.content))
        return CorpusDocument(
            doc_id=doc_id,
            display_name=str(meta.get("name") or doc_id),
            content=content_resp.text,
        )


class InMemoryContentSource(ContentSource):
    """Dict-backed source; counts fetches so callers can check for cache hits."""

    def __init__(self, documents: dict[str, str | CorpusDocument] | None = None) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, CorpusDocument] = {}
        self.fetch_count = 0
        for doc_id, value in (documents or {}).items():
            self.add(doc_id, value)

    def add(self, doc_id: str, value: str | CorpusDocument) -> None:
        doc = value if isinstance(value, CorpusDocument) else CorpusDocument(doc_id, doc_id, value)
        with self._lock:
            self._documents[doc_id] = doc

    def fetch(self, doc_id: str) -> CorpusDocument:
        with self._lock:
            self.fetch_count += 1
            doc = self._documents.get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"document {doc_id} not found", doc_id=doc_id)
        return doc

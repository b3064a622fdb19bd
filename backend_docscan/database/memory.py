"""
In-memory result store backend for tests and local runs.

Same contract as the SQL backends: uniqueness on doc_id (ConflictError),
write-once blobs, lock-protected for use from worker threads.
"""

from __future__ import annotations

import threading

from backend_docscan.core.exceptions import BlobNotFoundError, ConflictError
from backend_docscan.database.database import ResultStoreBackend, new_blob_ref
from backend_docscan.database.models import AnalysisResult, CorpusDocument


class InMemoryBackend(ResultStoreBackend):
    def __init__(self, corpus: list[CorpusDocument] | None = None) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, AnalysisResult] = {}
        self._blobs: dict[str, bytes] = {}
        self._corpus: dict[str, CorpusDocument] = {d.doc_id: d for d in corpus or []}

    def ensure_schema(self) -> None:
        pass

    def get_by_doc_id(self, doc_id: str) -> AnalysisResult | None:
        with self._lock:
            return self._results.get(doc_id)

    def save(self, result: AnalysisResult) -> None:
        with self._lock:
            if result.doc_id in self._results:
                raise ConflictError(f"analysis for {result.doc_id} already exists", doc_id=result.doc_id)
            self._results[result.doc_id] = result

    def corpus_except(self, doc_id: str) -> list[CorpusDocument]:
        with self._lock:
            return [d for d in self._corpus.values() if d.doc_id != doc_id]

    def index_document(self, doc: CorpusDocument) -> None:
        with self._lock:
            self._corpus[doc.doc_id] = doc

    def save_blob(self, data: bytes) -> str:
        ref = new_blob_ref()
        with self._lock:
            self._blobs[ref] = bytes(data)
        return ref

    def get_blob(self, ref: str) -> bytes:
        with self._lock:
            data = self._blobs.get(ref)
        if data is None:
            raise BlobNotFoundError(f"word cloud {ref} not found")
        return data

    def count_results(self) -> int:
        with self._lock:
            return len(self._results)

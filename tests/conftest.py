"""
Pytest fixtures for DocScan tests.

Result stores on every backend (memory, temporary SQLite file, SQLAlchemy over
a temporary SQLite URL), in-memory content sources, and httpx.MockTransport
stand-ins for the word cloud API so tests never touch the network.
"""

from __future__ import annotations

import threading

import httpx
import pytest

from backend_docscan.analysis_engine.orchestrator import AnalysisService
from backend_docscan.analysis_engine.similarity import SimilarityEngine, WordOverlapSimilarity
from backend_docscan.analysis_engine.wordcloud import WordCloudRequester
from backend_docscan.content_source.source import InMemoryContentSource
from backend_docscan.database.database import ResultStore, SQLiteBackend
from backend_docscan.database.memory import InMemoryBackend

WORDCLOUD_URL = "http://wordcloud.test/api/wordcloud"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class CountingTransport(httpx.MockTransport):
    """MockTransport that records every request it serves."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

        def _record(request: httpx.Request) -> httpx.Response:
            with self._lock:
                self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def wordcloud_ok() -> CountingTransport:
    return CountingTransport(lambda request: httpx.Response(200, content=PNG_BYTES))


@pytest.fixture
def wordcloud_down() -> CountingTransport:
    return CountingTransport(lambda request: httpx.Response(503, text="unavailable"))


@pytest.fixture
def memory_store() -> ResultStore:
    return ResultStore(InMemoryBackend())


@pytest.fixture
def sqlite_store(tmp_path) -> ResultStore:
    store = ResultStore(SQLiteBackend(tmp_path / "docscan.db"))
    store.ensure_schema()
    return store


@pytest.fixture(params=["memory", "sqlite", "sqlalchemy"])
def any_store(request, tmp_path) -> ResultStore:
    """The same contract tests run against every backend."""
    if request.param == "memory":
        store = ResultStore(InMemoryBackend())
    elif request.param == "sqlite":
        store = ResultStore(SQLiteBackend(tmp_path / "docscan.db"))
    else:
        from backend_docscan.database.sqlalchemy_backend import SQLAlchemyBackend

        store = ResultStore(SQLAlchemyBackend(f"sqlite:///{tmp_path / 'docscan_sa.db'}"))
    store.ensure_schema()
    yield store
    store.close()


@pytest.fixture
def make_service(wordcloud_ok):
    """
    Factory: make_service(store, source, strategy=None, transport=None, threshold=5.0).
    Defaults to a word cloud API that always succeeds.
    """

    def _make(
        store: ResultStore,
        source: InMemoryContentSource,
        *,
        strategy=None,
        transport: httpx.BaseTransport | None = None,
        threshold: float = 5.0,
        wordcloud_url: str = WORDCLOUD_URL,
    ) -> AnalysisService:
        similarity = SimilarityEngine(store, strategy or WordOverlapSimilarity(), threshold=threshold)
        wordcloud = WordCloudRequester(
            wordcloud_url,
            store,
            timeout_sec=2.0,
            transport=transport or wordcloud_ok,
        )
        return AnalysisService(source, store, similarity, wordcloud)

    return _make


@pytest.fixture
def make_transport():
    """Factory for CountingTransport around a request handler."""
    return CountingTransport


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def wordcloud_url() -> str:
    return WORDCLOUD_URL

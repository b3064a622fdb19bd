"""
Result store layer: analysis results, word cloud blobs, comparison corpus.

get_result_store(settings) picks the backend (SQLite, SQLAlchemy, memory)
once at startup; callers only see the ResultStore facade.
"""

from backend_docscan.database.database import (
    ResultStore,
    ResultStoreBackend,
    SQLiteBackend,
    get_result_store,
)
from backend_docscan.database.memory import InMemoryBackend
from backend_docscan.database.models import (
    AnalysisResult,
    CorpusDocument,
    SimilarFile,
)

__all__ = [
    "ResultStore",
    "ResultStoreBackend",
    "SQLiteBackend",
    "InMemoryBackend",
    "get_result_store",
    "AnalysisResult",
    "CorpusDocument",
    "SimilarFile",
]

"""
Result store for analysis results, word cloud blobs, and the comparison corpus.

All access goes through the ResultStoreBackend interface; the backend is
chosen once at construction time (SQLite file, SQLAlchemy URL, or memory).
Every backend enforces uniqueness on doc_id and reports a duplicate insert as
ConflictError, distinct from StorageError, so the analysis service can resolve
concurrent writers by re-reading.
"""

from __future__ import annotations

import sqlite3
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from backend_docscan.config.settings import Settings
from backend_docscan.core.exceptions import BlobNotFoundError, ConflictError, StorageError
from backend_docscan.database.models import AnalysisResult, CorpusDocument
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema (SQLite)
# -----------------------------------------------------------------------------

SCHEMA_ANALYSIS_RESULTS = """
CREATE TABLE IF NOT EXISTS analysis_results (
    id TEXT PRIMARY KEY,
    doc_id TEXT NOT NULL UNIQUE,
    paragraphs INTEGER NOT NULL,
    words INTEGER NOT NULL,
    characters INTEGER NOT NULL,
    similar_matches_json TEXT NOT NULL DEFAULT '[]',
    word_cloud_ref TEXT,
    created_at INTEGER
);
"""

SCHEMA_WORD_CLOUDS = """
CREATE TABLE IF NOT EXISTS word_clouds (
    id TEXT PRIMARY KEY,
    image BLOB NOT NULL,
    created_at INTEGER
);
"""

SCHEMA_CORPUS_DOCUMENTS = """
CREATE TABLE IF NOT EXISTS corpus_documents (
    doc_id TEXT PRIMARY KEY,
    display_name TEXT NOT NULL,
    content TEXT NOT NULL,
    indexed_at INTEGER
);
"""


def new_blob_ref() -> str:
    return uuid.uuid4().hex


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class ResultStoreBackend(ABC):
    """Persistence contract shared by every backend."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def get_by_doc_id(self, doc_id: str) -> AnalysisResult | None:
        """Return the stored result for doc_id, or None. Absence is not an error."""
        ...

    @abstractmethod
    def save(self, result: AnalysisResult) -> None:
        """Insert a new result. Raises ConflictError if doc_id already has one."""
        ...

    @abstractmethod
    def corpus_except(self, doc_id: str) -> list[CorpusDocument]:
        """Return every corpus document other than doc_id; order not significant."""
        ...

    @abstractmethod
    def index_document(self, doc: CorpusDocument) -> None:
        """Insert or refresh a document in the comparison corpus."""
        ...

    @abstractmethod
    def save_blob(self, data: bytes) -> str:
        """Store an image payload and return its reference."""
        ...

    @abstractmethod
    def get_blob(self, ref: str) -> bytes:
        """Return the payload for ref. Raises BlobNotFoundError if absent."""
        ...

    @abstractmethod
    def count_results(self) -> int:
        ...

    def close(self) -> None:
        """Release pooled connections. Backends without a pool keep the default."""
        return None


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(ResultStoreBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"cannot open {self._path}: {e}") from e
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConflictError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            for stmt in (SCHEMA_ANALYSIS_RESULTS, SCHEMA_WORD_CLOUDS, SCHEMA_CORPUS_DOCUMENTS):
                cur.executescript(stmt)

    def get_by_doc_id(self, doc_id: str) -> AnalysisResult | None:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT id, doc_id, paragraphs, words, characters, similar_matches_json, word_cloud_ref
                FROM analysis_results WHERE doc_id = ?
                """,
                (doc_id,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return AnalysisResult(
            id=row["id"],
            doc_id=row["doc_id"],
            paragraphs=row["paragraphs"],
            words=row["words"],
            characters=row["characters"],
            similar_matches=AnalysisResult.matches_from_json(row["similar_matches_json"]),
            word_cloud_ref=row["word_cloud_ref"],
        )

    def save(self, result: AnalysisResult) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO analysis_results
                    (id, doc_id, paragraphs, words, characters, similar_matches_json, word_cloud_ref, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.id,
                    result.doc_id,
                    result.paragraphs,
                    result.words,
                    result.characters,
                    result.matches_json(),
                    result.word_cloud_ref,
                    int(time.time()),
                ),
            )

    def corpus_except(self, doc_id: str) -> list[CorpusDocument]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT doc_id, display_name, content FROM corpus_documents WHERE doc_id != ?",
                (doc_id,),
            )
            rows = cur.fetchall()
        return [
            CorpusDocument(doc_id=row["doc_id"], display_name=row["display_name"], content=row["content"])
            for row in rows
        ]

    def index_document(self, doc: CorpusDocument) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO corpus_documents (doc_id, display_name, content, indexed_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(doc_id) DO UPDATE SET
                    display_name = excluded.display_name,
                    content = excluded.content,
                    indexed_at = excluded.indexed_at
                """,
                (doc.doc_id, doc.display_name, doc.content, int(time.time())),
            )

    def save_blob(self, data: bytes) -> str:
        ref = new_blob_ref()
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO word_clouds (id, image, created_at) VALUES (?, ?, ?)",
                (ref, sqlite3.Binary(data), int(time.time())),
            )
        return ref

    def get_blob(self, ref: str) -> bytes:
        with self._cursor() as cur:
            cur.execute("SELECT image FROM word_clouds WHERE id = ?", (ref,))
            row = cur.fetchone()
        if row is None:
            raise BlobNotFoundError(f"word cloud {ref} not found")
        return bytes(row["image"])

    def count_results(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM analysis_results")
            return int(cur.fetchone()[0])


# -----------------------------------------------------------------------------
# Facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class ResultStore:
    """
    Result store: analysis results, word cloud blobs, comparison corpus.

    Wraps one ResultStoreBackend chosen at construction time.
    """

    def __init__(self, backend: ResultStoreBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> ResultStoreBackend:
        return self._backend

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    def close(self) -> None:
        self._backend.close()

    # --- Analysis results ---

    def get_by_doc_id(self, doc_id: str) -> AnalysisResult | None:
        return self._backend.get_by_doc_id(doc_id)

    def save(self, result: AnalysisResult) -> None:
        self._backend.save(result)
        logger.debug("result_store_saved", doc_id=result.doc_id, result_id=result.id)

    def count_results(self) -> int:
        return self._backend.count_results()

    # --- Corpus ---

    def corpus_except(self, doc_id: str) -> list[CorpusDocument]:
        return self._backend.corpus_except(doc_id)

    def index_document(self, doc: CorpusDocument) -> None:
        self._backend.index_document(doc)

    # --- Blobs ---

    def save_blob(self, data: bytes) -> str:
        if not data:
            raise StorageError("refusing to store an empty blob")
        return self._backend.save_blob(data)

    def get_blob(self, ref: str) -> bytes:
        return self._backend.get_blob(ref)


def get_result_store(settings: Settings) -> ResultStore:
    """
    Build the result store selected by settings.result_store_backend and
    make sure its schema exists.
    """
    backend: ResultStoreBackend
    if settings.result_store_backend == "memory":
        from backend_docscan.database.memory import InMemoryBackend

        backend = InMemoryBackend()
    elif settings.result_store_backend == "sqlalchemy":
        from backend_docscan.database.sqlalchemy_backend import SQLAlchemyBackend

        backend = SQLAlchemyBackend(settings.sqlalchemy_url)
    else:
        backend = SQLiteBackend(settings.db_path)
    store = ResultStore(backend)
    store.ensure_schema()
    logger.info("result_store_ready", backend=settings.result_store_backend)
    return store

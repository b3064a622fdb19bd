"""
SQLAlchemy-backed result store.

Uses DATABASE_URL (PostgreSQL in deployment) or a SQLite URL. One engine per
backend instance; sessions are short-lived and scoped to a single operation.
IntegrityError on the doc_id unique constraint becomes ConflictError, every
other SQLAlchemyError becomes StorageError.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Column, Integer, LargeBinary, String, Text, create_engine, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_docscan.core.exceptions import BlobNotFoundError, ConflictError, StorageError
from backend_docscan.database.database import ResultStoreBackend, new_blob_ref
from backend_docscan.database.models import AnalysisResult, CorpusDocument
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy models
# -----------------------------------------------------------------------------


class AnalysisRow(Base):
    """One analysis per document; doc_id is unique."""

    __tablename__ = "analysis_results"

    id = Column(String(64), primary_key=True)
    doc_id = Column(String(256), unique=True, nullable=False, index=True)
    paragraphs = Column(Integer, nullable=False)
    words = Column(Integer, nullable=False)
    characters = Column(Integer, nullable=False)
    similar_matches_json = Column(Text, nullable=False, default="[]")
    word_cloud_ref = Column(String(64), nullable=True)
    created_at = Column(Integer, nullable=True)  # Unix timestamp

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(
            id=self.id,
            doc_id=self.doc_id,
            paragraphs=self.paragraphs,
            words=self.words,
            characters=self.characters,
            similar_matches=AnalysisResult.matches_from_json(self.similar_matches_json),
            word_cloud_ref=self.word_cloud_ref,
        )


class WordCloudRow(Base):
    __tablename__ = "word_clouds"

    id = Column(String(64), primary_key=True)
    image = Column(LargeBinary, nullable=False)
    created_at = Column(Integer, nullable=True)


class CorpusDocumentRow(Base):
    """Comparison corpus entry: document text with its display name."""

    __tablename__ = "corpus_documents"

    doc_id = Column(String(256), primary_key=True)
    display_name = Column(String(512), nullable=False)
    content = Column(Text, nullable=False)
    indexed_at = Column(Integer, nullable=True)


class SQLAlchemyBackend(ResultStoreBackend):
    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        connect_args: dict[str, Any] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._url = url
        self._engine = create_engine(
            url, connect_args=connect_args, pool_pre_ping=True, **engine_kwargs
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("sqlalchemy_store_engine", url=url.split("?")[0].split("//")[-1])

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError(str(e.orig)) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            logger.exception("sqlalchemy_store_init_failed", error=str(e))
            raise StorageError(str(e)) from e

    def get_by_doc_id(self, doc_id: str) -> AnalysisResult | None:
        with self._session_scope() as session:
            row = session.query(AnalysisRow).filter(AnalysisRow.doc_id == doc_id).first()
            return row.to_result() if row else None

    def save(self, result: AnalysisResult) -> None:
        with self._session_scope() as session:
            session.add(
                AnalysisRow(
                    id=result.id,
                    doc_id=result.doc_id,
                    paragraphs=result.paragraphs,
                    words=result.words,
                    characters=result.characters,
                    similar_matches_json=result.matches_json(),
                    word_cloud_ref=result.word_cloud_ref,
                    created_at=int(time.time()),
                )
            )
            session.flush()

    def corpus_except(self, doc_id: str) -> list[CorpusDocument]:
        with self._session_scope() as session:
            rows = session.query(CorpusDocumentRow).filter(CorpusDocumentRow.doc_id != doc_id).all()
            return [
                CorpusDocument(doc_id=r.doc_id, display_name=r.display_name, content=r.content)
                for r in rows
            ]

    def index_document(self, doc: CorpusDocument) -> None:
        with self._session_scope() as session:
            session.merge(
                CorpusDocumentRow(
                    doc_id=doc.doc_id,
                    display_name=doc.display_name,
                    content=doc.content,
                    indexed_at=int(time.time()),
                )
            )

    def save_blob(self, data: bytes) -> str:
        ref = new_blob_ref()
        with self._session_scope() as session:
            session.add(WordCloudRow(id=ref, image=bytes(data), created_at=int(time.time())))
        return ref

    def get_blob(self, ref: str) -> bytes:
        with self._session_scope() as session:
            row = session.get(WordCloudRow, ref)
            data = bytes(row.image) if row is not None else None
        if data is None:
            raise BlobNotFoundError(f"word cloud {ref} not found")
        return data

    def count_results(self) -> int:
        with self._session_scope() as session:
            return int(session.query(func.count(AnalysisRow.id)).scalar() or 0)

    def close(self) -> None:
        self._engine.dispose()

"""
Analysis orchestrator: result store → content source → metrics → similarity →
word cloud → result store.

analyze(doc_id) is idempotent. A stored result is returned as-is without
touching any collaborator. Otherwise one computation per doc_id runs under a
single-flight guard; concurrent callers for the same doc_id wait and receive
the same result (or the same error). When several processes share one store,
the doc_id uniqueness constraint is the last line: a ConflictError on save
discards the local result and returns the stored one.

Fatal: content fetch errors, empty content, storage errors on lookup/save.
Best effort: corpus indexing, similarity, word cloud. Their failures are
logged and only reduce the completeness of the result.
"""

from __future__ import annotations

import uuid

from backend_docscan.analysis_engine.metrics import TextMetrics, compute_metrics
from backend_docscan.analysis_engine.similarity import SimilarityEngine, get_strategy
from backend_docscan.analysis_engine.wordcloud import WordCloudOptions, WordCloudRequester
from backend_docscan.config.settings import Settings
from backend_docscan.content_source.source import ContentSource, HttpContentSource
from backend_docscan.core.exceptions import (
    ConflictError,
    DocScanError,
    EmptyContentError,
    InvalidDocumentIdError,
    SimilarityBackendError,
    StorageError,
)
from backend_docscan.core.outcome import StepOutcome
from backend_docscan.core.single_flight import SingleFlight
from backend_docscan.database.database import ResultStore, get_result_store
from backend_docscan.database.models import AnalysisResult, CorpusDocument, SimilarFile
from backend_docscan.docscan_logging import bind_document, get_logger

logger = get_logger(__name__)


class AnalysisService:
    def __init__(
        self,
        content_source: ContentSource,
        store: ResultStore,
        similarity: SimilarityEngine,
        wordcloud: WordCloudRequester,
    ) -> None:
        self._content_source = content_source
        self._store = store
        self._similarity = similarity
        self._wordcloud = wordcloud
        self._flight: SingleFlight[AnalysisResult] = SingleFlight()

    def analyze(self, doc_id: str) -> AnalysisResult:
        doc_id = (doc_id or "").strip()
        if not doc_id:
            raise InvalidDocumentIdError("document id must be non-empty")
        log = bind_document(doc_id, __name__)

        existing = self._store.get_by_doc_id(doc_id)
        if existing is not None:
            log.info("analysis_cache_hit", result_id=existing.id)
            return existing

        result, shared = self._flight.do(doc_id, lambda: self._compute_and_save(doc_id))
        if shared:
            log.info("analysis_shared_inflight", result_id=result.id)
        return result

    def get_word_cloud(self, ref: str) -> bytes:
        """Raw image bytes for a stored word cloud; raises BlobNotFoundError."""
        return self._store.get_blob(ref)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def _compute_and_save(self, doc_id: str) -> AnalysisResult:
        log = bind_document(doc_id, __name__)

        # A previous leader may have saved between our lookup and taking the guard.
        existing = self._store.get_by_doc_id(doc_id)
        if existing is not None:
            log.info("analysis_cache_hit", result_id=existing.id)
            return existing

        log.info("analysis_started")
        doc = self._content_source.fetch(doc_id)
        if not doc.content.strip():
            log.warning("analysis_empty_content")
            raise EmptyContentError(f"document {doc_id} has no analyzable text", doc_id=doc_id)

        metrics = compute_metrics(doc.content)
        self._index(doc)

        similarity = self._similarity_step(doc)
        if similarity.error is not None:
            log.warning("similarity_failed", error=similarity.error.message)

        wordcloud = self._wordcloud_step(doc, metrics)
        if wordcloud.error is not None:
            log.warning("wordcloud_failed", error=wordcloud.error.message)

        result = AnalysisResult(
            id=str(uuid.uuid4()),
            doc_id=doc_id,
            paragraphs=metrics.paragraphs,
            words=metrics.words,
            characters=metrics.characters,
            similar_matches=tuple(similarity.value_or([])),
            word_cloud_ref=wordcloud.value if wordcloud.ok else None,
        )
        return self._persist(result)

    def _index(self, doc: CorpusDocument) -> None:
        try:
            self._store.index_document(doc)
        except DocScanError as e:
            logger.warning("corpus_index_failed", doc_id=doc.doc_id, error=e.message)

    def _similarity_step(self, doc: CorpusDocument) -> StepOutcome[list[SimilarFile]]:
        try:
            return StepOutcome.success(self._similarity.find_matches(doc.doc_id, doc.content))
        except SimilarityBackendError as e:
            return StepOutcome.failure(e)

    def _wordcloud_step(self, doc: CorpusDocument, metrics: TextMetrics) -> StepOutcome[str]:
        if metrics.words < 1:
            return StepOutcome.skip()
        return self._wordcloud.request(doc.doc_id, doc.content)

    def _persist(self, result: AnalysisResult) -> AnalysisResult:
        log = bind_document(result.doc_id, __name__)
        try:
            self._store.save(result)
        except ConflictError:
            stored = self._store.get_by_doc_id(result.doc_id)
            if stored is None:
                raise StorageError(
                    f"conflict on save but no stored analysis for {result.doc_id}",
                    doc_id=result.doc_id,
                )
            log.info(
                "analysis_conflict_resolved",
                discarded_id=result.id,
                result_id=stored.id,
            )
            return stored
        except StorageError:
            log.error("analysis_save_failed", result_id=result.id)
            raise
        log.info(
            "analysis_saved",
            result_id=result.id,
            words=result.words,
            matches=len(result.similar_matches),
            word_cloud=result.word_cloud_ref is not None,
            waiters=self._flight.waiters(result.doc_id),
        )
        return result


def build_analysis_service(
    settings: Settings,
    *,
    content_source: ContentSource | None = None,
    store: ResultStore | None = None,
) -> AnalysisService:
    """Wire the default collaborators described by settings; any of them can be injected."""
    store = store or get_result_store(settings)
    content_source = content_source or HttpContentSource(
        settings.file_storing_service_url,
        timeout_sec=settings.content_fetch_timeout_sec,
    )
    similarity = SimilarityEngine(
        store,
        get_strategy(settings.similarity_strategy),
        threshold=settings.similarity_threshold,
        max_matches=settings.similarity_max_matches,
    )
    wordcloud = WordCloudRequester(
        settings.wordcloud_api_url,
        store,
        timeout_sec=settings.wordcloud_timeout_sec,
        options=WordCloudOptions(
            width=settings.wordcloud_width,
            height=settings.wordcloud_height,
            format=settings.wordcloud_format,
            max_num_words=settings.wordcloud_max_words,
        ),
    )
    return AnalysisService(content_source, store, similarity, wordcloud)

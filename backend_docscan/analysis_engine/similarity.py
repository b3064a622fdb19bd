"""
Similarity engine: scores a document against the stored corpus.

Normalization (shared with the word cloud step): lowercase, drop every
character that is not alphanumeric, whitespace, apostrophe or hyphen, collapse
whitespace runs to single spaces.

The scoring function is a pluggable strategy:
- WordOverlapSimilarity: share of the current document's distinct words that
  also occur in the candidate, in percent.
- TrigramSimilarity: pg_trgm-style fuzzy match (shared trigrams over the union
  of trigrams), in percent.

Whatever the strategy, the engine enforces the same contract: the document
itself is never a match, only scores strictly above the threshold are kept,
results are sorted by score descending then doc_id ascending, and at most
max_matches (never more than MAX_SIMILAR_MATCHES) are returned.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from backend_docscan.config.settings import MAX_SIMILAR_MATCHES
from backend_docscan.core.exceptions import DocScanError, SimilarityBackendError
from backend_docscan.database.database import ResultStore
from backend_docscan.database.models import CorpusDocument, SimilarFile
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 5.0
DEFAULT_MAX_MATCHES = MAX_SIMILAR_MATCHES

# Anything that is not a word character, whitespace, apostrophe or hyphen; plus underscore,
# which \w admits but is not alphanumeric.
_STRIP_RE = re.compile(r"[^\w\s'-]|_")
_WHITESPACE_RE = re.compile(r"\s+")
_TRIGRAM_WORD_RE = re.compile(r"[^\W_]+")


def normalize_text(text: str) -> str:
    text = _STRIP_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def distinct_words(text: str) -> frozenset[str]:
    """Distinct tokens of the normalized text."""
    return frozenset(normalize_text(text).split())


def trigrams(text: str) -> frozenset[str]:
    """
    pg_trgm trigram set: each alphanumeric word is lowercased and padded with
    two spaces in front and one behind before slicing.
    """
    grams: set[str] = set()
    for word in _TRIGRAM_WORD_RE.findall(text.lower()):
        padded = f"  {word} "
        grams.update(padded[i : i + 3] for i in range(len(padded) - 2))
    return frozenset(grams)


class SimilarityStrategy(ABC):
    """Scores one candidate against the current document; returns a percentage."""

    name: str = "base"

    @abstractmethod
    def score(self, current: str, candidate: str) -> float:
        ...


class WordOverlapSimilarity(SimilarityStrategy):
    name = "word_overlap"

    def score(self, current: str, candidate: str) -> float:
        current_words = distinct_words(current)
        if not current_words:
            return 0.0
        shared = current_words & distinct_words(candidate)
        return len(shared) / len(current_words) * 100.0


class TrigramSimilarity(SimilarityStrategy):
    name = "trigram"

    def score(self, current: str, candidate: str) -> float:
        a = trigrams(current)
        b = trigrams(candidate)
        union = a | b
        if not union:
            return 0.0
        return len(a & b) / len(union) * 100.0


STRATEGIES: dict[str, type[SimilarityStrategy]] = {
    WordOverlapSimilarity.name: WordOverlapSimilarity,
    TrigramSimilarity.name: TrigramSimilarity,
}


def get_strategy(name: str) -> SimilarityStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"unknown similarity strategy {name!r}") from None


def rank_matches(
    doc_id: str,
    content: str,
    corpus: list[CorpusDocument],
    strategy: SimilarityStrategy,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    max_matches: int = DEFAULT_MAX_MATCHES,
) -> list[SimilarFile]:
    """Score, filter, sort and truncate; no I/O."""
    if not distinct_words(content):
        return []
    matches: list[SimilarFile] = []
    for candidate in corpus:
        if candidate.doc_id == doc_id:
            continue
        raw = strategy.score(content, candidate.content)
        if raw > threshold:
            score = round(max(0.0, min(100.0, raw)), 2)
            matches.append(SimilarFile(candidate.doc_id, candidate.display_name, score))
    matches.sort(key=lambda m: (-m.score, m.doc_id))
    return matches[: min(max_matches, MAX_SIMILAR_MATCHES)]


class SimilarityEngine:
    """Reads the corpus from the result store and ranks it with a strategy."""

    def __init__(
        self,
        store: ResultStore,
        strategy: SimilarityStrategy | None = None,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        max_matches: int = DEFAULT_MAX_MATCHES,
    ) -> None:
        self._store = store
        self._strategy = strategy or WordOverlapSimilarity()
        self._threshold = threshold
        self._max_matches = max(1, min(max_matches, MAX_SIMILAR_MATCHES))

    def find_matches(self, doc_id: str, content: str) -> list[SimilarFile]:
        """Raises SimilarityBackendError on any failure reading or scoring the corpus."""
        try:
            corpus = self._store.corpus_except(doc_id)
            matches = rank_matches(
                doc_id,
                content,
                corpus,
                self._strategy,
                threshold=self._threshold,
                max_matches=self._max_matches,
            )
        except SimilarityBackendError:
            raise
        except DocScanError as e:
            raise SimilarityBackendError(f"corpus unavailable: {e.message}", doc_id=doc_id) from e
        except Exception as e:
            raise SimilarityBackendError(f"{self._strategy.name} scoring failed: {e}", doc_id=doc_id) from e
        logger.debug(
            "similarity_ranked",
            doc_id=doc_id,
            strategy=self._strategy.name,
            corpus_size=len(corpus),
            matches=len(matches),
        )
        return matches

"""
Analysis engine package: text metrics, similarity, word clouds, orchestration.

Consumes document text from the content source and produces one persisted
AnalysisResult per document.
"""

from backend_docscan.analysis_engine.metrics import (
    TextMetrics,
    compute_metrics,
    count_characters,
    count_paragraphs,
    count_words,
)
from backend_docscan.analysis_engine.similarity import (
    SimilarityEngine,
    SimilarityStrategy,
    TrigramSimilarity,
    WordOverlapSimilarity,
    distinct_words,
    get_strategy,
    normalize_text,
    rank_matches,
)
from backend_docscan.analysis_engine.wordcloud import WordCloudOptions, WordCloudRequester
from backend_docscan.analysis_engine.orchestrator import AnalysisService, build_analysis_service

__all__ = [
    "TextMetrics",
    "compute_metrics",
    "count_characters",
    "count_paragraphs",
    "count_words",
    "SimilarityEngine",
    "SimilarityStrategy",
    "TrigramSimilarity",
    "WordOverlapSimilarity",
    "distinct_words",
    "get_strategy",
    "normalize_text",
    "rank_matches",
    "WordCloudOptions",
    "WordCloudRequester",
    "AnalysisService",
    "build_analysis_service",
]

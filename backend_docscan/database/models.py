"""
Domain models for stored entities.

Analysis results, their similarity matches, and corpus documents.
Used by the result store backends and the analysis engine; no ORM coupling
so backends stay swappable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SimilarFile:
    """One corpus document that overlaps the analyzed document."""

    doc_id: str
    display_name: str
    score: float
    """Percent overlap, within [0, 100]."""

    def to_dict(self) -> dict[str, Any]:
        return {"docID": self.doc_id, "name": self.display_name, "score": self.score}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimilarFile":
        return cls(
            doc_id=str(data["docID"]),
            display_name=str(data.get("name") or ""),
            score=float(data["score"]),
        )


@dataclass(frozen=True)
class CorpusDocument:
    """A document available for comparison: id, human-readable name, full text."""

    doc_id: str
    display_name: str
    content: str


@dataclass(frozen=True)
class AnalysisResult:
    """
    Canonical analysis of one document. At most one exists per doc_id;
    immutable once saved.
    """

    id: str
    doc_id: str
    paragraphs: int
    words: int
    characters: int
    similar_matches: tuple[SimilarFile, ...] = field(default_factory=tuple)
    """Descending by score, at most five entries, never the document itself."""
    word_cloud_ref: str | None = None
    """Reference to the stored image blob; None when generation failed or was skipped."""

    @property
    def plagiarism_score(self) -> float:
        """Highest single match score, or 0 when nothing matched."""
        return self.similar_matches[0].score if self.similar_matches else 0.0

    def matches_json(self) -> str:
        return json.dumps([m.to_dict() for m in self.similar_matches])

    @staticmethod
    def matches_from_json(raw: str | None) -> tuple[SimilarFile, ...]:
        if not raw:
            return ()
        return tuple(SimilarFile.from_dict(item) for item in json.loads(raw))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "docID": self.doc_id,
            "paragraphs": self.paragraphs,
            "words": self.words,
            "characters": self.characters,
            "similarMatches": [m.to_dict() for m in self.similar_matches],
            "wordCloudRef": self.word_cloud_ref,
            "plagiarismScore": self.plagiarism_score,
        }

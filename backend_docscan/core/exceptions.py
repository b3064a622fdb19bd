"""
Application-level exceptions.

Every error carries a stable code and a kind so the API can tell bad input
apart from an unavailable dependency. Fatal errors propagate to the caller;
SimilarityBackendError and WordCloudError are recovered inside the pipeline,
ConflictError is resolved by re-reading the stored result.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    BAD_INPUT = "bad_input"
    NOT_FOUND = "not_found"
    UNAVAILABLE_DEPENDENCY = "unavailable_dependency"
    INTERNAL = "internal"


class DocScanError(Exception):
    """Base class for all service errors."""

    code: str = "internal_error"
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "", *, doc_id: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.doc_id = doc_id

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "kind": self.kind.value, "message": self.message}


class ConfigError(DocScanError):
    code = "invalid_config"


class ContentFetchError(DocScanError):
    """Content source unreachable, timed out, or answered with an error."""

    code = "content_unavailable"
    kind = ErrorKind.UNAVAILABLE_DEPENDENCY


class DocumentNotFoundError(ContentFetchError):
    code = "document_not_found"
    kind = ErrorKind.NOT_FOUND


class EmptyContentError(DocScanError):
    """Document has no analyzable text (empty or whitespace only)."""

    code = "empty_content"
    kind = ErrorKind.BAD_INPUT


class SimilarityBackendError(DocScanError):
    code = "similarity_failed"
    kind = ErrorKind.UNAVAILABLE_DEPENDENCY


class WordCloudError(DocScanError):
    code = "wordcloud_failed"
    kind = ErrorKind.UNAVAILABLE_DEPENDENCY


class StorageError(DocScanError):
    code = "storage_unavailable"
    kind = ErrorKind.UNAVAILABLE_DEPENDENCY


class ConflictError(StorageError):
    """A result for this doc_id already exists (uniqueness constraint)."""

    code = "analysis_conflict"
    kind = ErrorKind.INTERNAL


class BlobNotFoundError(DocScanError):
    code = "blob_not_found"
    kind = ErrorKind.NOT_FOUND


class InvalidDocumentIdError(DocScanError):
    code = "invalid_document_id"
    kind = ErrorKind.BAD_INPUT

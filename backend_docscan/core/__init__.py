"""
Core utilities: error taxonomy, step outcomes, and per-key single-flight.

Shared by the content source, result store, analysis engine and API server.
"""

from backend_docscan.core.exceptions import (
    BlobNotFoundError,
    ConfigError,
    ConflictError,
    ContentFetchError,
    DocScanError,
    DocumentNotFoundError,
    EmptyContentError,
    InvalidDocumentIdError,
    ErrorKind,
    SimilarityBackendError,
    StorageError,
    WordCloudError,
)
from backend_docscan.core.outcome import StepOutcome
from backend_docscan.core.single_flight import SingleFlight

__all__ = [
    "BlobNotFoundError",
    "ConfigError",
    "ConflictError",
    "ContentFetchError",
    "DocScanError",
    "DocumentNotFoundError",
    "EmptyContentError",
    "InvalidDocumentIdError",
    "ErrorKind",
    "SimilarityBackendError",
    "StorageError",
    "WordCloudError",
    "StepOutcome",
    "SingleFlight",
]

"""
Backend DocScan: document analysis service.

Fetches a document from the file-storing service, computes text metrics,
scores overlap against the stored corpus, requests a word cloud, and
persists one analysis result per document.
"""

__version__ = "0.1.0"

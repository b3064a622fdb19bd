"""
Content source: fetches a document's text and display name by id.

HttpContentSource talks to the file-storing service; InMemoryContentSource
serves a fixed mapping for tests and local runs.
"""

from backend_docscan.content_source.source import (
    ContentSource,
    HttpContentSource,
    InMemoryContentSource,
)

__all__ = ["ContentSource", "HttpContentSource", "InMemoryContentSource"]

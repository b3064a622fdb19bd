"""
Tests for the best-effort word cloud requester.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx

from backend_docscan.analysis_engine.wordcloud import WordCloudOptions, WordCloudRequester
from backend_docscan.core.exceptions import StorageError, WordCloudError


def test_success_stores_blob_and_returns_ref(memory_store, wordcloud_ok, wordcloud_url, png_bytes):
    requester = WordCloudRequester(wordcloud_url, memory_store, transport=wordcloud_ok)
    outcome = requester.request("doc-1", "Hello, World! Hello again.")
    assert outcome.ok
    assert memory_store.get_blob(outcome.value) == png_bytes
    assert wordcloud_ok.calls == 1


def test_request_body_carries_normalized_text_and_options(memory_store, wordcloud_ok, wordcloud_url):
    options = WordCloudOptions(width=400, height=300, format="svg", max_num_words=20)
    requester = WordCloudRequester(wordcloud_url, memory_store, options=options, transport=wordcloud_ok)
    requester.request("doc-1", "Hello, World!\n\nIt's   FINE.")
    request = wordcloud_ok.requests[0]
    assert request.method == "POST"
    assert str(request.url) == wordcloud_url
    body = json.loads(request.content)
    assert body == {
        "text": "hello world it's fine",
        "width": 400,
        "height": 300,
        "format": "svg",
        "removeStopwords": True,
        "caseSensitive": False,
        "maxNumWords": 20,
    }


def test_non_success_status_is_failure(memory_store, wordcloud_down, wordcloud_url):
    requester = WordCloudRequester(wordcloud_url, memory_store, transport=wordcloud_down)
    outcome = requester.request("doc-1", "some words")
    assert not outcome.ok
    assert isinstance(outcome.error, WordCloudError)
    assert "503" in outcome.error.message
    assert outcome.error.doc_id == "doc-1"
    assert outcome.value is None


def test_timeout_is_failure_not_exception(memory_store, wordcloud_url):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow", request=request)

    requester = WordCloudRequester(wordcloud_url, memory_store, transport=httpx.MockTransport(handler))
    outcome = requester.request("doc-1", "some words")
    assert isinstance(outcome.error, WordCloudError)
    assert "timed out" in outcome.error.message


def test_empty_image_is_failure(memory_store, wordcloud_url, make_transport):
    transport = make_transport(lambda request: httpx.Response(200, content=b""))
    requester = WordCloudRequester(wordcloud_url, memory_store, transport=transport)
    outcome = requester.request("doc-1", "some words")
    assert isinstance(outcome.error, WordCloudError)


def test_storage_failure_is_failure(wordcloud_ok, wordcloud_url):
    store = MagicMock()
    store.save_blob.side_effect = StorageError("disk full")
    requester = WordCloudRequester(wordcloud_url, store, transport=wordcloud_ok)
    outcome = requester.request("doc-1", "some words")
    assert isinstance(outcome.error, WordCloudError)
    assert "disk full" in outcome.error.message


def test_disabled_or_empty_text_is_skipped(memory_store, wordcloud_ok, wordcloud_url):
    disabled = WordCloudRequester("", memory_store, transport=wordcloud_ok)
    outcome = disabled.request("doc-1", "words")
    assert outcome.skipped and outcome.error is None and outcome.value is None

    enabled = WordCloudRequester(wordcloud_url, memory_store, transport=wordcloud_ok)
    assert enabled.request("doc-1", "?!").skipped
    assert wordcloud_ok.calls == 0

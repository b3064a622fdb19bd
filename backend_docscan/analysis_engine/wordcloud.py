"""
Word cloud requester: best-effort call to the rendering API.

Posts the normalized text to the configured word cloud endpoint, stores the
returned image through the result store, and hands back only the blob
reference. Never raises: every failure (timeout, non-200, empty body, storage
error) comes back as a StepOutcome carrying WordCloudError.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from backend_docscan.analysis_engine.similarity import normalize_text
from backend_docscan.core.exceptions import DocScanError, WordCloudError
from backend_docscan.core.outcome import StepOutcome
from backend_docscan.database.database import ResultStore
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WordCloudOptions:
    """Request body options understood by the rendering API."""

    width: int = 800
    height: int = 600
    format: str = "png"
    remove_stopwords: bool = True
    case_sensitive: bool = False
    max_num_words: int = 100

    def payload(self, text: str) -> dict:
        return {
            "text": text,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "removeStopwords": self.remove_stopwords,
            "caseSensitive": self.case_sensitive,
            "maxNumWords": self.max_num_words,
        }


class WordCloudRequester:
    def __init__(
        self,
        api_url: str,
        store: ResultStore,
        *,
        timeout_sec: float = 10.0,
        options: WordCloudOptions | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._store = store
        self._timeout_sec = timeout_sec
        self._options = options or WordCloudOptions()
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._api_url)

    def _render(self, text: str) -> bytes:
        try:
            with httpx.Client(timeout=self._timeout_sec, transport=self._transport) as client:
                resp = client.post(self._api_url, json=self._options.payload(text))
        except httpx.TimeoutException as e:
            raise WordCloudError("word cloud API timed out") from e
        except httpx.HTTPError as e:
            raise WordCloudError(f"word cloud API unreachable: {e}") from e
        if resp.status_code != 200:
            raise WordCloudError(f"word cloud API returned status {resp.status_code}")
        if not resp.content:
            raise WordCloudError("word cloud API returned an empty image")
        return resp.content

    def request(self, doc_id: str, text: str) -> StepOutcome[str]:
        """Render and store a word cloud for text; returns the blob ref on success."""
        if not self.enabled:
            return StepOutcome.skip()
        normalized = normalize_text(text)
        if not normalized:
            return StepOutcome.skip()
        try:
            image = self._render(normalized)
            ref = self._store.save_blob(image)
        except WordCloudError as e:
            e.doc_id = doc_id
            return StepOutcome.failure(e)
        except DocScanError as e:
            return StepOutcome.failure(
                WordCloudError(f"storing word cloud failed: {e.message}", doc_id=doc_id)
            )
        logger.debug("wordcloud_stored", doc_id=doc_id, ref=ref, size=len(image))
        return StepOutcome.success(ref)

"""
FastAPI server: analysis and word cloud endpoints.

POST|GET /analyze/{doc_id} returns the document's analysis, computing it on
first request. GET /wordcloud/{ref} returns the stored image. Domain errors
are turned into a structured JSON body {"error", "kind", "message"} whose
status distinguishes bad input from an unavailable dependency.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from backend_docscan.analysis_engine.orchestrator import AnalysisService, build_analysis_service
from backend_docscan.config.settings import MAX_SIMILAR_MATCHES, Settings, get_settings
from backend_docscan.core.exceptions import (
    ContentFetchError,
    DocScanError,
    ErrorKind,
    StorageError,
)
from backend_docscan.database.database import ResultStore, get_result_store
from backend_docscan.database.models import AnalysisResult
from backend_docscan.docscan_logging import get_logger

logger = get_logger(__name__)

IMAGE_MEDIA_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "svg": "image/svg+xml",
    "webp": "image/webp",
}


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class SimilarMatchResponse(BaseModel):
    docID: str = Field(..., description="Matching corpus document id")
    name: str = Field(..., description="Display name of the matching document")
    score: float = Field(..., ge=0, le=100, description="Percent of distinct words shared")


class AnalysisResponse(BaseModel):
    """Analysis of one document; identical on every call for the same docID."""

    id: str
    docID: str
    paragraphs: int = Field(..., ge=0)
    words: int = Field(..., ge=0)
    characters: int = Field(..., ge=0)
    similarMatches: list[SimilarMatchResponse] = Field(default_factory=list, max_length=MAX_SIMILAR_MATCHES)
    wordCloudRef: str | None = Field(None, description="Reference for GET /wordcloud/{ref}")
    plagiarismScore: float = Field(0.0, ge=0, le=100, description="Highest match score")

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResponse":
        return cls.model_validate(result.to_dict())


class ErrorResponse(BaseModel):
    error: str
    kind: str
    message: str


# -----------------------------------------------------------------------------
# Lifespan and dependency
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the analysis service once from settings unless one was injected; close the store it opened."""
    owned_store: ResultStore | None = None
    if getattr(app.state, "analysis_service", None) is None:
        settings: Settings = getattr(app.state, "settings", None) or get_settings()
        owned_store = get_result_store(settings)
        app.state.settings = settings
        app.state.analysis_service = build_analysis_service(settings, store=owned_store)
        logger.info(
            "api_service_ready",
            store=settings.result_store_backend,
            similarity=settings.similarity_strategy,
            wordcloud_enabled=settings.wordcloud_enabled,
        )
    yield
    if owned_store is not None:
        owned_store.close()
    logger.info("api_shutdown")


def get_analysis_service(request: Request) -> AnalysisService:
    service = getattr(request.app.state, "analysis_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="analysis service not initialised")
    return service


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend DocScan API",
    description="Document analysis: text metrics, corpus overlap, word clouds.",
    version="0.1.0",
    lifespan=lifespan,
)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _analyze(doc_id: str, service: AnalysisService) -> AnalysisResponse:
    result = service.analyze(doc_id)
    return AnalysisResponse.from_result(result)


@app.post("/analyze/{doc_id}", response_model=AnalysisResponse, responses=_ERROR_RESPONSES)
def analyze_document(
    doc_id: str, service: AnalysisService = Depends(get_analysis_service)
) -> AnalysisResponse:
    """Analyze a document, or return its existing analysis unchanged."""
    return _analyze(doc_id, service)


@app.get("/analyze/{doc_id}", response_model=AnalysisResponse, responses=_ERROR_RESPONSES)
def get_document_analysis(
    doc_id: str, service: AnalysisService = Depends(get_analysis_service)
) -> AnalysisResponse:
    """Same as POST; kept for clients routed through the gateway with GET."""
    return _analyze(doc_id, service)


@app.get("/wordcloud/{ref}", response_class=Response, responses=_ERROR_RESPONSES)
def get_word_cloud(
    ref: str,
    request: Request,
    service: AnalysisService = Depends(get_analysis_service),
) -> Response:
    """Return the stored word cloud image bytes."""
    data = service.get_word_cloud(ref.strip())
    settings: Settings | None = getattr(request.app.state, "settings", None)
    fmt = settings.wordcloud_format if settings else "png"
    return Response(content=data, media_type=IMAGE_MEDIA_TYPES.get(fmt.lower(), "application/octet-stream"))


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Error mapping
# -----------------------------------------------------------------------------


def status_for_error(exc: DocScanError) -> int:
    if exc.kind == ErrorKind.BAD_INPUT:
        return 422
    if exc.kind == ErrorKind.NOT_FOUND:
        return 404
    if isinstance(exc, ContentFetchError):
        return 502
    if isinstance(exc, StorageError):
        return 503
    return 500


@app.exception_handler(DocScanError)
def docscan_exception_handler(request: Request, exc: DocScanError) -> JSONResponse:
    status = status_for_error(exc)
    if status >= 500:
        logger.error("api_request_failed", path=request.url.path, error=exc.code, detail=exc.message)
    else:
        logger.info("api_request_rejected", path=request.url.path, error=exc.code)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "kind": ErrorKind.INTERNAL.value, "message": str(exc.detail)},
    )

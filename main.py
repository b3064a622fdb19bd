"""
Main entrypoint: build settings and the analysis service, then run the FastAPI server.

Env: FILE_STORING_SERVICE_URL, WORDCLOUD_API_URL, RESULT_STORE_BACKEND, DB_PATH,
DATABASE_URL, SIMILARITY_STRATEGY, SIMILARITY_THRESHOLD, API_HOST, API_PORT, LOG_LEVEL.

API only, without this wrapper: uvicorn backend_docscan.api_server.app:app --host 0.0.0.0 --port 8082
"""

import os
import sys

# Configure structured JSON logging before other imports that may log
from backend_docscan.docscan_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Validate configuration, wire the analysis service, and serve the API in the main thread."""
    from backend_docscan.analysis_engine.orchestrator import build_analysis_service
    from backend_docscan.config.settings import get_settings
    from backend_docscan.core.exceptions import DocScanError
    from backend_docscan.database.database import get_result_store

    try:
        settings = get_settings()
        store = get_result_store(settings)
        service = build_analysis_service(settings, store=store)
    except DocScanError as e:
        logger.error("main_config_error", error=e.code, message=e.message)
        sys.exit(1)

    from backend_docscan.api_server.app import app
    import uvicorn

    app.state.settings = settings
    app.state.analysis_service = service

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        store=settings.result_store_backend,
        content_source=settings.file_storing_service_url,
    )
    try:
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    finally:
        store.close()


if __name__ == "__main__":
    main()

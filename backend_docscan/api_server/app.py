"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn backend_docscan.api_server.app:app --host 0.0.0.0 --port 8082
"""

from backend_docscan.api_server.server import app

__all__ = ["app"]

"""
Structured logging for Backend DocScan.

JSON logs with timestamp, doc_id, event_type. Use get_logger() in all modules.
"""

from backend_docscan.docscan_logging.logger import bind_document, get_logger

__all__ = ["bind_document", "get_logger"]

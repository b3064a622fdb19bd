"""
Test that docscan_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from docscan_logging and use the logger."""
    from backend_docscan.docscan_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")


def test_bind_document_carries_doc_id():
    from backend_docscan.docscan_logging import bind_document

    log = bind_document("doc-42", "test")
    log.info("bound_message")
    assert log._context["doc_id"] == "doc-42"


def test_event_renamed_to_event_type():
    from backend_docscan.docscan_logging.logger import _rename_event

    out = _rename_event(None, "info", {"event": "analysis_saved", "doc_id": "d"})
    assert out == {"event_type": "analysis_saved", "doc_id": "d"}
    kept = _rename_event(None, "info", {"event": "x", "event_type": "explicit"})
    assert kept["event_type"] == "explicit"


def test_json_and_console_renderers():
    import json

    from backend_docscan.docscan_logging.logger import build_processors

    json_chain = build_processors("json")
    event_dict = {"event": "analysis_started", "doc_id": "doc-1"}
    for processor in json_chain:
        event_dict = processor(None, "info", event_dict)
    record = json.loads(event_dict)
    assert record["event_type"] == "analysis_started"
    assert record["doc_id"] == "doc-1"
    assert record["level"] == "info"
    assert "timestamp" in record

    assert type(build_processors("console")[-1]).__name__ == "ConsoleRenderer"

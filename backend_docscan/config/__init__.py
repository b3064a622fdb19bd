"""
Configuration management for Backend DocScan.

Loads and validates settings from environment variables and the optional
.env file. Settings are built once and passed explicitly to the analysis
service and the API app.
"""

from backend_docscan.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]

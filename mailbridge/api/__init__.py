"""
mailbridge.api - FastAPI REST API

Provides the HTTP surface of the mail gateway.

Usage:
    uvicorn mailbridge.api.main:app --reload
"""

from mailbridge.api.main import app, create_app

__all__ = ["app", "create_app"]

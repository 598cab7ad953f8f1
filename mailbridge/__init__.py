"""
mailbridge - Unified Email Provider Gateway

One HTTP API over Gmail, Outlook (Microsoft Graph) and Postmark.

This package provides:
1. Canonical message, label and profile models shared by every provider
2. Provider adapters behind a common EmailAdapter ABC
3. A pagination cursor cache that turns Gmail's forward-only cursors into page numbers
4. A FastAPI application exposing the canonical operations

Example:
    >>> from mailbridge.api import create_app
    >>> app = create_app()

Architecture:
    - integrations.email: adapters, MIME codec, cursor cache, fan-out
    - services: gateway facade selecting an adapter per request
    - api: FastAPI routes, API key middleware, error rendering
"""

__version__ = "0.1.0"

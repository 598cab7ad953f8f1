"""
Tests for email adapter ABC, upstream error mapping, and factory.
"""

import httpx
import pytest

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.cursor_cache import PaginationCursorCache
from mailbridge.integrations.email.exceptions import (
    InvalidRequestError,
    UnknownEmailProviderError,
    UpstreamError,
)
from mailbridge.integrations.email.factory import create_email_adapter, resolve_provider
from mailbridge.integrations.email.gmail import GmailEmailAdapter
from mailbridge.integrations.email.outlook import OutlookEmailAdapter
from mailbridge.integrations.email.postmark import PostmarkEmailAdapter
from mailbridge.integrations.email.types import EmailProvider


@pytest.fixture
def client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))


def test_create_email_adapter_gmail(client):
    """Factory returns GmailEmailAdapter for 'gmail' provider."""
    cache = PaginationCursorCache()
    adapter = create_email_adapter("gmail", client, cursor_cache=cache)
    assert isinstance(adapter, GmailEmailAdapter)
    assert adapter._cursor_cache is cache


def test_create_email_adapter_defaults_to_gmail(client):
    """A missing provider parameter selects Gmail."""
    assert isinstance(create_email_adapter(None, client, cursor_cache=PaginationCursorCache()), GmailEmailAdapter)


@pytest.mark.parametrize("name", ["outlook", "microsoft", "Outlook"])
def test_create_email_adapter_outlook(client, name):
    """Factory returns OutlookEmailAdapter for either Microsoft spelling."""
    assert isinstance(create_email_adapter(name, client), OutlookEmailAdapter)


def test_create_email_adapter_postmark(client):
    """Postmark adapter gets company, server token and domain."""
    adapter = create_email_adapter(
        "postmark",
        client,
        company="Big Co",
        postmark_server_token="server",
        postmark_sender_domain="example.com",
    )
    assert isinstance(adapter, PostmarkEmailAdapter)
    assert adapter.from_address == "bigco@example.com"


def test_create_email_adapter_postmark_unknown_company(client):
    """Missing company falls back to 'Unknown'."""
    adapter = create_email_adapter("postmark", client)
    assert adapter.from_address == "unknown@drayinsight.com"


def test_create_email_adapter_unknown_provider(client):
    """Factory rejects unknown providers instead of falling back to Gmail."""
    with pytest.raises(UnknownEmailProviderError, match="Unknown email provider") as exc_info:
        create_email_adapter("yahoo", client)
    assert isinstance(exc_info.value, InvalidRequestError)
    assert exc_info.value.status_code == 400
    assert exc_info.value.requested == "yahoo"


def test_resolve_provider_blank_is_gmail():
    assert resolve_provider("  ") == EmailProvider.GMAIL


def test_email_adapter_abc_not_instantiable():
    """EmailAdapter ABC cannot be instantiated directly."""
    with pytest.raises(TypeError):
        EmailAdapter()  # type: ignore[abstract]


@pytest.mark.asyncio
async def test_request_json_empty_body_is_empty_dict():
    """A 2xx with no content decodes to {}."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
    adapter = OutlookEmailAdapter(client)
    assert await adapter._request_json("GET", "https://graph.microsoft.com/v1.0/me") == {}


@pytest.mark.asyncio
async def test_request_json_invalid_json():
    """A 2xx with a non-JSON body is an upstream error."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
    )
    adapter = OutlookEmailAdapter(client)
    with pytest.raises(UpstreamError, match="Invalid JSON"):
        await adapter._request_json("GET", "https://graph.microsoft.com/v1.0/me")


@pytest.mark.asyncio
async def test_request_json_wraps_non_object():
    """A JSON array body is wrapped under 'data'."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2])))
    adapter = OutlookEmailAdapter(client)
    assert await adapter._request_json("GET", "https://graph.microsoft.com/v1.0/me") == {"data": [1, 2]}

"""
Email adapter factory.
"""

import httpx

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.cursor_cache import PaginationCursorCache
from mailbridge.integrations.email.exceptions import UnknownEmailProviderError
from mailbridge.integrations.email.gmail import GmailEmailAdapter
from mailbridge.integrations.email.outlook import OutlookEmailAdapter
from mailbridge.integrations.email.postmark import DEFAULT_SENDER_DOMAIN, PostmarkEmailAdapter
from mailbridge.integrations.email.types import EmailProvider

# Accepted spellings of each provider tag
_PROVIDER_ALIASES = {
    "gmail": EmailProvider.GMAIL,
    "google": EmailProvider.GMAIL,
    "outlook": EmailProvider.OUTLOOK,
    "microsoft": EmailProvider.OUTLOOK,
    "postmark": EmailProvider.POSTMARK,
}

DEFAULT_COMPANY = "Unknown"


def resolve_provider(provider: str | None) -> EmailProvider:
    """Map a request's provider parameter to an EmailProvider.

    No provider means Gmail.

    Raises:
        UnknownEmailProviderError: If the provider is unknown.
    """
    if provider is None or not provider.strip():
        return EmailProvider.GMAIL
    try:
        return _PROVIDER_ALIASES[provider.strip().lower()]
    except KeyError:
        raise UnknownEmailProviderError(provider) from None


def create_email_adapter(
    provider: str | None,
    client: httpx.AsyncClient,
    *,
    company: str | None = None,
    cursor_cache: PaginationCursorCache | None = None,
    postmark_server_token: str | None = None,
    postmark_sender_domain: str = DEFAULT_SENDER_DOMAIN,
) -> EmailAdapter:
    """Create an email adapter for the given provider.

    Args:
        provider: Provider identifier (e.g. "gmail", "outlook", "postmark").
        client: Shared HTTP client handed to the adapter.
        company: Company name for the Postmark sender address.
        cursor_cache: Cursor cache for Gmail paging (process-wide by default).
        postmark_server_token: Server-side Postmark token.
        postmark_sender_domain: Domain of the Postmark sender address.

    Returns:
        EmailAdapter instance.

    Raises:
        UnknownEmailProviderError: If the provider is unknown.
    """
    resolved = resolve_provider(provider)

    if resolved == EmailProvider.GMAIL:
        return GmailEmailAdapter(client, cursor_cache=cursor_cache)
    if resolved == EmailProvider.OUTLOOK:
        return OutlookEmailAdapter(client)
    return PostmarkEmailAdapter(
        client,
        company=company or DEFAULT_COMPANY,
        server_token=postmark_server_token,
        sender_domain=postmark_sender_domain,
    )

"""
mailbridge.services.mail_gateway - Gateway Facade

Selects a provider adapter from the request's provider parameter and
dispatches the canonical operation to it. Selection is a pure function of
(provider, company); the facade itself holds only the shared HTTP client,
settings and the process-wide cursor cache.

Example:
    >>> gateway = MailGateway(client, get_settings())
    >>> page = await gateway.list_messages("outlook", token, ListQuery(label_ids="INBOX"))
"""

import logging
from typing import Any

import httpx

from mailbridge.integrations.email import (
    BatchModifyRequest,
    EmailAdapter,
    EmailProvider,
    Label,
    ListQuery,
    MessageDetail,
    MessagePage,
    MissingCredentialError,
    PaginationCursorCache,
    SendMessageRequest,
    ThreadView,
    UserProfile,
    create_email_adapter,
    get_cursor_cache,
)
from mailbridge.settings import MailBridgeSettings

logger = logging.getLogger(__name__)


class MailGateway:
    """
    Canonical mail API over interchangeable provider adapters.

    Attributes:
        client: Shared upstream HTTP client
        settings: Server configuration (Postmark token and sender domain)
        cursor_cache: Pagination cursor store handed to the Gmail adapter
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: MailBridgeSettings,
        cursor_cache: PaginationCursorCache | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.cursor_cache = cursor_cache if cursor_cache is not None else get_cursor_cache()

    def adapter_for(self, provider: str | None, company: str | None = None) -> EmailAdapter:
        """Select the adapter for a request.

        Raises:
            UnknownEmailProviderError: If the provider is unknown.
        """
        return create_email_adapter(
            provider,
            self.client,
            company=company,
            cursor_cache=self.cursor_cache,
            postmark_server_token=self.settings.postmark_api_token,
            postmark_sender_domain=self.settings.postmark_sender_domain,
        )

    def _select(self, provider: str | None, token: str | None, company: str | None) -> tuple[EmailAdapter, str]:
        adapter = self.adapter_for(provider, company)
        token = (token or "").strip()
        # Postmark falls back to the server token; every other provider needs one
        if not token and adapter.provider != EmailProvider.POSTMARK:
            raise MissingCredentialError(adapter.provider)
        logger.debug(f"Dispatching to {adapter.provider} adapter")
        return adapter, token

    async def list_messages(
        self,
        provider: str | None,
        token: str | None,
        query: ListQuery,
        company: str | None = None,
    ) -> MessagePage:
        adapter, token = self._select(provider, token, company)
        return await adapter.list_messages(token, query)

    async def get_message(
        self,
        provider: str | None,
        token: str | None,
        message_id: str,
        company: str | None = None,
    ) -> MessageDetail:
        adapter, token = self._select(provider, token, company)
        return await adapter.get_message(token, message_id)

    async def get_thread(
        self,
        provider: str | None,
        token: str | None,
        thread_id: str,
        company: str | None = None,
    ) -> ThreadView:
        adapter, token = self._select(provider, token, company)
        return await adapter.get_thread(token, thread_id)

    async def send(
        self,
        provider: str | None,
        token: str | None,
        request: SendMessageRequest,
        company: str | None = None,
    ) -> dict[str, Any]:
        adapter, token = self._select(provider, token, company)
        return await adapter.send(token, request)

    async def list_labels(
        self,
        provider: str | None,
        token: str | None,
        company: str | None = None,
    ) -> list[Label]:
        adapter, token = self._select(provider, token, company)
        return await adapter.list_labels(token)

    async def batch_modify_labels(
        self,
        provider: str | None,
        token: str | None,
        request: BatchModifyRequest,
        company: str | None = None,
    ) -> None:
        adapter, token = self._select(provider, token, company)
        await adapter.batch_modify_labels(token, request)

    async def get_profile(
        self,
        provider: str | None,
        token: str | None,
        company: str | None = None,
    ) -> UserProfile:
        adapter, token = self._select(provider, token, company)
        return await adapter.get_profile(token)

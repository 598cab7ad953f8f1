"""
Email adapter abstract base class.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from mailbridge.integrations.email.exceptions import (
    CredentialRejectedError,
    MessageNotFoundError,
    UpstreamError,
    UpstreamUnreachableError,
)
from mailbridge.integrations.email.types import (
    BatchModifyRequest,
    EmailProvider,
    Label,
    ListQuery,
    MessageDetail,
    MessagePage,
    SendMessageRequest,
    ThreadView,
    UserProfile,
)

logger = logging.getLogger(__name__)

# Upstream error bodies are truncated to this many characters in diagnostics
_ERROR_DETAIL_LIMIT = 500


class EmailAdapter(ABC):
    """Abstract base class for email provider adapters.

    Each provider (Gmail, Outlook, Postmark) implements this interface.
    Every call takes the caller's opaque upstream credential; adapters keep no
    per-caller state and share one injected ``httpx.AsyncClient``.

    Failures are raised as ``ProviderError`` subclasses tagged with
    ``provider``. A capability the provider does not offer raises
    ``UnsupportedOperationError`` rather than returning placeholder data.
    """

    provider: EmailProvider
    _client: httpx.AsyncClient

    @abstractmethod
    async def list_messages(self, token: str, query: ListQuery) -> MessagePage:
        """List messages matching the query.

        Args:
            token: Caller's upstream credential.
            query: Filters and paging.

        Returns:
            MessagePage with summaries in upstream order (or collapsed order
            when ``query.collapse_threads`` is set).
        """

    @abstractmethod
    async def get_message(self, token: str, message_id: str) -> MessageDetail:
        """Fetch a single message by ID.

        Args:
            token: Caller's upstream credential.
            message_id: Provider-specific message ID.

        Returns:
            MessageDetail with decoded bodies and attachment metadata.

        Raises:
            MessageNotFoundError: If the upstream has no such message.
        """

    @abstractmethod
    async def get_thread(self, token: str, thread_id: str) -> ThreadView:
        """Fetch every message of a conversation, oldest first.

        Args:
            token: Caller's upstream credential.
            thread_id: Provider-specific conversation ID.

        Returns:
            ThreadView with detailed messages.
        """

    @abstractmethod
    async def send(self, token: str, request: SendMessageRequest) -> dict[str, Any]:
        """Send a new email.

        Args:
            token: Caller's upstream credential.
            request: Recipients, subject, HTML body and attachments.

        Returns:
            Provider send receipt (opaque JSON payload).
        """

    @abstractmethod
    async def list_labels(self, token: str) -> list[Label]:
        """List labels (or folders) available to the account.

        Args:
            token: Caller's upstream credential.

        Returns:
            List of Label objects.
        """

    @abstractmethod
    async def batch_modify_labels(self, token: str, request: BatchModifyRequest) -> None:
        """Add and remove labels on a set of messages.

        Args:
            token: Caller's upstream credential.
            request: Message ids and label ids to add/remove.
        """

    @abstractmethod
    async def get_profile(self, token: str) -> UserProfile:
        """Return the account identity behind the credential.

        Args:
            token: Caller's upstream credential.

        Returns:
            UserProfile with the account email address.
        """

    async def shutdown(self) -> None:
        """Clean up adapter resources. Default is no-op."""

    # -- Upstream helpers -----------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one upstream request and map failures to the provider taxonomy.

        Raises:
            UpstreamUnreachableError: If no response was received.
            CredentialRejectedError: On 401.
            MessageNotFoundError: On 404.
            UpstreamError: On any other non-2xx status.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error(
                f"{self.provider} request failed without a response: {e!r}",
                extra={"provider": str(self.provider), "url": url},
            )
            raise UpstreamUnreachableError(self.provider, str(e) or type(e).__name__) from e

        if response.is_success:
            return response

        detail = response.text[:_ERROR_DETAIL_LIMIT]
        logger.error(
            f"{self.provider} API error: {response.status_code} {detail}",
            extra={"provider": str(self.provider), "status_code": response.status_code},
        )
        if response.status_code == 401:
            raise CredentialRejectedError(self.provider, detail)
        if response.status_code == 404:
            raise MessageNotFoundError(self.provider, 404, detail)
        raise UpstreamError(self.provider, response.status_code, detail)

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """Like ``_request`` but decode the JSON body (empty body -> ``{}``)."""
        response = await self._request(method, url, **kwargs)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                self.provider, response.status_code, f"Invalid JSON in response: {e}"
            ) from e
        return data if isinstance(data, dict) else {"data": data}

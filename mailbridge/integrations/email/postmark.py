"""
Postmark email adapter.

Postmark is used send-only: there is no inbox behind it, so listings are
empty by policy and reading a message is unsupported. Messages go out as one
JSON payload (no MIME construction) from an address derived from the
caller's company name.
"""

import base64
import logging
from typing import Any

import httpx

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.exceptions import (
    MissingCredentialError,
    UnsupportedOperationError,
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

POSTMARK_EMAIL_URL = "https://api.postmarkapp.com/email"

DEFAULT_SENDER_DOMAIN = "drayinsight.com"


def sender_address(company: str, domain: str = DEFAULT_SENDER_DOMAIN) -> str:
    """Derive the sending address: lower-cased company, spaces removed, at *domain*.

    Example:
        >>> sender_address("Acme Freight Co")
        'acmefreightco@drayinsight.com'
    """
    return f"{company.lower().replace(' ', '')}@{domain}"


class PostmarkEmailAdapter(EmailAdapter):
    """Postmark adapter (transactional-send variant).

    Args:
        client: Shared HTTP client.
        company: Account/company name the sender address is derived from.
        server_token: Server-side Postmark token used when the caller sends none.
        sender_domain: Domain of the derived sender address.
    """

    provider = EmailProvider.POSTMARK

    def __init__(
        self,
        client: httpx.AsyncClient,
        company: str,
        server_token: str | None = None,
        sender_domain: str = DEFAULT_SENDER_DOMAIN,
    ) -> None:
        self._client = client
        self._company = company
        self._server_token = server_token
        self._sender_domain = sender_domain

    @property
    def from_address(self) -> str:
        return sender_address(self._company, self._sender_domain)

    async def list_messages(self, token: str, query: ListQuery) -> MessagePage:
        """Always an empty page: Postmark has no inbox to read."""
        return MessagePage(page=query.page, result_size_estimate=0)

    async def get_message(self, token: str, message_id: str) -> MessageDetail:
        raise UnsupportedOperationError(self.provider, "Message viewing")

    async def get_thread(self, token: str, thread_id: str) -> ThreadView:
        raise UnsupportedOperationError(self.provider, "Thread viewing")

    async def send(self, token: str, request: SendMessageRequest) -> dict[str, Any]:
        """Send one message through the Postmark ``/email`` endpoint.

        The caller's token wins; otherwise the server token is used.

        Raises:
            MissingCredentialError: If neither token is available.
        """
        server_token = token or self._server_token
        if not server_token:
            raise MissingCredentialError(self.provider)

        payload: dict[str, Any] = {
            "From": self.from_address,
            "To": ",".join(request.to),
            "Subject": request.subject,
            "HtmlBody": request.body,
            "Attachments": [
                {
                    "Name": attachment.filename,
                    "Content": base64.b64encode(attachment.content).decode("ascii"),
                    "ContentType": attachment.mime_type,
                }
                for attachment in request.attachments or []
            ],
        }
        if request.cc:
            payload["Cc"] = ",".join(request.cc)

        result = await self._request_json(
            "POST",
            POSTMARK_EMAIL_URL,
            json=payload,
            headers={
                "X-Postmark-Server-Token": server_token,
                "Accept": "application/json",
            },
        )
        logger.info(
            "Postmark message sent",
            extra={"message_id": result.get("MessageID"), "from": self.from_address},
        )
        return result

    async def list_labels(self, token: str) -> list[Label]:
        """No labels exist for a send-only account."""
        return []

    async def batch_modify_labels(self, token: str, request: BatchModifyRequest) -> None:
        raise UnsupportedOperationError(self.provider, "Label modification")

    async def get_profile(self, token: str) -> UserProfile:
        return UserProfile(email=self.from_address, name=self._company)

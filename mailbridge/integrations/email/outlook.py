"""
Outlook email adapter.

Implements EmailAdapter against Microsoft Graph v1.0 mail folders. Graph
supports deterministic offset paging (``$top``/``$skip``), so this adapter
translates page numbers directly and never touches the cursor cache.

Reference:
- https://learn.microsoft.com/en-us/graph/api/resources/message
- https://learn.microsoft.com/en-us/graph/query-parameters
"""

import asyncio
import base64
import logging
from typing import Any

import httpx

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.fanout import collapse_threads
from mailbridge.integrations.email.types import (
    AttachmentSummary,
    BatchModifyRequest,
    EmailProvider,
    Label,
    ListQuery,
    MessageDetail,
    MessagePage,
    MessageSummary,
    SendMessageRequest,
    ThreadView,
    UserProfile,
)

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.microsoft.com/v1.0/me"

DEFAULT_PAGE_SIZE = 10

# Canonical label names -> Graph well-known folder names
FOLDER_MAP = {
    "INBOX": "inbox",
    "SENT": "sentitems",
    "DRAFT": "drafts",
    "TRASH": "deleteditems",
}

LIST_SELECT_FIELDS = (
    "id,subject,from,receivedDateTime,isRead,hasAttachments,bodyPreview,conversationId"
)

# Largest page requested for folder and conversation listings
_MAX_PAGE_SIZE = 100

# Ask Graph for plain-text bodies
_TEXT_BODY_PREFERENCE = 'outlook.body-content-type="text"'


def map_folder(label: str) -> str:
    """Map a canonical label to a Graph folder id; other values pass through."""
    return FOLDER_MAP.get(label, label)


def build_list_request(query: ListQuery) -> tuple[str, dict[str, str | int]]:
    """Build the endpoint and OData parameters for a listing.

    Page size defaults to 10 and is replaced (not duplicated) by
    ``max_results``; page N > 1 becomes ``$skip = (N - 1) * page_size``.

    Example:
        >>> build_list_request(ListQuery(label_ids="TRASH", max_results=5, page_number=3))
        ('https://graph.microsoft.com/v1.0/me/mailFolders/deleteditems/messages',
         {'$select': '...', '$top': 5, '$skip': 10})
    """
    labels = query.labels()
    if labels:
        url = f"{GRAPH_API_URL}/mailFolders/{map_folder(labels[0])}/messages"
    else:
        url = f"{GRAPH_API_URL}/messages"

    page_size = query.max_results or DEFAULT_PAGE_SIZE
    params: dict[str, str | int] = {"$select": LIST_SELECT_FIELDS, "$top": page_size}
    if query.page > 1:
        params["$skip"] = (query.page - 1) * page_size
    if query.q:
        params["$search"] = f'"{query.q}"'
    return url, params


def _sender(message: dict[str, Any]) -> str | None:
    address = (message.get("from") or {}).get("emailAddress") or {}
    return address.get("name") or address.get("address")


def _summary(message: dict[str, Any]) -> MessageSummary:
    return MessageSummary(
        id=message.get("id", ""),
        thread_id=message.get("conversationId", ""),
        snippet=message.get("bodyPreview", ""),
        subject=message.get("subject"),
        sender=_sender(message),
        date=message.get("receivedDateTime"),
        unread=not message.get("isRead", True),
        has_attachments=bool(message.get("hasAttachments")),
    )


class OutlookEmailAdapter(EmailAdapter):
    """Microsoft Graph adapter (folder variant).

    Args:
        client: Shared HTTP client.
    """

    provider = EmailProvider.OUTLOOK

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def list_messages(self, token: str, query: ListQuery) -> MessagePage:
        """List one page of messages using offset paging."""
        url, params = build_list_request(query)
        data = await self._request_json("GET", url, params=params, headers=self._auth(token))

        summaries = [_summary(message) for message in data.get("value") or []]
        if query.collapse_threads:
            summaries = collapse_threads(summaries)

        has_more = bool(data.get("@odata.nextLink"))
        return MessagePage(
            messages=summaries,
            page=query.page,
            next_page=query.page + 1 if has_more else None,
            result_size_estimate=data.get("@odata.count", len(summaries)),
        )

    async def get_message(self, token: str, message_id: str) -> MessageDetail:
        """Fetch a message with a text body, plus attachment metadata if any."""
        headers = {**self._auth(token), "Prefer": _TEXT_BODY_PREFERENCE}
        data = await self._request_json(
            "GET", f"{GRAPH_API_URL}/messages/{message_id}", headers=headers
        )

        attachments: list[AttachmentSummary] = []
        if data.get("hasAttachments"):
            attachments = await self._list_attachments(token, message_id)

        return self._detail(data, message_id, attachments)

    @staticmethod
    def _detail(
        data: dict[str, Any],
        message_id: str,
        attachments: list[AttachmentSummary],
    ) -> MessageDetail:
        recipients = data.get("toRecipients") or []
        first_to = (recipients[0].get("emailAddress") or {}).get("address") if recipients else None
        body = data.get("body") or {}
        content_type = (body.get("contentType") or "text").lower()
        content = body.get("content")

        return MessageDetail(
            id=message_id,
            subject=data.get("subject"),
            sender=_sender(data),
            recipient=first_to,
            date=data.get("receivedDateTime"),
            snippet=data.get("bodyPreview", ""),
            body_text=content if content_type == "text" else None,
            body_html=content if content_type == "html" else None,
            attachments=attachments,
        )

    async def _list_attachments(self, token: str, message_id: str) -> list[AttachmentSummary]:
        data = await self._request_json(
            "GET",
            f"{GRAPH_API_URL}/messages/{message_id}/attachments",
            params={"$select": "name,contentType,size,contentId"},
            headers=self._auth(token),
        )
        return [
            AttachmentSummary(
                filename=item.get("name") or "unnamed",
                content_type=item.get("contentType") or "application/octet-stream",
                size=item.get("size") or 0,
                id=item.get("contentId"),
            )
            for item in data.get("value") or []
        ]

    async def get_thread(self, token: str, thread_id: str) -> ThreadView:
        """Fetch every message sharing a ``conversationId``, oldest first.

        Attachment metadata is not expanded here; open a single message for it.
        """
        escaped = thread_id.replace("'", "''")
        headers = {**self._auth(token), "Prefer": _TEXT_BODY_PREFERENCE}
        data = await self._request_json(
            "GET",
            f"{GRAPH_API_URL}/messages",
            params={"$filter": f"conversationId eq '{escaped}'", "$top": _MAX_PAGE_SIZE},
            headers=headers,
        )

        messages = [
            self._detail(item, item.get("id", ""), []) for item in data.get("value") or []
        ]
        messages.sort(key=lambda message: message.date or "")
        return ThreadView(thread_id=thread_id, message_count=len(messages), messages=messages)

    async def send(self, token: str, request: SendMessageRequest) -> dict[str, Any]:
        """Send via ``sendMail`` with structured recipients (no MIME)."""
        message: dict[str, Any] = {
            "subject": request.subject,
            "body": {"contentType": "HTML", "content": request.body},
            "toRecipients": [{"emailAddress": {"address": address}} for address in request.to],
        }
        if request.cc:
            message["ccRecipients"] = [{"emailAddress": {"address": address}} for address in request.cc]
        if request.attachments:
            message["attachments"] = [
                {
                    "@odata.type": "#microsoft.graph.fileAttachment",
                    "name": attachment.filename,
                    "contentType": attachment.mime_type,
                    "contentBytes": base64.b64encode(attachment.content).decode("ascii"),
                }
                for attachment in request.attachments
            ]

        await self._request(
            "POST",
            f"{GRAPH_API_URL}/sendMail",
            json={"message": message, "saveToSentItems": True},
            headers=self._auth(token),
        )
        logger.info("Outlook message sent", extra={"recipients": len(request.to)})
        return {"status": "sent"}

    async def list_labels(self, token: str) -> list[Label]:
        """List mail folders as labels of type ``user``."""
        data = await self._request_json(
            "GET",
            f"{GRAPH_API_URL}/mailFolders",
            params={"$top": _MAX_PAGE_SIZE},
            headers=self._auth(token),
        )
        return [
            Label(id=item["id"], name=item.get("displayName", item["id"]), label_type="user")
            for item in data.get("value") or []
        ]

    async def batch_modify_labels(self, token: str, request: BatchModifyRequest) -> None:
        """Move messages into the first "add" label's folder.

        A message lives in exactly one folder, so only ``add_label_ids[0]`` is
        honored and ``remove_label_ids`` is ignored. No add label is a no-op.
        """
        if not request.add_label_ids:
            return

        destination = map_folder(request.add_label_ids[0])
        if len(request.add_label_ids) > 1:
            logger.warning(
                f"Outlook batch modify honors only the first label, moving to {destination}",
                extra={"ignored": request.add_label_ids[1:]},
            )

        await asyncio.gather(
            *(
                self._request(
                    "POST",
                    f"{GRAPH_API_URL}/messages/{message_id}/move",
                    json={"destinationId": destination},
                    headers=self._auth(token),
                )
                for message_id in request.ids
            )
        )

    async def get_profile(self, token: str) -> UserProfile:
        data = await self._request_json("GET", GRAPH_API_URL, headers=self._auth(token))
        return UserProfile(
            email=data.get("mail") or data.get("userPrincipalName") or "",
            name=data.get("displayName"),
        )

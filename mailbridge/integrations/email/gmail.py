"""
Gmail email adapter.

Implements EmailAdapter against the Gmail REST API over a shared
``httpx.AsyncClient``. Messages are read in their ``raw`` representation and
decoded by the MIME codec; listings page through the cursor cache and enrich
ids with concurrent metadata fetches.
"""

import logging
from typing import Any

import httpx

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.cursor_cache import (
    PaginationCursorCache,
    fingerprint,
    get_cursor_cache,
)
from mailbridge.integrations.email.fanout import MessageRef, collapse_threads, fan_out
from mailbridge.integrations.email.mime import (
    decode_envelope,
    encode_envelope,
    has_attachments_in_payload,
)
from mailbridge.integrations.email.types import (
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

GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1/users/me"

PAGE_ORDER_WARNING = "Page token not found. Please navigate sequentially from Page 1."

_METADATA_HEADERS = ("Subject", "From", "Date")


def _header(headers: list[dict[str, Any]], name: str) -> str | None:
    for header in headers:
        if header.get("name") == name:
            return header.get("value")
    return None


class GmailEmailAdapter(EmailAdapter):
    """Gmail API adapter (raw-message variant).

    Args:
        client: Shared HTTP client; per-call timeouts come from its config.
        cursor_cache: Pagination cursor store. Defaults to the process-wide cache.
    """

    provider = EmailProvider.GMAIL

    def __init__(
        self,
        client: httpx.AsyncClient,
        cursor_cache: PaginationCursorCache | None = None,
    ) -> None:
        self._client = client
        self._cursor_cache = cursor_cache if cursor_cache is not None else get_cursor_cache()

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    # -- Listing ----------------------------------------------------------------

    def _resolve_cursor(self, token: str, query: ListQuery) -> tuple[str | None, bool]:
        """Pick the upstream cursor for this request.

        Returns:
            (cursor, resolved). ``resolved`` is False when page N > 1 was asked
            for but no cursor is known for it.
        """
        if query.page_token:
            return query.page_token, True
        if query.page <= 1:
            return None, True
        cursor = self._cursor_cache.lookup(fingerprint(token, query), query.page)
        return cursor, cursor is not None

    async def list_messages(self, token: str, query: ListQuery) -> MessagePage:
        """List messages, resolving page numbers through the cursor cache.

        Page N > 1 without an explicit ``page_token`` only works after page N-1
        was listed (which recorded the cursor). Otherwise an empty page with a
        warning is returned and Gmail is not called.
        """
        page = query.page
        cursor, resolved = self._resolve_cursor(token, query)
        if not resolved:
            logger.warning(
                f"No cursor cached for page {page}; caller must page sequentially",
                extra={"page": page},
            )
            return MessagePage(page=page, result_size_estimate=0, warning=PAGE_ORDER_WARNING)

        params: list[tuple[str, str | int]] = []
        if query.max_results is not None:
            params.append(("maxResults", query.max_results))
        if query.q:
            params.append(("q", query.q))
        if cursor:
            params.append(("pageToken", cursor))
        params.extend(("labelIds", label) for label in query.labels())

        data = await self._request_json(
            "GET", f"{GMAIL_API_URL}/messages", params=params, headers=self._auth(token)
        )

        next_token = data.get("nextPageToken")
        # Page 1 always starts cursor-less, so an explicit token only places
        # its page when the caller names a page past the first
        if next_token and (query.page_token is None or page > 1):
            self._cursor_cache.store(fingerprint(token, query), page + 1, next_token)

        refs = [
            MessageRef(id=item.get("id", ""), thread_id=item.get("threadId", ""))
            for item in data.get("messages") or []
        ]
        if not refs:
            return MessagePage(
                page=page,
                next_page_token=next_token,
                next_page=page + 1 if next_token else None,
                result_size_estimate=0,
            )

        result = await fan_out(refs, lambda ref: self._fetch_summary(token, ref))
        summaries = result.items
        if query.collapse_threads:
            summaries = collapse_threads(summaries)

        return MessagePage(
            messages=summaries,
            next_page_token=next_token,
            page=page,
            next_page=page + 1 if next_token else None,
            result_size_estimate=data.get("resultSizeEstimate"),
            skipped_ids=result.failed_ids,
        )

    async def _fetch_summary(self, token: str, ref: MessageRef) -> MessageSummary:
        """Fetch metadata (Subject/From/Date, labels, part tree) for one message."""
        params: list[tuple[str, str]] = [("format", "metadata")]
        params.extend(("metadataHeaders", name) for name in _METADATA_HEADERS)
        data = await self._request_json(
            "GET", f"{GMAIL_API_URL}/messages/{ref.id}", params=params, headers=self._auth(token)
        )

        payload = data.get("payload") or {}
        headers = payload.get("headers") or []
        return MessageSummary(
            id=ref.id,
            thread_id=ref.thread_id or data.get("threadId", ""),
            snippet=data.get("snippet", ""),
            subject=_header(headers, "Subject"),
            sender=_header(headers, "From"),
            date=_header(headers, "Date"),
            unread="UNREAD" in (data.get("labelIds") or []),
            has_attachments=has_attachments_in_payload(payload),
        )

    # -- Single messages --------------------------------------------------------

    async def get_message(self, token: str, message_id: str) -> MessageDetail:
        """Fetch a message in ``raw`` format and decode its envelope."""
        data = await self._request_json(
            "GET",
            f"{GMAIL_API_URL}/messages/{message_id}",
            params={"format": "raw"},
            headers=self._auth(token),
        )

        envelope = decode_envelope(data.get("raw") or "")
        return MessageDetail(
            id=message_id,
            subject=envelope.subject,
            sender=envelope.sender,
            recipient=envelope.recipient,
            date=envelope.date,
            snippet=data.get("snippet", ""),
            body_text=envelope.body_text,
            body_html=envelope.body_html,
            attachments=envelope.attachments,
        )

    async def get_thread(self, token: str, thread_id: str) -> ThreadView:
        """Fetch a thread's message ids, then each message in full, concurrently.

        Messages that fail to fetch or decode are left out of the view.
        """
        data = await self._request_json(
            "GET",
            f"{GMAIL_API_URL}/threads/{thread_id}",
            params={"format": "minimal"},
            headers=self._auth(token),
        )

        refs = [
            MessageRef(id=item.get("id", ""), thread_id=thread_id)
            for item in data.get("messages") or []
        ]
        result = await fan_out(refs, lambda ref: self.get_message(token, ref.id))
        messages = sorted(result.items, key=lambda message: message.date or "")

        return ThreadView(thread_id=thread_id, message_count=len(messages), messages=messages)

    # -- Sending ----------------------------------------------------------------

    async def send(self, token: str, request: SendMessageRequest) -> dict[str, Any]:
        """Send via ``messages/send`` with a hand-built raw envelope."""
        body: dict[str, Any] = {"raw": encode_envelope(request)}
        if request.thread_id:
            body["threadId"] = request.thread_id

        result = await self._request_json(
            "POST", f"{GMAIL_API_URL}/messages/send", json=body, headers=self._auth(token)
        )
        logger.info(
            "Gmail message sent",
            extra={
                "message_id": result.get("id"),
                "recipients": len(request.to),
                "attachments": len(request.attachments or []),
            },
        )
        return result

    # -- Labels & profile -------------------------------------------------------

    async def list_labels(self, token: str) -> list[Label]:
        data = await self._request_json("GET", f"{GMAIL_API_URL}/labels", headers=self._auth(token))
        return [
            Label(id=item["id"], name=item.get("name", item["id"]), label_type=item.get("type"))
            for item in data.get("labels") or []
        ]

    async def batch_modify_labels(self, token: str, request: BatchModifyRequest) -> None:
        body = {
            "ids": request.ids,
            "addLabelIds": request.add_label_ids or [],
            "removeLabelIds": request.remove_label_ids or [],
        }
        await self._request(
            "POST", f"{GMAIL_API_URL}/messages/batchModify", json=body, headers=self._auth(token)
        )

    async def get_profile(self, token: str) -> UserProfile:
        data = await self._request_json("GET", f"{GMAIL_API_URL}/profile", headers=self._auth(token))
        return UserProfile(email=data.get("emailAddress", ""))

"""
Canonical email types shared by every provider adapter and the API layer.

Adapters translate their upstream payloads into these shapes; the HTTP layer
serializes them by alias so the wire format stays provider-agnostic
(``from``/``to`` instead of the Python-safe attribute names).
"""

import base64
import binascii
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmailProvider(StrEnum):
    """Supported upstream mail providers"""

    GMAIL = "gmail"  # Raw MIME envelopes over the Gmail REST API
    OUTLOOK = "outlook"  # Microsoft Graph mail folders
    POSTMARK = "postmark"  # Transactional send-only


class AttachmentSummary(BaseModel):
    """Attachment metadata derived from a parsed envelope or upstream listing."""

    filename: str
    content_type: str
    size: int = 0
    id: str | None = None  # Content-ID for inline references


class OutgoingAttachment(BaseModel):
    """Attachment supplied by the caller for a single send.

    Over JSON the content arrives base64 encoded, optionally as a ``data:`` URI.
    """

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

    @field_validator("content", mode="before")
    @classmethod
    def _decode_base64_content(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        # Strip a data URI prefix such as "data:application/pdf;base64,"
        encoded = value.split(",", 1)[1] if "," in value else value
        try:
            return base64.b64decode(encoded.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid attachment base64: {e}") from e


class SendMessageRequest(BaseModel):
    """Outgoing message. ``body`` is HTML."""

    to: list[str] = Field(..., min_length=1)
    cc: list[str] | None = None
    subject: str
    body: str
    thread_id: str | None = None
    attachments: list[OutgoingAttachment] | None = None


class MessageSummary(BaseModel):
    """One row of a message listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    thread_id: str
    snippet: str = ""
    subject: str | None = None
    sender: str | None = Field(default=None, alias="from")
    date: str | None = None
    unread: bool = False
    has_attachments: bool = False
    messages_in_thread: int | None = None  # Only set after collapsing


class MessageDetail(BaseModel):
    """A single message with decoded bodies."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    subject: str | None = None
    sender: str | None = Field(default=None, alias="from")
    recipient: str | None = Field(default=None, alias="to")
    date: str | None = None
    snippet: str = ""
    body_text: str | None = None
    body_html: str | None = None
    attachments: list[AttachmentSummary] = []


class Label(BaseModel):
    """A provider label or folder."""

    id: str
    name: str
    label_type: str | None = None


class ListQuery(BaseModel):
    """Filters and paging for a message listing."""

    label_ids: str | None = None  # Comma separated
    max_results: int | None = Field(default=None, ge=1, le=500)
    q: str | None = None
    page_token: str | None = None
    page_number: int | None = Field(default=None, ge=1)
    collapse_threads: bool = False

    @property
    def page(self) -> int:
        return self.page_number or 1

    def labels(self) -> list[str]:
        """Split ``label_ids`` into individual label ids."""
        if not self.label_ids:
            return []
        return [label.strip() for label in self.label_ids.split(",") if label.strip()]


class BatchModifyRequest(BaseModel):
    """Add/remove labels on a set of messages."""

    ids: list[str]
    add_label_ids: list[str] | None = None
    remove_label_ids: list[str] | None = None


class UserProfile(BaseModel):
    """Account identity behind a credential."""

    email: str
    name: str | None = None
    picture: str | None = None


class MessagePage(BaseModel):
    """Result of a list call.

    ``skipped_ids`` names messages whose detail fetch failed during fan-out;
    they are absent from ``messages``.
    """

    messages: list[MessageSummary] = []
    next_page_token: str | None = None
    page: int = 1
    next_page: int | None = None
    result_size_estimate: int | None = None
    warning: str | None = None
    skipped_ids: list[str] = []


class ThreadView(BaseModel):
    """All messages of one conversation, oldest first."""

    thread_id: str
    message_count: int
    messages: list[MessageDetail] = []

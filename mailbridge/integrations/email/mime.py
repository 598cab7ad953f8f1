"""
MIME envelope codec for the raw-message (Gmail) adapter.

Gmail exchanges complete RFC 822 envelopes as URL-safe base64 without
padding. This module builds outgoing envelopes by hand (so the header layout
is exact and predictable) and parses incoming ones with the stdlib ``email``
package.
"""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import UTC
from email import policy
from email.header import Header
from email.message import Message
from email.parser import BytesParser
from email.utils import encode_rfc2231
from typing import Any

from mailbridge.integrations.email.exceptions import EnvelopeError, InvalidRequestError
from mailbridge.integrations.email.types import AttachmentSummary, EmailProvider, SendMessageRequest


MULTIPART_BOUNDARY = "boundary_1234567890"

_CRLF = "\r\n"


@dataclass
class DecodedEnvelope:
    """Structured fields pulled out of a raw envelope."""

    subject: str | None = None
    sender: str | None = None
    recipient: str | None = None
    date: str | None = None
    body_text: str | None = None
    body_html: str | None = None
    attachments: list[AttachmentSummary] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Transport encoding
# ---------------------------------------------------------------------------


def encode_transport(envelope: bytes) -> str:
    """Encode an envelope as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(envelope).decode("ascii").rstrip("=")


def decode_transport(raw: str) -> bytes:
    """Decode URL-safe base64, with or without trailing padding.

    Raises:
        EnvelopeError: If the input is not valid URL-safe base64.
    """
    stripped = raw.strip().rstrip("=")
    if not stripped:
        raise EnvelopeError("Raw envelope is empty")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise EnvelopeError(f"Base64 error: {e} (len: {len(raw)})") from e


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _single_line(name: str, value: str) -> str:
    """Reject *value* if it would break out of its header line."""
    if "\r" in value or "\n" in value:
        raise InvalidRequestError(EmailProvider.GMAIL, f"{name} must not contain line breaks")
    return value


def _header_value(name: str, value: str) -> str:
    """Return *value* as-is when ASCII, RFC 2047 encoded otherwise."""
    _single_line(name, value)
    if value.isascii():
        return value
    return Header(value, "utf-8").encode(linesep=_CRLF)


def _param(name: str, value: str) -> str:
    """Render a header parameter, RFC 2231 encoded unless it quotes cleanly."""
    if value.isascii() and not any(c in value for c in '"\\\r\n'):
        return f'{name}="{value}"'
    return f"{name}*={encode_rfc2231(value, 'utf-8')}"


def build_envelope(request: SendMessageRequest, boundary: str = MULTIPART_BOUNDARY) -> bytes:
    """Build a complete envelope for *request*.

    Without attachments the envelope is a single ``text/html`` part. With
    attachments it is ``multipart/mixed``: the HTML first (inline), then one
    base64 part per attachment, closed with the boundary terminator.

    Raises:
        InvalidRequestError: If a header value contains a line break.
    """
    lines: list[str] = [f"To: {_single_line('To', ', '.join(request.to))}"]
    if request.cc:
        lines.append(f"Cc: {_single_line('Cc', ', '.join(request.cc))}")
    lines.append(f"Subject: {_header_value('Subject', request.subject)}")

    if not request.attachments:
        lines.append("Content-Type: text/html; charset=utf-8")
        lines.append("")
        return (_CRLF.join(lines) + _CRLF + request.body).encode("utf-8")

    lines.append("MIME-Version: 1.0")
    lines.append(f'Content-Type: multipart/mixed; boundary="{boundary}"')
    lines.append("")

    # HTML part
    lines.append(f"--{boundary}")
    lines.append("Content-Type: text/html; charset=utf-8")
    lines.append("Content-Disposition: inline")
    lines.append("")
    lines.append(request.body)

    for attachment in request.attachments:
        lines.append(f"--{boundary}")
        mime_type = _single_line("Attachment MIME type", attachment.mime_type)
        lines.append(f"Content-Type: {mime_type}; {_param('name', attachment.filename)}")
        lines.append(f"Content-Disposition: attachment; {_param('filename', attachment.filename)}")
        lines.append("Content-Transfer-Encoding: base64")
        lines.append("")
        lines.append(base64.b64encode(attachment.content).decode("ascii"))

    lines.append(f"--{boundary}--")
    return _CRLF.join(lines).encode("utf-8")


def encode_envelope(request: SendMessageRequest, boundary: str = MULTIPART_BOUNDARY) -> str:
    """Build the envelope for *request* and encode it for transport."""
    return encode_transport(build_envelope(request, boundary))


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _part_text(part: Message) -> str:
    payload = part.get_payload(decode=True) or b""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _content_type(part: Message) -> str:
    """Reconstruct ``type/subtype`` from the raw header.

    The stdlib falls back to ``text/plain`` for a malformed header; here a
    missing subtype becomes ``octet-stream`` instead.
    """
    raw = part.get("Content-Type")
    if raw is None:
        return "application/octet-stream"
    value = str(raw).split(";", 1)[0].strip().lower()
    main, _, sub = value.partition("/")
    if not main:
        return "application/octet-stream"
    return f"{main}/{sub or 'octet-stream'}"


def _is_attachment(part: Message) -> bool:
    if part.is_multipart():
        return False
    disposition = part.get_content_disposition()
    if disposition == "attachment":
        return True
    if part.get_filename():
        return True
    return disposition == "inline" and part.get_content_maintype() != "text"


def _attachment_summary(part: Message) -> AttachmentSummary:
    content_id = part.get("Content-ID")
    return AttachmentSummary(
        filename=part.get_filename() or "unnamed",
        content_type=_content_type(part),
        size=len(part.get_payload(decode=True) or b""),
        id=str(content_id).strip().strip("<>") if content_id else None,
    )


def _first_address(message: Message, header: str, *, prefer_name: bool) -> str | None:
    value = message.get(header)
    if value is None:
        return None
    addresses = getattr(value, "addresses", ())
    if not addresses:
        text = str(value).strip()
        return text or None
    first = addresses[0]
    if prefer_name and first.display_name:
        return first.display_name
    return first.addr_spec or first.display_name or "Unknown"


def _rfc3339_date(message: Message) -> str | None:
    value = message.get("Date")
    if value is None:
        return None
    parsed = getattr(value, "datetime", None)
    if parsed is None:
        return None
    # "-0000" (unknown zone) parses as naive; report it as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.isoformat()


def parse_envelope(raw_bytes: bytes) -> DecodedEnvelope:
    """Parse decoded envelope bytes into structured fields.

    Raises:
        EnvelopeError: If the bytes do not form a MIME document.
    """
    try:
        message = BytesParser(policy=policy.default).parsebytes(raw_bytes)
    except Exception as e:
        raise EnvelopeError(f"Failed to parse email: {e}") from e

    if not message.keys():
        raise EnvelopeError("Failed to parse email: no headers found")

    decoded = DecodedEnvelope(
        subject=str(message["Subject"]) if message["Subject"] is not None else None,
        sender=_first_address(message, "From", prefer_name=True),
        recipient=_first_address(message, "To", prefer_name=False),
        date=_rfc3339_date(message),
    )

    for part in message.walk():
        if part is not message and _is_attachment(part):
            decoded.attachments.append(_attachment_summary(part))
            continue
        if part.is_multipart() or part.get_content_disposition() == "attachment":
            continue
        content_type = part.get_content_type()
        if content_type == "text/plain" and decoded.body_text is None:
            decoded.body_text = _part_text(part)
        elif content_type == "text/html" and decoded.body_html is None:
            decoded.body_html = _part_text(part)

    return decoded


def decode_envelope(raw: str) -> DecodedEnvelope:
    """Decode a transport-encoded envelope (``format=raw``) into fields."""
    return parse_envelope(decode_transport(raw))


# ---------------------------------------------------------------------------
# Metadata payloads
# ---------------------------------------------------------------------------


def has_attachments_in_payload(payload: dict[str, Any] | None) -> bool:
    """Return True if any part in a metadata part tree carries a filename."""
    if not payload:
        return False
    if payload.get("filename"):
        return True
    return any(has_attachments_in_payload(part) for part in payload.get("parts") or [])

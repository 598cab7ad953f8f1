"""
Email integration adapters.

Provides provider-specific email adapters (Gmail, Outlook, Postmark) behind
a common EmailAdapter ABC. Canonical types live in types.py, the failure
taxonomy in exceptions.py.
"""

from mailbridge.integrations.email.base import EmailAdapter
from mailbridge.integrations.email.cursor_cache import (
    PaginationCursorCache,
    fingerprint,
    get_cursor_cache,
)
from mailbridge.integrations.email.exceptions import (
    CredentialRejectedError,
    EnvelopeError,
    InvalidRequestError,
    MessageNotFoundError,
    MissingCredentialError,
    ProviderError,
    UnknownEmailProviderError,
    UnsupportedOperationError,
    UpstreamError,
    UpstreamUnreachableError,
)
from mailbridge.integrations.email.factory import create_email_adapter, resolve_provider
from mailbridge.integrations.email.gmail import GmailEmailAdapter
from mailbridge.integrations.email.outlook import OutlookEmailAdapter
from mailbridge.integrations.email.postmark import PostmarkEmailAdapter
from mailbridge.integrations.email.types import (
    AttachmentSummary,
    BatchModifyRequest,
    EmailProvider,
    Label,
    ListQuery,
    MessageDetail,
    MessagePage,
    MessageSummary,
    OutgoingAttachment,
    SendMessageRequest,
    ThreadView,
    UserProfile,
)

__all__ = [
    "AttachmentSummary",
    "BatchModifyRequest",
    "CredentialRejectedError",
    "EmailAdapter",
    "EmailProvider",
    "EnvelopeError",
    "GmailEmailAdapter",
    "InvalidRequestError",
    "Label",
    "ListQuery",
    "MessageDetail",
    "MessageNotFoundError",
    "MessagePage",
    "MessageSummary",
    "MissingCredentialError",
    "OutgoingAttachment",
    "OutlookEmailAdapter",
    "PaginationCursorCache",
    "PostmarkEmailAdapter",
    "ProviderError",
    "SendMessageRequest",
    "ThreadView",
    "UnknownEmailProviderError",
    "UnsupportedOperationError",
    "UpstreamError",
    "UpstreamUnreachableError",
    "UserProfile",
    "create_email_adapter",
    "fingerprint",
    "get_cursor_cache",
    "resolve_provider",
]

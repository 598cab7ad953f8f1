"""
Unit tests for canonical email types and the provider failure taxonomy.
"""

import base64

import pytest
from pydantic import ValidationError

from mailbridge.integrations.email.exceptions import (
    CredentialRejectedError,
    MessageNotFoundError,
    UpstreamError,
    UpstreamUnreachableError,
)
from mailbridge.integrations.email.types import (
    EmailProvider,
    ListQuery,
    MessageDetail,
    MessageSummary,
    OutgoingAttachment,
    SendMessageRequest,
)


class TestOutgoingAttachment:
    def test_base64_string_is_decoded(self):
        attachment = OutgoingAttachment(filename="a.txt", content=base64.b64encode(b"hello").decode())
        assert attachment.content == b"hello"
        assert attachment.mime_type == "application/octet-stream"

    def test_data_uri_prefix_is_stripped(self):
        attachment = OutgoingAttachment(
            filename="a.pdf",
            content="data:application/pdf;base64," + base64.b64encode(b"%PDF").decode(),
            mime_type="application/pdf",
        )
        assert attachment.content == b"%PDF"

    def test_raw_bytes_pass_through(self):
        assert OutgoingAttachment(filename="a", content=b"\x00\x01").content == b"\x00\x01"

    def test_invalid_base64_rejected(self):
        with pytest.raises(ValidationError, match="Invalid attachment base64"):
            OutgoingAttachment(filename="a", content="not*base64")


class TestSendMessageRequest:
    def test_requires_a_recipient(self):
        with pytest.raises(ValidationError):
            SendMessageRequest(to=[], subject="s", body="b")

    def test_from_json(self):
        request = SendMessageRequest.model_validate(
            {
                "to": ["a@x.com"],
                "subject": "s",
                "body": "<p>b</p>",
                "attachments": [{"filename": "f.txt", "content": "aGk=", "mime_type": "text/plain"}],
            }
        )
        assert request.attachments[0].content == b"hi"
        assert request.cc is None


class TestListQuery:
    def test_page_defaults_to_one(self):
        assert ListQuery().page == 1
        assert ListQuery(page_number=4).page == 4

    def test_labels_split(self):
        assert ListQuery(label_ids="INBOX, UNREAD,,").labels() == ["INBOX", "UNREAD"]
        assert ListQuery().labels() == []

    @pytest.mark.parametrize("field,value", [("max_results", 0), ("max_results", 501), ("page_number", 0)])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            ListQuery(**{field: value})


class TestWireAliases:
    def test_summary_serializes_sender_as_from(self):
        summary = MessageSummary(id="m1", thread_id="t1", sender="Alice")
        dumped = summary.model_dump(by_alias=True)
        assert dumped["from"] == "Alice"
        assert "sender" not in dumped

    def test_detail_accepts_aliases(self):
        detail = MessageDetail.model_validate({"id": "m1", "from": "a@x.com", "to": "b@x.com"})
        assert detail.sender == "a@x.com"
        assert detail.recipient == "b@x.com"


class TestProviderErrors:
    def test_upstream_statuses(self):
        assert UpstreamError(EmailProvider.GMAIL, 400).status_code == 400
        assert UpstreamError(EmailProvider.GMAIL, 422).status_code == 400
        assert UpstreamError(EmailProvider.GMAIL, 500).status_code == 502
        assert MessageNotFoundError(EmailProvider.OUTLOOK, 404).status_code == 404

    def test_messages_name_the_provider(self):
        assert CredentialRejectedError(EmailProvider.OUTLOOK).public_message == "Invalid or expired Microsoft token"
        assert UpstreamError(EmailProvider.OUTLOOK, 500, "boom").public_message == "Outlook API returned an error"
        assert "boom" in str(UpstreamError(EmailProvider.OUTLOOK, 500, "boom"))
        assert UpstreamUnreachableError(EmailProvider.POSTMARK, "timeout").public_message == (
            "Failed to reach Postmark API"
        )

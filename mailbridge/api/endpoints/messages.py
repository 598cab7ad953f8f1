"""
mailbridge.api.endpoints.messages - Message Endpoints

List, read and send messages, and modify their labels, through whichever
provider the caller selects with ``?provider=``.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query

from mailbridge.api.deps import CurrentMail
from mailbridge.integrations.email import (
    BatchModifyRequest,
    ListQuery,
    MessageDetail,
    MessagePage,
    SendMessageRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=MessagePage, response_model_by_alias=True)
async def list_messages(
    mail: CurrentMail,
    query: Annotated[ListQuery, Query()],
) -> MessagePage:
    """
    List one page of message summaries.

    Pages beyond the first are reached either with ``page_token`` or with
    ``page_number`` after visiting the preceding pages in order.
    """
    return await mail.gateway.list_messages(mail.provider, mail.credential, query, company=mail.company)


@router.post("/send")
async def send_message(mail: CurrentMail, request: SendMessageRequest) -> dict[str, Any]:
    """Send a message (attachments carry base64 content)."""
    return await mail.gateway.send(mail.provider, mail.credential, request, company=mail.company)


@router.post("/batchModify")
async def batch_modify_labels(mail: CurrentMail, request: BatchModifyRequest) -> dict[str, str]:
    """Add and remove labels on a set of messages."""
    await mail.gateway.batch_modify_labels(mail.provider, mail.credential, request, company=mail.company)
    return {"status": "ok"}


@router.get("/{message_id}", response_model=MessageDetail, response_model_by_alias=True)
async def get_message(mail: CurrentMail, message_id: str) -> MessageDetail:
    """Fetch one message with decoded bodies and attachment summaries."""
    return await mail.gateway.get_message(mail.provider, mail.credential, message_id, company=mail.company)

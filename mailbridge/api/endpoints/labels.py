"""
mailbridge.api.endpoints.labels - Label Endpoints

Labels for Gmail, mail folders for Outlook, nothing for Postmark.
"""

from fastapi import APIRouter

from mailbridge.api.deps import CurrentMail
from mailbridge.integrations.email import Label

router = APIRouter()


@router.get("", response_model=list[Label])
async def list_labels(mail: CurrentMail) -> list[Label]:
    return await mail.gateway.list_labels(mail.provider, mail.credential, company=mail.company)

"""
mailbridge.api.endpoints.threads - Thread Endpoints
"""

from fastapi import APIRouter

from mailbridge.api.deps import CurrentMail
from mailbridge.integrations.email import ThreadView

router = APIRouter()


@router.get("/{thread_id}", response_model=ThreadView, response_model_by_alias=True)
async def get_thread(mail: CurrentMail, thread_id: str) -> ThreadView:
    """Fetch every message in a conversation, oldest first."""
    return await mail.gateway.get_thread(mail.provider, mail.credential, thread_id, company=mail.company)

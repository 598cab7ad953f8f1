"""
mailbridge.api.endpoints.profile - Account Profile Endpoint
"""

from fastapi import APIRouter

from mailbridge.api.deps import CurrentMail
from mailbridge.integrations.email import UserProfile

router = APIRouter()


@router.get("", response_model=UserProfile)
async def get_profile(mail: CurrentMail) -> UserProfile:
    """Return the account identity behind the caller's credential."""
    return await mail.gateway.get_profile(mail.provider, mail.credential, company=mail.company)

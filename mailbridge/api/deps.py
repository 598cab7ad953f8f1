"""
mailbridge.api.deps - FastAPI Dependencies

Provides reusable dependencies for API endpoints:
- get_gateway: Mail gateway bound to the shared upstream client
- get_credential: Caller's provider token from request headers
- get_mail_context: Gateway, credential and provider selection in one object
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from mailbridge.services import MailGateway

logger = logging.getLogger(__name__)

# Header accepted from legacy Gmail callers when Authorization is absent
LEGACY_TOKEN_HEADER = "x-google-token"


def get_gateway(request: Request) -> MailGateway:
    """
    Get the mail gateway from app state.

    Raises:
        HTTPException: If the application has not started up
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        logger.error("Mail gateway not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Mail gateway not available",
        )
    return gateway


def extract_credential(authorization: str | None, legacy_token: str | None = None) -> str | None:
    """
    Pull the provider token out of the request headers.

    ``Authorization: Bearer <token>`` wins; ``x-google-token`` is the fallback.
    Blank values count as absent.
    """
    if authorization:
        token = authorization.strip()
        scheme, _, rest = token.partition(" ")
        if scheme.lower() == "bearer":
            token = rest.strip()
        if token:
            return token
    if legacy_token and legacy_token.strip():
        return legacy_token.strip()
    return None


def get_credential(request: Request) -> str | None:
    return extract_credential(
        request.headers.get("authorization"),
        request.headers.get(LEGACY_TOKEN_HEADER),
    )


Gateway = Annotated[MailGateway, Depends(get_gateway)]
Credential = Annotated[str | None, Depends(get_credential)]


class MailContext:
    """
    Per-request provider selection.

    Attributes:
        gateway: Mail gateway facade
        credential: Caller's provider token (None when not sent)
        provider: Requested provider name (None selects Gmail)
        company: Company display name used by the transactional provider
    """

    def __init__(
        self,
        gateway: MailGateway,
        credential: str | None,
        provider: str | None,
        company: str | None,
    ) -> None:
        self.gateway = gateway
        self.credential = credential
        self.provider = provider
        self.company = company


def get_mail_context(
    gateway: Gateway,
    credential: Credential,
    provider: Annotated[str | None, Query(description="gmail (default), outlook/microsoft or postmark")] = None,
    company: Annotated[str | None, Query(description="Company name for Postmark sender derivation")] = None,
) -> MailContext:
    return MailContext(gateway, credential, provider, company)


CurrentMail = Annotated[MailContext, Depends(get_mail_context)]

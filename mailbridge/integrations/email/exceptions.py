"""
mailbridge.integrations.email.exceptions - Provider failure taxonomy

Every failure carries the provider that produced it so the API layer can
render provider-accurate diagnostics (a rejected Outlook token must not be
reported as a Gmail problem).

Example:
    >>> try:
    ...     await adapter.get_message(token, message_id)
    ... except CredentialRejectedError as e:
    ...     logger.warning(f"{e.provider} rejected the token")
"""

from mailbridge.integrations.email.types import EmailProvider

_DISPLAY_NAMES = {
    EmailProvider.GMAIL: "Gmail",
    EmailProvider.OUTLOOK: "Outlook",
    EmailProvider.POSTMARK: "Postmark",
}

_TOKEN_OWNERS = {
    EmailProvider.GMAIL: "Google",
    EmailProvider.OUTLOOK: "Microsoft",
    EmailProvider.POSTMARK: "Postmark",
}


def provider_display_name(provider: EmailProvider | None) -> str:
    if provider is None:
        return "Email provider"
    return _DISPLAY_NAMES.get(provider, str(provider))


class ProviderError(Exception):
    """Base exception for all provider failures.

    Attributes:
        provider: Provider that produced the failure (None before selection)
        status_code: HTTP status the API layer renders
        public_message: Short message safe to show to callers
    """

    status_code = 500

    def __init__(self, provider: EmailProvider | None, message: str) -> None:
        self.provider = provider
        super().__init__(message)

    @property
    def public_message(self) -> str:
        return str(self)


class CredentialRejectedError(ProviderError):
    """Raised when the upstream answers 401 for the caller's token."""

    status_code = 401

    def __init__(self, provider: EmailProvider, detail: str = "") -> None:
        self.detail = detail
        super().__init__(provider, f"Invalid or expired {_TOKEN_OWNERS[provider]} token")


class UpstreamError(ProviderError):
    """Raised for any other non-success upstream status.

    Client-class statuses render as 400, everything else as 502.
    """

    def __init__(self, provider: EmailProvider, upstream_status: int, detail: str = "") -> None:
        self.upstream_status = upstream_status
        self.detail = detail
        message = f"{provider_display_name(provider)} API returned an error (status {upstream_status})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(provider, message)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 400 if 400 <= self.upstream_status < 500 else 502

    @property
    def public_message(self) -> str:
        return f"{provider_display_name(self.provider)} API returned an error"


class MessageNotFoundError(UpstreamError):
    """Raised when the upstream answers 404 for a message or thread."""

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 404

    @property
    def public_message(self) -> str:
        return f"Not found in {provider_display_name(self.provider)}"


class UpstreamUnreachableError(ProviderError):
    """Raised when no response was received (connect error, timeout)."""

    status_code = 502

    def __init__(self, provider: EmailProvider, detail: str = "") -> None:
        self.detail = detail
        super().__init__(provider, f"Failed to reach {provider_display_name(provider)} API: {detail}")

    @property
    def public_message(self) -> str:
        return f"Failed to reach {provider_display_name(self.provider)} API"


class EnvelopeError(ProviderError):
    """Raised when a raw MIME envelope cannot be decoded or encoded.

    Distinct from upstream failures: the upstream answered, its payload was bad.
    """

    status_code = 502

    def __init__(self, message: str, provider: EmailProvider = EmailProvider.GMAIL) -> None:
        super().__init__(provider, message)


class UnsupportedOperationError(ProviderError):
    """Raised for a capability the provider intentionally does not offer."""

    status_code = 400

    def __init__(self, provider: EmailProvider, operation: str) -> None:
        self.operation = operation
        super().__init__(
            provider,
            f"{operation} not supported for {provider_display_name(provider)}",
        )


class InvalidRequestError(ProviderError):
    """Raised when caller input is rejected before any upstream call."""

    status_code = 400


class MissingCredentialError(InvalidRequestError):
    """Raised when the selected provider needs a credential and none was sent."""

    status_code = 401

    def __init__(self, provider: EmailProvider | None) -> None:
        super().__init__(provider, "Missing Authorization header")


class UnknownEmailProviderError(InvalidRequestError):
    """Raised when an unrecognized email provider is requested."""

    def __init__(self, provider: str) -> None:
        self.requested = provider
        super().__init__(
            None,
            f"Unknown email provider: {provider}. Use 'gmail', 'outlook', or 'postmark'",
        )

"""
Integration Adapter Layer

Provider-specific upstream adapters behind one canonical contract. The
gateway facade selects an adapter per request and calls it with the caller's
credential; adapters return canonical models or raise ProviderError.
"""

from mailbridge.integrations.email import EmailAdapter, ProviderError

__all__ = ["EmailAdapter", "ProviderError"]

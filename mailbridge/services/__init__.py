"""
mailbridge.services - Application Services

Composes the integration adapters into the canonical mail API.
"""

from mailbridge.services.mail_gateway import MailGateway

__all__ = ["MailGateway"]

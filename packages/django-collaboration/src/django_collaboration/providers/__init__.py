"""Email providers for collaboration notifications."""

from .base import BaseEmailProvider, EmailPayload, SendResult
from .console import ConsoleEmailProvider
from .django_mail import DjangoMailEmailProvider

__all__ = [
    "BaseEmailProvider",
    "ConsoleEmailProvider",
    "DjangoMailEmailProvider",
    "EmailPayload",
    "SendResult",
]

"""Base provider interface for outbound email."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmailPayload:
    """A fully rendered email, ready to hand to a provider."""

    to: str
    subject: str
    body_text: str
    body_html: str = ""
    from_address: str = ""


@dataclass
class SendResult:
    """Result of a send operation."""

    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, provider: str, message_id: str = "") -> "SendResult":
        return cls(success=True, provider=provider, message_id=message_id)

    @classmethod
    def fail(cls, provider: str, error: str) -> "SendResult":
        return cls(success=False, provider=provider, error=error)


class BaseEmailProvider(ABC):
    """Abstract base class for email providers.

    Providers are fire-and-forget sinks. They may either return a failed
    SendResult or raise; callers treat both as a failed delivery.
    """

    provider_name: str = "base"

    @abstractmethod
    def send(self, payload: EmailPayload) -> SendResult:
        """Send an email and return the result."""
        raise NotImplementedError

    def validate_recipient(self, address: str) -> bool:
        """Basic email validation."""
        return "@" in address and "." in address.split("@")[-1]

"""Console email provider for development."""

import logging
import uuid

from .base import BaseEmailProvider, EmailPayload, SendResult

logger = logging.getLogger(__name__)


class ConsoleEmailProvider(BaseEmailProvider):
    """Email provider that logs to console (for development).

    Does not actually send emails - just logs them for debugging.
    """

    provider_name = "console"

    def send(self, payload: EmailPayload) -> SendResult:
        fake_message_id = f"console-{uuid.uuid4().hex[:12]}"

        logger.info(
            "CONSOLE EMAIL (not actually sent) to=%s from=%s subject=%r\n%s",
            payload.to,
            payload.from_address,
            payload.subject,
            payload.body_text,
        )

        return SendResult.ok(provider=self.provider_name, message_id=fake_message_id)

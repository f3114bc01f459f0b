"""Email provider backed by Django's configured EMAIL_BACKEND."""

import logging

from django.core.mail import EmailMultiAlternatives

from .base import BaseEmailProvider, EmailPayload, SendResult

logger = logging.getLogger(__name__)


class DjangoMailEmailProvider(BaseEmailProvider):
    """Send through django.core.mail (SMTP, SES backend, locmem in tests)."""

    provider_name = "django_mail"

    def send(self, payload: EmailPayload) -> SendResult:
        email = EmailMultiAlternatives(
            subject=payload.subject,
            body=payload.body_text,
            from_email=payload.from_address or None,
            to=[payload.to],
        )
        if payload.body_html:
            email.attach_alternative(payload.body_html, "text/html")

        sent = email.send(fail_silently=False)
        if not sent:
            return SendResult.fail(self.provider_name, "Backend accepted no messages")
        logger.debug("Sent email to %s via Django mail backend", payload.to)
        return SendResult.ok(provider=self.provider_name)

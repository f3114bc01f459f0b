"""Quick-reply message templates.

Templates belong to one user. Every operation takes the owner's id and
treats another user's template as missing.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import models, transaction

from ..exceptions import TemplateNotFound
from ..models import Message, MessageTemplate
from .messages import send_message

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "content", "category")


def _clean_text(value: str, field_name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"Template {field_name} must not be blank")
    return value


def get_template(template_id, user_id) -> MessageTemplate:
    try:
        return MessageTemplate.objects.get(pk=template_id, user_id=user_id)
    except (MessageTemplate.DoesNotExist, ValidationError):
        raise TemplateNotFound(template_id)


def create_template(user_id, title: str, content: str, category: str = "") -> MessageTemplate:
    """Save a new template for a user.

    Raises:
        ValueError: Blank title or content
    """
    return MessageTemplate.objects.create(
        user_id=user_id,
        title=_clean_text(title, "title"),
        content=_clean_text(content, "content"),
        category=(category or "").strip(),
    )


def list_templates(user_id, category: Optional[str] = None) -> models.QuerySet:
    """A user's templates, most used first."""
    queryset = MessageTemplate.objects.filter(user_id=user_id)
    if category is not None:
        queryset = queryset.filter(category=category)
    return queryset.order_by("-usage_count", "title")


def update_template(template_id, user_id, **changes) -> MessageTemplate:
    """Partial update of title, content or category."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update template fields: {', '.join(sorted(unknown))}")

    template = get_template(template_id, user_id)
    for field_name, value in changes.items():
        if field_name == "category":
            value = (value or "").strip()
        else:
            value = _clean_text(value, field_name)
        setattr(template, field_name, value)
    template.save(update_fields=[*changes, "updated_at"])
    return template


def delete_template(template_id, user_id) -> None:
    get_template(template_id, user_id).delete()


def use_template(template_id, user_id) -> MessageTemplate:
    """Count one use of a template and return it refreshed."""
    template = get_template(template_id, user_id)
    MessageTemplate.objects.filter(pk=template.pk).update(
        usage_count=models.F("usage_count") + 1
    )
    template.refresh_from_db(fields=["usage_count"])
    return template


@transaction.atomic
def send_from_template(template_id, conversation_id, sender_id, **kwargs) -> Message:
    """Send a template's content as a message and count the use.

    Extra keyword arguments are passed on to ``send_message``.
    """
    template = get_template(template_id, sender_id)
    message = send_message(conversation_id, sender_id, template.content, **kwargs)
    use_template(template.pk, sender_id)

    logger.debug("Message %s sent from template %s", message.pk, template.pk)
    return message

"""Configuration helpers for django-collaboration.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    COLLABORATION_EMAIL_PROVIDER = "django_collaboration.providers.DjangoMailEmailProvider"
    COLLABORATION_RATE_LIMITS = {"send_message": (60, 30)}
"""

from datetime import timedelta
from functools import lru_cache
from importlib import import_module

from django.conf import settings


DEFAULT_EMAIL_PROVIDER = "django_collaboration.providers.ConsoleEmailProvider"

# endpoint -> (window_seconds, max_requests)
DEFAULT_RATE_LIMITS = {
    "send_message": (60, 60),
    "create_conversation": (60 * 60, 10),
    "file_upload": (60 * 60, 20),
    "create_meeting": (60 * 60, 20),
    "search": (60, 100),
    "general": (60, 120),
}


def get_setting(name: str, default=None):
    """Get a setting with COLLABORATION_ prefix."""
    return getattr(settings, f"COLLABORATION_{name}", default)


def email_notifications_enabled() -> bool:
    return bool(get_setting("EMAIL_NOTIFICATIONS", True))


def get_from_email() -> str:
    return get_setting(
        "DEFAULT_FROM_EMAIL",
        getattr(settings, "DEFAULT_FROM_EMAIL", None) or "noreply@localhost",
    )


def get_rate_limit_policy(endpoint: str) -> tuple[timedelta, int]:
    """Return (window, ceiling) for an endpoint.

    Unknown endpoints fall back to the "general" policy.
    """
    policies = {**DEFAULT_RATE_LIMITS, **get_setting("RATE_LIMITS", {})}
    window_seconds, max_requests = policies.get(endpoint, policies["general"])
    return timedelta(seconds=window_seconds), max_requests


@lru_cache(maxsize=16)
def load_email_provider(dotted_path: str):
    """Import and instantiate an email provider from dotted path."""
    from .providers.base import BaseEmailProvider

    try:
        module_path, class_name = dotted_path.rsplit(".", 1)
    except ValueError:
        raise ImportError(f"Invalid provider path '{dotted_path}'")

    provider_class = getattr(import_module(module_path), class_name)
    if not isinstance(provider_class, type) or not issubclass(provider_class, BaseEmailProvider):
        raise ImportError(f"'{class_name}' must be a subclass of BaseEmailProvider")

    return provider_class()


def get_email_provider():
    """Return the configured email provider instance."""
    return load_email_provider(get_setting("EMAIL_PROVIDER", DEFAULT_EMAIL_PROVIDER))


def clear_provider_cache():
    """Clear the provider loading cache. Useful for testing."""
    load_email_provider.cache_clear()

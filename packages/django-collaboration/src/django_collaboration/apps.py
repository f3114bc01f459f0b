from django.apps import AppConfig


class DjangoCollaborationConfig(AppConfig):
    name = "django_collaboration"
    verbose_name = "Collaboration"
    default_auto_field = "django.db.models.BigAutoField"

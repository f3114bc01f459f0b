"""URL configuration for django-collaboration.

Example usage in project urls.py:

    from django.urls import include, path

    urlpatterns = [
        path("api/collaboration/", include("django_collaboration.urls")),
    ]
"""

from django.urls import path

from .views import (
    ConversationListAPIView,
    FileVersionAPIView,
    MeetingCreateAPIView,
    MessageListAPIView,
    MessageReadAPIView,
    PendingRemindersAPIView,
)

app_name = "django_collaboration"

urlpatterns = [
    path("conversations/", ConversationListAPIView.as_view(), name="conversation-list"),
    path(
        "conversations/<uuid:conversation_id>/messages/",
        MessageListAPIView.as_view(),
        name="message-list",
    ),
    path("messages/<uuid:message_id>/read/", MessageReadAPIView.as_view(), name="message-read"),
    path("files/<uuid:file_id>/versions/", FileVersionAPIView.as_view(), name="file-versions"),
    path("meetings/", MeetingCreateAPIView.as_view(), name="meeting-create"),
    path("reminders/pending/", PendingRemindersAPIView.as_view(), name="pending-reminders"),
]

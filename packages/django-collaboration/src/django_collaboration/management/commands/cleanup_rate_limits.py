"""
Management command to purge expired rate limit windows.
"""

from django.core.management.base import BaseCommand

from django_collaboration.services import cleanup_expired


class Command(BaseCommand):
    help = "Delete rate limit windows that have expired"

    def handle(self, *args, **options):
        deleted = cleanup_expired()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired rate limit windows"))

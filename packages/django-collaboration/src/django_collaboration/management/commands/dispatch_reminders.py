"""
Management command to deliver due meeting reminders.

Runs a single dispatch pass. Schedule it from cron or a worker beat, e.g.
every minute:

    python manage.py dispatch_reminders
"""

import json

from django.core.management.base import BaseCommand

from django_collaboration.services import dispatch_pending_reminders


class Command(BaseCommand):
    help = "Send every meeting reminder that is due and not yet sent"

    def add_arguments(self, parser):
        parser.add_argument(
            "--format",
            choices=["text", "json"],
            default="text",
            help="Output format (default: text)",
        )

    def handle(self, *args, **options):
        report = dispatch_pending_reminders()

        if options["format"] == "json":
            self.stdout.write(json.dumps({
                "sent": len(report.sent),
                "failed": len(report.failed),
                "skipped": len(report.skipped),
                "failed_ids": [str(pk) for pk in report.failed],
            }))
            return

        self.stdout.write(f"Reminders sent: {len(report.sent)}")
        if report.skipped:
            self.stdout.write(f"Skipped (locked elsewhere): {len(report.skipped)}")
        if report.failed:
            self.stdout.write(self.style.WARNING(f"Failed: {len(report.failed)}"))
            for pk in report.failed:
                self.stdout.write(self.style.WARNING(f"  FAILED: {pk}"))
        else:
            self.stdout.write(self.style.SUCCESS("All due reminders delivered"))

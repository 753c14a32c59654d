from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.applications.services import ApplicationWorkflow
from apps.orders.services import find_orphaned_applications


class Command(BaseCommand):
    help = "List applications that no order owns, optionally deleting them."

    def add_arguments(self, parser):
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete the orphaned applications instead of only listing them.",
        )

    def handle(self, *args, **options):
        orphans = find_orphaned_applications()
        if not orphans:
            self.stdout.write(self.style.SUCCESS("No orphaned applications."))
            return

        workflow = ApplicationWorkflow()
        for application in orphans:
            line = (
                f"#{application.pk} {application.get_application_type_display()} "
                f"({application.get_status_display()}) by user {application.created_by_user_id}"
            )
            if options["delete"]:
                workflow.delete(application.pk)
                line = f"Deleted {line}"
            self.stdout.write(line)

        verb = "Deleted" if options["delete"] else "Found"
        self.stdout.write(self.style.SUCCESS(f"{verb} {len(orphans)} orphaned application(s)."))

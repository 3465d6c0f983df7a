from django.core.management.base import BaseCommand, CommandError

from docstore.exceptions import DocumentStoreError
from tracking.services.tracker import get_tracker


class Command(BaseCommand):
    help = "Register device tags under a department (created on first use)"

    def add_arguments(self, parser):
        parser.add_argument("department", help="Department display name")
        parser.add_argument("tags", nargs="+", help="Device tags, comma separated values are split")

    def handle(self, *args, **options):
        department = options["department"].strip()
        if not department:
            raise CommandError("department must not be blank")

        tags = [tag for value in options["tags"] for tag in value.split(",")]
        try:
            entry = get_tracker().registry.add_tags(department, tags)
        except DocumentStoreError as exc:
            raise CommandError(f"Unable to update the registry: {exc}") from exc

        self.stdout.write(
            self.style.SUCCESS(f"{entry.name}: {len(entry.tags)} tags registered ({', '.join(sorted(entry.tags))})")
        )

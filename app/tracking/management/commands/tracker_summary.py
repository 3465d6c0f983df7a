from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from tracking.exceptions import TrackerError
from tracking.services.history import LogFilter
from tracking.services.tracker import get_tracker


def _date_option(options: dict, name: str):
    value = (options.get(name) or "").strip()
    if not value:
        return None
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise CommandError(f"--{name} must be a date in YYYY-MM-DD format")
    return parsed


class Command(BaseCommand):
    help = "Print check-in/check-out totals per department"

    def add_arguments(self, parser):
        parser.add_argument("--start", help="First day included (YYYY-MM-DD)")
        parser.add_argument("--end", help="Last day included (YYYY-MM-DD)")
        parser.add_argument("--days", action="store_true", help="Also print the per-day buckets")

    def handle(self, *args, **options):
        log_filter = LogFilter(start=_date_option(options, "start"), end=_date_option(options, "end"))
        if log_filter.start and log_filter.end and log_filter.start > log_filter.end:
            raise CommandError("--end must not be before --start")

        try:
            summaries = get_tracker().department_summary(log_filter)
        except TrackerError as exc:
            raise CommandError(exc.message) from exc

        if not summaries:
            self.stdout.write("No departments registered and no events recorded")
            return

        for summary in summaries:
            self.stdout.write(
                f"{summary.department}: tags={summary.tag_count} in={summary.in_count} "
                f"out={summary.out_count} total={summary.total}"
            )
            if options["days"]:
                active = [
                    f"{index + 1}:{bucket['in']}/{bucket['out']}"
                    for index, bucket in enumerate(summary.days)
                    if bucket["in"] or bucket["out"]
                ]
                self.stdout.write("  " + (" ".join(active) or "-"))

        self.stdout.write(self.style.SUCCESS(f"Summarized {len(summaries)} departments"))

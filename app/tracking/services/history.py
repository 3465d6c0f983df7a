from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from django.utils import timezone
from django.utils.translation import gettext as _

from docstore.client import DocumentStoreClient
from docstore.exceptions import DocumentStoreError
from registry.validation import unspecified_department
from tracking.exceptions import StoreError
from tracking.records import EVENTS_COLLECTION, Event, Status
from tracking.serializers import decode_events

logger = logging.getLogger(__name__)

DAYS_IN_SUMMARY = 31


@dataclass(frozen=True)
class LogFilter:
    employee: str = ""
    department: str = ""
    status: str = ""
    start: date | None = None
    end: date | None = None
    order: str = "desc"


@dataclass
class DepartmentSummary:
    department: str
    tag_count: int = 0
    in_count: int = 0
    out_count: int = 0
    days: list[dict[str, int]] = field(default_factory=lambda: [{"in": 0, "out": 0} for _ in range(DAYS_IN_SUMMARY)])

    @property
    def total(self) -> int:
        return self.in_count + self.out_count

    def add(self, event: Event) -> None:
        bucket = "in" if event.status == Status.CHECKED_IN else "out"
        if bucket == "in":
            self.in_count += 1
        else:
            self.out_count += 1
        if event.timestamp is not None:
            day = timezone.localtime(event.timestamp).day
            self.days[day - 1][bucket] += 1


def _matches(event: Event, log_filter: LogFilter) -> bool:
    if log_filter.start or log_filter.end:
        if event.timestamp is None:
            return False
        local_date = timezone.localtime(event.timestamp).date()
        if log_filter.start and local_date < log_filter.start:
            return False
        if log_filter.end and local_date > log_filter.end:
            return False
    if log_filter.employee and log_filter.employee not in event.employee_id:
        return False
    if log_filter.department and event.department != log_filter.department:
        return False
    if log_filter.status and event.status != log_filter.status:
        return False
    return True


def list_logs(client: DocumentStoreClient, log_filter: LogFilter | None = None) -> list[Event]:
    log_filter = log_filter or LogFilter()
    descending = log_filter.order != "asc"

    events = decode_events(client.list_entries(EVENTS_COLLECTION, descending=descending))
    matched = [event for event in events if _matches(event, log_filter)]

    dated = [event for event in matched if event.timestamp is not None]
    dated.sort(key=lambda event: event.timestamp, reverse=descending)
    return dated + [event for event in matched if event.timestamp is None]


def department_log_ids(events: list[Event], departments: list[str]) -> list[str]:
    # Blank departments match the unspecified department, as in the summary.
    selected = {name.strip() for name in departments}
    return [event.id for event in events if (event.department or unspecified_department()) in selected]


def delete_logs(client: DocumentStoreClient, ids: list[str]) -> int:
    try:
        deleted = client.delete_many(EVENTS_COLLECTION, list(ids))
    except DocumentStoreError as exc:
        logger.exception("Unable to delete events", extra={"count": len(ids)})
        raise StoreError(_("Could not delete the selected entries.")) from exc
    logger.info("Events deleted", extra={"requested": len(ids), "deleted": deleted})
    return deleted


def department_summary(events: list[Event], tag_counts: dict[str, int]) -> list[DepartmentSummary]:
    """Per-department check-in/check-out totals with one bucket per day of month.

    Every registered department is listed even without events; departments
    only seen in the log are appended with a tag count of zero.
    """
    summaries = {name: DepartmentSummary(department=name, tag_count=count) for name, count in tag_counts.items()}
    for event in events:
        name = event.department or unspecified_department()
        if name not in summaries:
            summaries[name] = DepartmentSummary(department=name)
        summaries[name].add(event)

    return sorted(summaries.values(), key=lambda summary: (-summary.total, summary.department))

from __future__ import annotations

import logging

from django.utils.translation import gettext as _

from docstore.client import DocumentStoreClient
from docstore.exceptions import DocumentStoreError
from registry.cache import TagCache
from registry.store import RegistryStore
from registry.validation import TagValidator
from tracking.exceptions import StoreError
from tracking.records import Event, Status
from tracking.services.history import (
    DepartmentSummary,
    LogFilter,
    delete_logs,
    department_log_ids,
    department_summary,
    list_logs,
)
from tracking.services.recent import RecentSubmissions
from tracking.services.recorder import LogRecorder
from tracking.services.status import StatusResolver, default_strategies

logger = logging.getLogger(__name__)


class Tracker:
    """Entry point used by the HTTP views and management commands."""

    def __init__(self, client: DocumentStoreClient | None = None, tag_cache=None, recent: RecentSubmissions | None = None):
        self.client = client or DocumentStoreClient()
        self.registry = RegistryStore(self.client, cache=tag_cache if tag_cache is not None else TagCache())
        self.validator = TagValidator(self.registry)
        self.recent = recent or RecentSubmissions()
        self.resolver = StatusResolver(default_strategies(self.client, self.recent))
        self.recorder = LogRecorder(self.client, self.validator, self.resolver, recent=self.recent)

    def add_log(self, employee_id: str, tag: str, status: str, department: str | None = None) -> Event:
        return self.recorder.add_log(employee_id, tag, status, department=department)

    def get_current_status(self, tag: str) -> Status:
        return self.resolver.get_current_status(tag)

    def is_valid_tag(self, tag: str, department: str) -> bool:
        return self.validator.is_valid_tag(tag, department)

    def find_department_for_tag(self, tag: str) -> str:
        return self.validator.find_department_for_tag(tag)

    def resolve_department(self, tag: str, department: str | None = None) -> str | None:
        return self.validator.resolve_department(tag, department)

    def get_tags_by_department(self, department: str) -> list[str]:
        try:
            return self.registry.get_tags_by_department(department)
        except DocumentStoreError as exc:
            raise StoreError(_("Could not load the tags of this department."), code="load_failed") from exc

    def get_departments_from_db(self) -> list[str]:
        try:
            return self.registry.get_departments()
        except DocumentStoreError:
            logger.warning("Unable to list departments", exc_info=True)
            return []

    def list_logs(self, log_filter: LogFilter | None = None) -> list[Event]:
        try:
            return list_logs(self.client, log_filter)
        except DocumentStoreError as exc:
            logger.exception("Unable to load event history")
            raise StoreError(_("Could not load the history."), code="load_failed") from exc

    def delete_logs(self, ids: list[str]) -> int:
        return delete_logs(self.client, ids)

    def delete_department_logs(self, departments: list[str], log_filter: LogFilter | None = None) -> int:
        ids = department_log_ids(self.list_logs(log_filter), departments)
        return self.delete_logs(ids) if ids else 0

    def department_summary(self, log_filter: LogFilter | None = None) -> list[DepartmentSummary]:
        events = self.list_logs(log_filter)
        try:
            entries = self.registry.snapshot().values()
        except DocumentStoreError as exc:
            raise StoreError(_("Could not load the department registry."), code="load_failed") from exc
        return department_summary(events, {entry.name: len(entry.tags) for entry in entries})


def get_tracker() -> Tracker:
    return Tracker()

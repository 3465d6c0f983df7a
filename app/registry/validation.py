from __future__ import annotations

import logging

from django.conf import settings

from registry.store import RegistryStore

logger = logging.getLogger(__name__)


def unspecified_department() -> str:
    return getattr(settings, "TRACKER_UNSPECIFIED_DEPARTMENT", "unspecified")


class TagValidator:
    """Answers tag/department membership questions from the registry.

    Lookup failures never reach the caller: an unreadable registry rejects
    the tag instead of failing the submission.
    """

    def __init__(self, registry: RegistryStore):
        self.registry = registry

    def is_valid_tag(self, tag: str, department: str) -> bool:
        return self.registered_department(tag, department) is not None

    def registered_department(self, tag: str, department: str) -> str | None:
        """Registry display name of ``department`` when it lists ``tag``."""
        tag = (tag or "").strip()
        if not tag or not (department or "").strip():
            return None

        try:
            entry = self.registry.get_entry(department)
        except Exception:  # noqa: BLE001
            logger.warning("Registry lookup failed", exc_info=True, extra={"tag": tag, "department": department})
            return None
        if entry is None or tag not in entry.tags:
            return None
        return entry.name

    def department_for_tag(self, tag: str) -> str | None:
        tag = (tag or "").strip()
        if not tag:
            return None

        try:
            entries = sorted(self.registry.snapshot().values(), key=lambda entry: entry.name)
        except Exception:  # noqa: BLE001
            logger.warning("Registry scan failed", exc_info=True, extra={"tag": tag})
            return None

        for entry in entries:
            if tag in entry.tags:
                return entry.name
        return None

    def resolve_department(self, tag: str, department: str | None = None) -> str | None:
        """Registry display name for ``tag``, checked against ``department`` when given."""
        if (department or "").strip():
            return self.registered_department(tag, department)
        return self.department_for_tag(tag)

    def find_department_for_tag(self, tag: str) -> str:
        department = self.department_for_tag(tag)
        return unspecified_department() if department is None else department

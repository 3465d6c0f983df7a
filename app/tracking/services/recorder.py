from __future__ import annotations

import logging

from django.utils import timezone
from django.utils.translation import gettext as _

from docstore.client import SERVER_TIMESTAMP, DocumentStoreClient, Guard
from docstore.exceptions import DocumentStoreError, WriteConflictError
from registry.validation import TagValidator
from tracking.exceptions import ConcurrentTransitionError, StoreError, TagValidationError, TransitionError
from tracking.records import EVENT_STATUSES, EVENTS_COLLECTION, Event, Status
from tracking.serializers import decode_event, format_local
from tracking.services.recent import RecentSubmissions
from tracking.services.status import StatusResolver
from tracking.services.transitions import check_transition, same_status_reason

logger = logging.getLogger(__name__)


class LogRecorder:
    """Validates a submission and appends it to the event log.

    Current status is re-derived from history on every call. The append is
    conditional on the newest event id observed while validating, so two
    submissions racing on the same tag cannot both be written.
    """

    def __init__(
        self,
        client: DocumentStoreClient,
        validator: TagValidator,
        resolver: StatusResolver,
        recent: RecentSubmissions | None = None,
    ):
        self.client = client
        self.validator = validator
        self.resolver = resolver
        self.recent = recent

    def _resolve_department(self, tag: str, department: str | None) -> str:
        # Events carry the registry display name, whatever spelling was submitted.
        resolved = self.validator.resolve_department(tag, department)
        if resolved is None:
            raise TagValidationError(_("Tag %(tag)s was not found in the registry for this department.") % {"tag": tag})
        return resolved

    def add_log(self, employee_id: str, tag: str, status: str, department: str | None = None) -> Event:
        employee_id = (employee_id or "").strip()
        tag = (tag or "").strip()
        if not employee_id or not tag:
            raise TagValidationError(_("Please fill in both the employee ID and the tag."), code="invalid_input")
        if status not in EVENT_STATUSES:
            raise TagValidationError(_("Unknown status: %(status)s") % {"status": status}, code="invalid_input")
        status = Status(status)

        department = self._resolve_department(tag, department)

        observed = self.resolver.resolve(tag)
        decision = check_transition(observed.status, status)
        if not decision.allowed:
            logger.info("Transition rejected", extra={"tag": tag, "current": observed.status, "requested": status})
            raise TransitionError(decision.reason, code=decision.code, current_status=observed.status)

        # Second read: both reads must agree before the append.
        confirmed = self.resolver.resolve(tag)
        if confirmed.status == status:
            reason, code = same_status_reason(status)
            raise TransitionError(reason, code=code, current_status=confirmed.status)
        if confirmed.event_id != observed.event_id:
            raise ConcurrentTransitionError(
                _("The status of tag %(tag)s changed during this submission, please try again.") % {"tag": tag},
                current_status=confirmed.status,
            )

        date, time = format_local(timezone.now())
        record = {
            "employee_id": employee_id,
            "tag": tag,
            "department": department,
            "status": status.value,
            "timestamp": SERVER_TIMESTAMP,
            "date": date,
            "time": time,
        }

        try:
            stored = self.client.insert(EVENTS_COLLECTION, record, guard=Guard(field="tag", expected=observed.event_id))
        except WriteConflictError as exc:
            logger.info("Concurrent submission detected", extra={"tag": tag, "expected": observed.event_id})
            raise ConcurrentTransitionError(
                _("The status of tag %(tag)s changed during this submission, please try again.") % {"tag": tag},
                current_status=observed.status,
            ) from exc
        except DocumentStoreError as exc:
            logger.exception("Unable to save event", extra={"tag": tag, "status": status.value})
            raise StoreError(_("Could not save the record, please try again.")) from exc

        event = decode_event(stored)
        if event is None:
            raise StoreError(_("Could not save the record, please try again."))

        if self.recent is not None:
            try:
                self.recent.remember(event)
            except Exception:  # noqa: BLE001
                logger.warning("Unable to remember recent submission", exc_info=True, extra={"tag": tag})

        logger.info(
            "Event recorded",
            extra={"event_id": event.id, "tag": tag, "status": status.value, "department": department},
        )
        return event

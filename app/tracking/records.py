from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from django.db import models
from django.utils.translation import gettext_lazy as _

EVENTS_COLLECTION = "logs"


class Status(models.TextChoices):
    NONE = "none", _("No history")
    CHECKED_IN = "checked-in", _("Checked in")
    CHECKED_OUT = "checked-out", _("Checked out")


EVENT_STATUSES = (Status.CHECKED_IN, Status.CHECKED_OUT)
EVENT_STATUS_CHOICES = [(status.value, status.label) for status in EVENT_STATUSES]


@dataclass(frozen=True)
class Event:
    id: str
    employee_id: str
    tag: str
    department: str
    status: Status
    timestamp: datetime | None
    date: str
    time: str

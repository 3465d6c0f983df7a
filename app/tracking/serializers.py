from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import serializers

from docstore.client import StoredDocument
from tracking.records import EVENT_STATUS_CHOICES, Event, Status

logger = logging.getLogger(__name__)


def _as_aware(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, dt_timezone.utc)
    return dt


def format_local(dt: datetime) -> tuple[str, str]:
    local = timezone.localtime(dt)
    return (
        local.strftime(getattr(settings, "TRACKER_DATE_FORMAT", "%m/%d/%Y")),
        local.strftime(getattr(settings, "TRACKER_TIME_FORMAT", "%H:%M:%S")),
    )


class TimestampField(serializers.Field):
    """ISO-8601 timestamp that decodes to ``None`` when missing or unreadable."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_null", True)
        kwargs.setdefault("default", None)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, datetime):
            return _as_aware(data)
        if not isinstance(data, str):
            return None
        try:
            return _as_aware(parse_datetime(data.strip()))
        except ValueError:
            return None

    def to_representation(self, value):
        return value.isoformat() if value else None


class EventRecordSerializer(serializers.Serializer):
    employee_id = serializers.CharField(allow_blank=True, required=False, default="")
    tag = serializers.CharField()
    department = serializers.CharField(allow_blank=True, required=False, default="")
    status = serializers.ChoiceField(choices=EVENT_STATUS_CHOICES)
    timestamp = TimestampField()
    date = serializers.CharField(allow_blank=True, required=False, default="")
    time = serializers.CharField(allow_blank=True, required=False, default="")


class EventSerializer(EventRecordSerializer):
    id = serializers.CharField(read_only=True)


def decode_event(document: StoredDocument) -> Event | None:
    serializer = EventRecordSerializer(data=document.data)
    if not serializer.is_valid():
        logger.warning(
            "Skipping malformed event record",
            extra={"doc_id": document.id, "errors": serializer.errors},
        )
        return None

    data = serializer.validated_data
    date, time = data["date"], data["time"]
    if data["timestamp"] is not None and not (date and time):
        fallback_date, fallback_time = format_local(data["timestamp"])
        date, time = date or fallback_date, time or fallback_time

    return Event(
        id=document.id,
        employee_id=data["employee_id"],
        tag=data["tag"],
        department=data["department"],
        status=Status(data["status"]),
        timestamp=data["timestamp"],
        date=date,
        time=time,
    )


def decode_events(documents: list[StoredDocument]) -> list[Event]:
    events = []
    for document in documents:
        event = decode_event(document)
        if event is not None:
            events.append(event)
    return events


class AddLogSerializer(serializers.Serializer):
    employee_id = serializers.CharField(allow_blank=True, trim_whitespace=True)
    tag = serializers.CharField(allow_blank=True, trim_whitespace=True)
    status = serializers.ChoiceField(choices=EVENT_STATUS_CHOICES)
    department = serializers.CharField(allow_blank=True, required=False, default=None, allow_null=True)


class LogFilterSerializer(serializers.Serializer):
    employee = serializers.CharField(allow_blank=True, required=False, default="")
    department = serializers.CharField(allow_blank=True, required=False, default="")
    status = serializers.ChoiceField(choices=EVENT_STATUS_CHOICES, allow_blank=True, required=False, default="")
    start = serializers.DateField(required=False, default=None, allow_null=True)
    end = serializers.DateField(required=False, default=None, allow_null=True)
    order = serializers.ChoiceField(choices=["asc", "desc"], required=False, default="desc")

    def validate(self, attrs):
        if attrs["start"] and attrs["end"] and attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"end": "end must not be before start"})
        return attrs


class DeleteLogsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    departments = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    start = serializers.DateField(required=False, default=None, allow_null=True)
    end = serializers.DateField(required=False, default=None, allow_null=True)

    def validate(self, attrs):
        if not attrs["ids"] and not attrs["departments"]:
            raise serializers.ValidationError("Provide ids or departments to delete")
        if attrs["start"] and attrs["end"] and attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"end": "end must not be before start"})
        return attrs


class DepartmentSummarySerializer(serializers.Serializer):
    department = serializers.CharField()
    in_count = serializers.IntegerField()
    out_count = serializers.IntegerField()
    total = serializers.IntegerField()
    tag_count = serializers.IntegerField()
    days = serializers.ListField(child=serializers.DictField(child=serializers.IntegerField()))

from __future__ import annotations

import logging

from django.http import HttpRequest
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from registry.validation import unspecified_department
from tracking.exceptions import ConcurrentTransitionError, StoreError, TrackerError
from tracking.serializers import (
    AddLogSerializer,
    DeleteLogsSerializer,
    DepartmentSummarySerializer,
    EventSerializer,
    LogFilterSerializer,
)
from tracking.services.history import LogFilter
from tracking.services.tracker import get_tracker

logger = logging.getLogger(__name__)


def _error_response(exc: TrackerError) -> Response:
    if isinstance(exc, StoreError):
        http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ConcurrentTransitionError):
        http_status = status.HTTP_409_CONFLICT
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response({"detail": exc.message, "code": exc.code}, status=http_status)


def _invalid_input(errors) -> Response:
    return Response(
        {"detail": "Invalid input", "code": "invalid_input", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _log_filter(request: HttpRequest) -> tuple[LogFilter | None, Response | None]:
    serializer = LogFilterSerializer(data=request.query_params)
    if not serializer.is_valid():
        return None, _invalid_input(serializer.errors)
    return LogFilter(**serializer.validated_data), None


@api_view(["GET", "POST"])
def logs_api(request: HttpRequest) -> Response:
    tracker = get_tracker()

    if request.method == "POST":
        serializer = AddLogSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_input(serializer.errors)
        try:
            event = tracker.add_log(**serializer.validated_data)
        except TrackerError as exc:
            return _error_response(exc)
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)

    log_filter, error = _log_filter(request)
    if error is not None:
        return error
    try:
        events = tracker.list_logs(log_filter)
    except TrackerError as exc:
        return _error_response(exc)
    return Response({"count": len(events), "results": EventSerializer(events, many=True).data})


@api_view(["POST"])
def logs_delete_api(request: HttpRequest) -> Response:
    serializer = DeleteLogsSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer.errors)
    data = serializer.validated_data
    tracker = get_tracker()
    try:
        deleted = tracker.delete_logs(data["ids"]) if data["ids"] else 0
        if data["departments"]:
            log_filter = LogFilter(start=data["start"], end=data["end"])
            deleted += tracker.delete_department_logs(data["departments"], log_filter)
    except TrackerError as exc:
        return _error_response(exc)
    return Response({"deleted": deleted})


@api_view(["GET"])
def tag_status_api(request: HttpRequest, tag: str) -> Response:
    current = get_tracker().get_current_status(tag)
    return Response({"tag": tag.strip(), "status": current.value})


@api_view(["GET"])
def tag_validate_api(request: HttpRequest, tag: str) -> Response:
    department = (request.query_params.get("department") or "").strip()
    resolved = get_tracker().resolve_department(tag, department)
    if resolved is None:
        return Response({"tag": tag.strip(), "department": department or unspecified_department(), "valid": False})
    return Response({"tag": tag.strip(), "department": resolved, "valid": True})


@api_view(["GET"])
def departments_api(request: HttpRequest) -> Response:
    departments = get_tracker().get_departments_from_db()
    return Response({"count": len(departments), "results": departments})


@api_view(["GET"])
def department_tags_api(request: HttpRequest, department: str) -> Response:
    try:
        tags = get_tracker().get_tags_by_department(department)
    except TrackerError as exc:
        return _error_response(exc)
    return Response({"department": department, "count": len(tags), "results": tags})


@api_view(["GET"])
def summary_api(request: HttpRequest) -> Response:
    log_filter, error = _log_filter(request)
    if error is not None:
        return error
    try:
        summaries = get_tracker().department_summary(log_filter)
    except TrackerError as exc:
        return _error_response(exc)
    return Response({"count": len(summaries), "results": DepartmentSummarySerializer(summaries, many=True).data})

from datetime import date, datetime, timezone as dt_timezone
from io import StringIO
from unittest.mock import Mock, patch

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from docstore.exceptions import DocumentStoreError
from registry.cache import NullTagCache
from tracking.exceptions import ConcurrentTransitionError, StoreError, TagValidationError, TransitionError
from tracking.records import EVENTS_COLLECTION, Event, Status
from tracking.services.history import LogFilter, department_summary
from tracking.services.status import Resolution, StatusResolver, first_success
from tracking.services.tracker import Tracker, get_tracker
from tracking.services.transitions import check_transition


def _event(tag="ER-01", status_value=Status.CHECKED_IN, department="ER", timestamp=None, event_id="e1"):
    return Event(
        id=event_id,
        employee_id="E100",
        tag=tag,
        department=department,
        status=status_value,
        timestamp=timestamp,
        date="",
        time="",
    )


class TransitionTests(APITestCase):
    def test_transition_table(self):
        table = [
            (Status.NONE, Status.CHECKED_IN, True, ""),
            (Status.NONE, Status.CHECKED_OUT, True, ""),
            (Status.CHECKED_IN, Status.CHECKED_IN, False, "already_checked_in"),
            (Status.CHECKED_IN, Status.CHECKED_OUT, True, ""),
            (Status.CHECKED_OUT, Status.CHECKED_OUT, False, "already_checked_out"),
            (Status.CHECKED_OUT, Status.CHECKED_IN, True, ""),
        ]
        for current, requested, allowed, code in table:
            with self.subTest(current=current, requested=requested):
                decision = check_transition(current, requested)
                self.assertEqual(decision.allowed, allowed)
                self.assertEqual(decision.code, code)
                self.assertEqual(decision.same_status, not allowed)

    def test_same_status_reasons_are_distinct(self):
        checked_in = check_transition(Status.CHECKED_IN, Status.CHECKED_IN)
        checked_out = check_transition(Status.CHECKED_OUT, Status.CHECKED_OUT)

        self.assertIn("already checked in", checked_in.reason)
        self.assertIn("already checked out", checked_out.reason)

    def test_requesting_no_status_is_inconsistent(self):
        decision = check_transition(Status.CHECKED_IN, Status.NONE)

        self.assertFalse(decision.allowed)
        self.assertFalse(decision.same_status)
        self.assertEqual(decision.code, "inconsistent_status")


class StatusResolverTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.tracker = Tracker(tag_cache=NullTagCache())
        self.client_store = self.tracker.client

    def _insert(self, status_value, timestamp, tag="ER-01"):
        return self.client_store.insert(
            EVENTS_COLLECTION,
            {"employee_id": "E100", "tag": tag, "department": "ER", "status": status_value, "timestamp": timestamp},
        )

    def test_no_history_is_none(self):
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.NONE)

    def test_latest_timestamp_wins_over_insertion_order(self):
        newest = self._insert("checked-out", "2026-03-02T08:00:00+00:00")
        self._insert("checked-in", "2026-03-01T08:00:00+00:00")
        self._insert("checked-in", "2026-03-05T08:00:00+00:00", tag="ER-02")

        resolution = self.tracker.resolver.resolve("ER-01")

        self.assertEqual(resolution.status, Status.CHECKED_OUT)
        self.assertEqual(resolution.event_id, newest.id)
        self.assertEqual(resolution.source, "history_scan")

    def test_malformed_records_and_timestamps_are_skipped(self):
        self._insert("checked-out", "2026-03-01T08:00:00+00:00")
        self._insert("checked-in", "not-a-date")
        self._insert("checked-in", None)
        self.client_store.insert(EVENTS_COLLECTION, {"tag": "ER-01", "status": "lost", "timestamp": "2026-03-09T08:00:00Z"})

        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_OUT)

    def test_undated_history_resolves_to_none(self):
        self._insert("checked-in", "garbage")

        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.NONE)

    def test_first_success_uses_strategies_in_order(self):
        failing = Mock(**{"resolve.side_effect": DocumentStoreError("down")})
        failing.name = "failing"
        silent = Mock(**{"resolve.return_value": None})
        silent.name = "silent"
        answering = Mock(**{"resolve.return_value": Resolution(Status.CHECKED_IN, "e1", "answering")})
        answering.name = "answering"
        unused = Mock()
        unused.name = "unused"

        result = first_success([failing, silent, answering, unused], "ER-01")

        self.assertEqual(result.source, "answering")
        failing.resolve.assert_called_once_with("ER-01")
        silent.resolve.assert_called_once_with("ER-01")
        unused.resolve.assert_not_called()

    def test_all_strategies_failing_means_no_history(self):
        failing = Mock(**{"resolve.side_effect": RuntimeError("boom")})
        failing.name = "failing"

        resolution = StatusResolver([failing]).resolve("ER-01")

        self.assertEqual(resolution, Resolution(status=Status.NONE, source="default"))

    def test_history_scan_failure_falls_back_to_tag_query(self):
        self._insert("checked-in", "2026-03-01T08:00:00+00:00")

        with patch.object(self.client_store, "list_entries", side_effect=DocumentStoreError("down")):
            resolution = self.tracker.resolver.resolve("ER-01")

        self.assertEqual(resolution.status, Status.CHECKED_IN)
        self.assertEqual(resolution.source, "tag_query")

    def test_recent_submission_is_the_last_resort(self):
        self.tracker.recent.remember(_event(status_value=Status.CHECKED_OUT, event_id="recent-1"))

        with patch.object(self.client_store, "list_entries", side_effect=DocumentStoreError("down")), patch.object(
            self.client_store, "query_by_field", side_effect=DocumentStoreError("down")
        ):
            resolution = self.tracker.resolver.resolve("ER-01")

        self.assertEqual(resolution, Resolution(Status.CHECKED_OUT, "recent-1", "recent_submission"))


class LogRecorderTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.tracker = Tracker(tag_cache=NullTagCache())
        self.tracker.registry.add_tags("ER", ["ER-01", "ER-02"])
        self.tracker.registry.add_tags("OR", ["OR-01"])

    def _event_count(self):
        return len(self.tracker.client.list_entries(EVENTS_COLLECTION))

    def test_check_in_duplicate_check_out_and_unregistered_tag(self):
        event = self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")

        self.assertEqual(event.status, Status.CHECKED_IN)
        self.assertEqual(event.employee_id, "E100")
        self.assertEqual(event.department, "ER")
        self.assertTrue(event.id)
        self.assertIsNotNone(event.timestamp)
        self.assertTrue(event.date)
        self.assertTrue(event.time)
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_IN)

        with self.assertRaises(TransitionError) as duplicate:
            self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")
        self.assertEqual(duplicate.exception.code, "already_checked_in")

        checked_out = self.tracker.add_log("E100", "ER-01", "checked-out", department="ER")
        self.assertEqual(checked_out.status, Status.CHECKED_OUT)
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_OUT)

        with self.assertRaises(TagValidationError) as unknown:
            self.tracker.add_log("E100", "ER-99", "checked-in", department="ER")
        self.assertEqual(unknown.exception.code, "tag_not_found")
        self.assertEqual(self._event_count(), 2)

    def test_check_out_without_history_is_allowed_once(self):
        self.tracker.add_log("E100", "ER-02", "checked-out", department="ER")

        with self.assertRaises(TransitionError) as duplicate:
            self.tracker.add_log("E101", "ER-02", "checked-out", department="ER")

        self.assertEqual(duplicate.exception.code, "already_checked_out")
        self.assertEqual(duplicate.exception.current_status, Status.CHECKED_OUT)

    def test_valid_submissions_alternate(self):
        for first in (Status.CHECKED_IN, Status.CHECKED_OUT):
            tag = "ER-01" if first == Status.CHECKED_IN else "ER-02"
            expected = first
            for _ in range(4):
                with self.subTest(tag=tag, status=expected):
                    self.assertEqual(self.tracker.add_log("E100", tag, expected, department="ER").status, expected)
                    with self.assertRaises(TransitionError):
                        self.tracker.add_log("E100", tag, expected, department="ER")
                expected = Status.CHECKED_OUT if expected == Status.CHECKED_IN else Status.CHECKED_IN

    def test_tag_in_other_department_is_rejected(self):
        with self.assertRaises(TagValidationError):
            self.tracker.add_log("E100", "OR-01", "checked-in", department="ER")

    def test_department_is_resolved_from_tag_when_omitted(self):
        event = self.tracker.add_log("E100", " OR-01 ", "checked-in")

        self.assertEqual(event.department, "OR")
        self.assertEqual(event.tag, "OR-01")

        with self.assertRaises(TagValidationError) as unknown:
            self.tracker.add_log("E100", "XRAY-01", "checked-in")
        self.assertEqual(unknown.exception.code, "tag_not_found")

    def test_blank_fields_and_unknown_status_are_rejected(self):
        for employee_id, tag, status_value in [("", "ER-01", "checked-in"), ("E100", "  ", "checked-in"), ("E100", "ER-01", "lost")]:
            with self.subTest(employee_id=employee_id, tag=tag, status=status_value):
                with self.assertRaises(TagValidationError) as error:
                    self.tracker.add_log(employee_id, tag, status_value, department="ER")
                self.assertEqual(error.exception.code, "invalid_input")
        self.assertEqual(self._event_count(), 0)

    def test_store_failure_on_append_is_reported_and_nothing_is_written(self):
        with patch.object(self.tracker.client, "insert", side_effect=DocumentStoreError("disk full")):
            with self.assertRaises(StoreError) as error:
                self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")

        self.assertEqual(error.exception.code, "save_failed")
        self.assertEqual(self._event_count(), 0)
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.NONE)

    def test_stale_status_read_cannot_append(self):
        first = self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")
        stale = Resolution(Status.CHECKED_IN, first.id, "history_scan")

        # Another terminal checks the tag out after this one read its status.
        self.tracker.add_log("E200", "ER-01", "checked-out", department="ER")

        with patch.object(self.tracker.resolver, "resolve", return_value=stale):
            with self.assertRaises(ConcurrentTransitionError):
                self.tracker.add_log("E100", "ER-01", "checked-out", department="ER")

        self.assertEqual(self._event_count(), 2)

    def test_status_reads_must_agree(self):
        reads = [Resolution(Status.CHECKED_IN, "a", "history_scan"), Resolution(Status.CHECKED_IN, "b", "history_scan")]

        with patch.object(self.tracker.resolver, "resolve", side_effect=reads):
            with self.assertRaises(ConcurrentTransitionError):
                self.tracker.add_log("E100", "ER-01", "checked-out", department="ER")

        self.assertEqual(self._event_count(), 0)

    def test_explicit_same_status_recheck(self):
        reads = [Resolution(Status.CHECKED_OUT, "a", "history_scan"), Resolution(Status.CHECKED_IN, "a", "history_scan")]

        with patch.object(self.tracker.resolver, "resolve", side_effect=reads):
            with self.assertRaises(TransitionError) as error:
                self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")

        self.assertEqual(error.exception.code, "already_checked_in")
        self.assertEqual(self._event_count(), 0)

    def test_recorded_event_is_remembered_for_fallback(self):
        event = self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")

        self.assertEqual(self.tracker.recent.lookup("ER-01"), {"event_id": event.id, "status": "checked-in"})

    def test_department_is_stored_under_its_registry_name(self):
        self.tracker.add_log("E100", "ER-01", "checked-in", department="er")
        self.tracker.add_log("E101", "ER-02", "checked-in", department="  Er ")

        events = self.tracker.list_logs(LogFilter(department="ER"))
        summaries = {summary.department: summary for summary in self.tracker.department_summary()}

        self.assertEqual([event.department for event in events], ["ER", "ER"])
        self.assertEqual(sorted(summaries), ["ER", "OR"])
        self.assertEqual((summaries["ER"].in_count, summaries["ER"].tag_count), (2, 2))

    def test_history_stored_out_of_timestamp_order_does_not_lock_the_tag(self):
        for status_value, timestamp in [("checked-in", "2025-02-01T08:00:00+00:00"), ("checked-out", "2025-01-01T08:00:00+00:00")]:
            self.tracker.client.insert(
                EVENTS_COLLECTION,
                {"employee_id": "E050", "tag": "ER-01", "department": "ER", "status": status_value, "timestamp": timestamp},
            )
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_IN)

        self.tracker.add_log("E100", "ER-01", "checked-out", department="ER")
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_OUT)
        self.tracker.add_log("E100", "ER-01", "checked-in", department="ER")
        self.assertEqual(self.tracker.get_current_status("ER-01"), Status.CHECKED_IN)

    def test_department_named_like_the_unspecified_placeholder_can_record(self):
        self.tracker.registry.add_tags("unspecified", ["SPARE-01"])

        explicit = self.tracker.add_log("E100", "SPARE-01", "checked-in", department="unspecified")
        resolved = self.tracker.add_log("E100", "SPARE-01", "checked-out")

        self.assertEqual((explicit.department, resolved.department), ("unspecified", "unspecified"))


@override_settings(TIME_ZONE="Asia/Bangkok")
class HistoryTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.tracker = Tracker(tag_cache=NullTagCache())
        self.tracker.registry.add_tags("ER", ["ER-01", "ER-02"])
        self.tracker.registry.add_tags("OR", ["OR-01"])
        self.tracker.registry.add_tags("Dental", [])
        self.ids = {}
        for key, employee_id, tag, department, status_value, timestamp in [
            ("a", "E100", "ER-01", "ER", "checked-in", "2026-03-01T02:00:00+00:00"),
            ("b", "E100", "ER-01", "ER", "checked-out", "2026-03-01T20:00:00+00:00"),
            ("c", "E200", "OR-01", "OR", "checked-in", "2026-03-03T03:00:00+00:00"),
            ("d", "E210", "ER-02", "", "checked-out", "2026-03-04T03:00:00+00:00"),
            ("e", "E300", "ER-02", "ER", "checked-in", None),
        ]:
            stored = self.tracker.client.insert(
                EVENTS_COLLECTION,
                {
                    "employee_id": employee_id,
                    "tag": tag,
                    "department": department,
                    "status": status_value,
                    "timestamp": timestamp,
                },
            )
            self.ids[key] = stored.id

    def _ids(self, events):
        lookup = {value: key for key, value in self.ids.items()}
        return [lookup[event.id] for event in events]

    def test_default_listing_is_newest_first_with_undated_last(self):
        self.assertEqual(self._ids(self.tracker.list_logs()), ["d", "c", "b", "a", "e"])
        self.assertEqual(self._ids(self.tracker.list_logs(LogFilter(order="asc"))), ["a", "b", "c", "d", "e"])

    def test_filters(self):
        self.assertEqual(self._ids(self.tracker.list_logs(LogFilter(employee="E2"))), ["d", "c"])
        self.assertEqual(self._ids(self.tracker.list_logs(LogFilter(department="ER"))), ["b", "a", "e"])
        self.assertEqual(self._ids(self.tracker.list_logs(LogFilter(status="checked-out"))), ["d", "b"])

    def test_date_range_uses_local_dates_and_excludes_undated(self):
        # 2026-03-01T20:00Z is 2026-03-02 in Bangkok.
        events = self.tracker.list_logs(LogFilter(start=date(2026, 3, 2), end=date(2026, 3, 3)))

        self.assertEqual(self._ids(events), ["c", "b"])

    def test_missing_date_and_time_are_derived_from_timestamp(self):
        event = next(event for event in self.tracker.list_logs() if event.id == self.ids["a"])

        self.assertEqual(event.date, "03/01/2026")
        self.assertEqual(event.time, "09:00:00")

    def test_delete_logs(self):
        deleted = self.tracker.delete_logs([self.ids["a"], self.ids["b"], "unknown"])

        self.assertEqual(deleted, 2)
        self.assertEqual(self._ids(self.tracker.list_logs()), ["d", "c", "e"])

    def test_delete_department_logs(self):
        deleted = self.tracker.delete_department_logs(["ER"], LogFilter(start=date(2026, 3, 2)))

        self.assertEqual(deleted, 1)
        self.assertEqual(self._ids(self.tracker.list_logs()), ["d", "c", "a", "e"])

        self.assertEqual(self.tracker.delete_department_logs(["unspecified", "Radiology"]), 1)
        self.assertEqual(self._ids(self.tracker.list_logs()), ["c", "a", "e"])

    def test_delete_failure_is_a_store_error(self):
        with patch.object(self.tracker.client, "delete_many", side_effect=DocumentStoreError("down")):
            with self.assertRaises(StoreError):
                self.tracker.delete_logs([self.ids["a"]])

    def test_department_summary(self):
        summaries = {summary.department: summary for summary in self.tracker.department_summary()}

        self.assertEqual(list(summaries), ["ER", "OR", "unspecified", "Dental"])
        er = summaries["ER"]
        self.assertEqual((er.in_count, er.out_count, er.total, er.tag_count), (2, 1, 3, 2))
        self.assertEqual(er.days[0], {"in": 1, "out": 0})
        self.assertEqual(er.days[1], {"in": 0, "out": 1})
        self.assertEqual(summaries["unspecified"].tag_count, 0)
        self.assertEqual(summaries["Dental"].total, 0)
        self.assertEqual(len(summaries["Dental"].days), 31)

    def test_summary_respects_filter(self):
        summaries = self.tracker.department_summary(LogFilter(status="checked-in"))

        self.assertEqual([(summary.department, summary.total) for summary in summaries][:2], [("ER", 2), ("OR", 1)])


class DepartmentSummaryFunctionTests(APITestCase):
    def test_ties_are_sorted_by_name(self):
        timestamp = datetime(2026, 3, 31, 5, 0, tzinfo=dt_timezone.utc)
        events = [
            _event(department="OR", timestamp=timestamp),
            _event(department="ER", status_value=Status.CHECKED_OUT, timestamp=timestamp),
        ]

        summaries = department_summary(events, {"OR": 1, "ER": 2, "Dental": 0})

        self.assertEqual([summary.department for summary in summaries], ["ER", "OR", "Dental"])
        self.assertEqual(summaries[0].days[30], {"in": 0, "out": 1})


class TrackerApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        tracker = get_tracker()
        tracker.registry.add_tags("ER", ["ER-01", "ER-02"])
        tracker.registry.add_tags("OR", ["OR-01"])

    def _post_log(self, tag, status_value, **extra):
        payload = {"employee_id": "E100", "tag": tag, "status": status_value, **extra}
        return self.client.post("/api/logs/", payload, format="json")

    def test_add_log_lifecycle(self):
        response = self._post_log("ER-01", "checked-in", department="ER")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "checked-in")
        self.assertEqual(response.data["department"], "ER")
        self.assertTrue(response.data["id"])

        response = self._post_log("ER-01", "checked-in")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "already_checked_in")

        response = self._post_log("ER-01", "checked-out")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self._post_log("ER-99", "checked-in", department="ER")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "tag_not_found")

    def test_add_log_rejects_invalid_payload(self):
        response = self.client.post("/api/logs/", {"employee_id": "E100", "tag": "ER-01", "status": "lost"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "invalid_input")

        response = self._post_log("", "checked-in")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "invalid_input")

    @patch("docstore.client.DocumentStoreClient.insert", side_effect=DocumentStoreError("down"))
    def test_add_log_store_failure_is_503(self, _mock_insert):
        response = self._post_log("ER-01", "checked-in")

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.json()["code"], "save_failed")

    def test_list_filter_and_delete_logs(self):
        first = self._post_log("ER-01", "checked-in").data
        self._post_log("OR-01", "checked-in")

        response = self.client.get("/api/logs/", {"department": "OR"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["tag"], "OR-01")

        response = self.client.get("/api/logs/", {"start": "2026-03-05", "end": "2026-03-01"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post("/api/logs/delete/", {"ids": [first["id"]]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["deleted"], 1)
        self.assertEqual(self.client.get("/api/logs/").data["count"], 1)

        response = self.client.post("/api/logs/delete/", {"ids": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_logs_of_selected_departments(self):
        self._post_log("ER-01", "checked-in")
        self._post_log("ER-01", "checked-out")
        self._post_log("OR-01", "checked-in")

        response = self.client.post("/api/logs/delete/", {"departments": ["ER"]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["deleted"], 2)
        remaining = self.client.get("/api/logs/").data["results"]
        self.assertEqual([event["department"] for event in remaining], ["OR"])

    def test_tag_status_and_validation(self):
        self.assertEqual(self.client.get("/api/tags/ER-01/status/").data, {"tag": "ER-01", "status": "none"})
        self._post_log("ER-01", "checked-in")
        self.assertEqual(self.client.get("/api/tags/ER-01/status/").data["status"], "checked-in")

        response = self.client.get("/api/tags/ER-01/validate/", {"department": "OR"})
        self.assertFalse(response.data["valid"])

        response = self.client.get("/api/tags/ER-01/validate/", {"department": " er "})
        self.assertEqual(response.data, {"tag": "ER-01", "department": "ER", "valid": True})

        response = self.client.get("/api/tags/OR-01/validate/")
        self.assertEqual(response.data, {"tag": "OR-01", "department": "OR", "valid": True})

        response = self.client.get("/api/tags/XRAY-01/validate/")
        self.assertEqual(response.data, {"tag": "XRAY-01", "department": "unspecified", "valid": False})

    def test_departments_and_tags(self):
        self.assertEqual(self.client.get("/api/departments/").data["results"], ["ER", "OR"])
        self.assertEqual(self.client.get("/api/departments/ER/tags/").data["results"], ["ER-01", "ER-02"])
        self.assertEqual(self.client.get("/api/departments/Radiology/tags/").data["count"], 0)

    @patch("docstore.client.DocumentStoreClient.list_entries", side_effect=DocumentStoreError("down"))
    def test_department_listing_degrades_to_empty(self, _mock_list):
        response = self.client.get("/api/departments/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], [])

    def test_summary(self):
        self._post_log("ER-01", "checked-in")
        self._post_log("ER-01", "checked-out")

        response = self.client.get("/api/summary/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first = response.data["results"][0]
        self.assertEqual(first["department"], "ER")
        self.assertEqual((first["in_count"], first["out_count"], first["total"], first["tag_count"]), (1, 1, 2, 2))
        self.assertEqual(len(first["days"]), 31)


class TrackerCommandTests(APITestCase):
    def setUp(self):
        cache.clear()

    def test_add_tags_then_summary(self):
        stdout = StringIO()
        call_command("tracker_add_tags", "ER", "ER-01,ER-02", "ER-03", stdout=stdout)
        self.assertIn("ER: 3 tags registered", stdout.getvalue())

        get_tracker().add_log("E100", "ER-01", "checked-in")

        stdout = StringIO()
        call_command("tracker_summary", "--days", stdout=stdout)
        output = stdout.getvalue()
        self.assertIn("ER: tags=3 in=1 out=0 total=1", output)
        self.assertIn("Summarized 1 departments", output)

    def test_summary_rejects_bad_dates(self):
        with self.assertRaises(CommandError) as exc:
            call_command("tracker_summary", "--start", "03/01/2026")
        self.assertIn("YYYY-MM-DD", str(exc.exception))

        with self.assertRaises(CommandError):
            call_command("tracker_summary", "--start", "2026-03-05", "--end", "2026-03-01")
